"""File processing services (validation, extraction, tokenization, chunking)."""

from boardlens.services.file.chunking import (
    RecursiveTextSplitter,
    SplitterConfig,
    recursive_text_splitter,
)
from boardlens.services.file.extraction import (
    ExtractionResult,
    ExtractionService,
    format_extracted_text,
    normalize_elements,
)
from boardlens.services.file.tokenizer import TiktokenTokenizer, estimate_token_count, get_tokenizer
from boardlens.services.file.validation import get_file_type, validate_file

__all__ = [
    # Extraction
    "ExtractionResult",
    "ExtractionService",
    "format_extracted_text",
    "normalize_elements",
    # Chunking
    "RecursiveTextSplitter",
    "SplitterConfig",
    "recursive_text_splitter",
    # Tokenization
    "TiktokenTokenizer",
    "estimate_token_count",
    "get_tokenizer",
    # Validation
    "get_file_type",
    "validate_file",
]
