"""Document extraction services."""

from boardlens.services.file.extraction.models import (
    DocumentMetadata,
    ElementMetadata,
    ExtractedElement,
    ExtractionMetadata,
    ExtractionResult,
    PdfMetadata,
    PresentationMetadata,
    SpreadsheetMetadata,
    WordProcessorMetadata,
)
from boardlens.services.file.extraction.normalizer import (
    DOCUMENT_DIVIDER,
    combine_documents,
    format_element,
    format_element_location,
    format_extracted_text,
    normalize_elements,
    split_documents,
)
from boardlens.services.file.extraction.partition import (
    PartitionResponse,
    UnstructuredPartitionClient,
    partition_options,
)
from boardlens.services.file.extraction.service import ExtractionService

__all__ = [
    "DOCUMENT_DIVIDER",
    "DocumentMetadata",
    "ElementMetadata",
    "ExtractedElement",
    "ExtractionMetadata",
    "ExtractionResult",
    "ExtractionService",
    "PartitionResponse",
    "PdfMetadata",
    "PresentationMetadata",
    "SpreadsheetMetadata",
    "UnstructuredPartitionClient",
    "WordProcessorMetadata",
    "combine_documents",
    "format_element",
    "format_element_location",
    "format_extracted_text",
    "normalize_elements",
    "partition_options",
    "split_documents",
]
