#!/usr/bin/env python3
"""Extract and chunk local board documents.

Usage:
    bin/extract_document.py report.pdf                  # Extract one file, print a summary
    bin/extract_document.py a.pdf b.xlsx --chunks       # Combine files and list chunk sizes
    bin/extract_document.py report.pdf --text           # Print the labelled extracted text
    bin/extract_document.py report.pdf --chunk-size 2000 --chunk-overlap 100
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from boardlens.config import settings
from boardlens.exceptions import BoardlensError
from boardlens.services.file.chunking import SplitterConfig
from boardlens.services.file.extraction import ExtractionService, UnstructuredPartitionClient
from boardlens.services.file.tokenizer import estimate_token_count
from boardlens.services.pipeline import DocumentPipeline, FileInput

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("extract_document")


async def run(args: argparse.Namespace) -> int:
    files = []
    for name in args.files:
        path = Path(name)
        if not path.is_file():
            print(f"ERROR: File not found: {name}")
            return 1
        files.append(FileInput(file_name=path.name, content=path.read_bytes(), file_path=str(path)))

    async with UnstructuredPartitionClient.from_settings(settings) as partition_client:
        extraction = ExtractionService.from_settings(settings, partition_client)
        # Extraction and chunking only; storage, records and the model are unused here
        pipeline = DocumentPipeline(extraction, None, None, None, settings)  # type: ignore[arg-type]

        try:
            batch = await pipeline.prepare_documents(files)
            config = SplitterConfig(
                chunk_size=args.chunk_size or settings.chunk_size,
                chunk_overlap=settings.chunk_overlap if args.chunk_overlap is None else args.chunk_overlap,
            )
            chunks = pipeline.chunk_batch(batch, config)
        except BoardlensError as e:
            logger.error(str(e))
            return 1

    if args.text:
        print(batch.combined_text)
        return 0

    print(f"\n{'File':<40} {'Type':<6} {'Elements':<10} {'Tokens'}")
    print("-" * 70)
    for document in batch.documents:
        name = (document.file_name[:37] + "...") if len(document.file_name) > 40 else document.file_name
        print(
            f"{name:<40} {document.result.file_type:<6} "
            f"{len(document.result.elements):<10} {estimate_token_count(document.text)}"
        )

    print(f"\nChunks: {len(chunks)} (size {config.chunk_size}, overlap {config.chunk_overlap})")
    if args.chunks:
        for i, chunk in enumerate(chunks):
            print(f"  [{i}] {estimate_token_count(chunk)} tokens, {len(chunk)} chars")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract and chunk board documents")
    parser.add_argument("files", nargs="+", help="Files to extract (pdf, xlsx, docx, pptx)")
    parser.add_argument("--text", action="store_true", help="Print the combined labelled text")
    parser.add_argument("--chunks", action="store_true", help="List every chunk with its token count")
    parser.add_argument("--chunk-size", type=int, help="Maximum tokens per chunk")
    parser.add_argument("--chunk-overlap", type=int, help="Overlap budget in tokens")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
