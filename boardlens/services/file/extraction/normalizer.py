"""Normalize partitioned elements from any supported format into one representation.

The partitioning service returns differently-shaped metadata per source
format (page numbers for PDFs and Word documents, sheet names and cell
formats for spreadsheets, style names for Word documents). This module
turns those elements into `ExtractedElement`s with a guaranteed category,
computes per-format aggregates, and renders the labelled text that is
split into chunks and sent to the model. The labels are how page and
sheet provenance reaches the model, and from there its citations.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from boardlens.enums import FileType
from boardlens.services.file.extraction.models import (
    UNKNOWN,
    DocumentMetadata,
    ElementMetadata,
    ExtractedElement,
    ExtractionResult,
    PdfMetadata,
    PresentationMetadata,
    SpreadsheetMetadata,
    WordProcessorMetadata,
)

DOCUMENT_DIVIDER = "\n\n=== Next Document ===\n\n"

_KNOWN_METADATA_KEYS = {"category", "page_number", "sheet_name", "cell_format", "style_name"}


def normalize_elements(
    raw_elements: Iterable[Mapping[str, Any]],
    file_type: FileType,
    file_name: str,
) -> ExtractionResult:
    """
    Normalize raw partition elements for one file.

    Pure function of its input: element order is preserved and calling it
    twice with the same elements gives equal results.

    Args:
        raw_elements: Element dicts with "type", "text" and "metadata" keys
        file_type: Detected type of the originating file
        file_name: Name of the originating file

    Returns:
        ExtractionResult with decorated elements and format-specific metadata
    """
    elements = tuple(_normalize_element(raw, file_type) for raw in raw_elements)
    return ExtractionResult(elements=elements, metadata=_aggregate(elements, file_type, file_name))


def _normalize_element(raw: Mapping[str, Any], file_type: FileType) -> ExtractedElement:
    raw_metadata = raw.get("metadata") or {}
    metadata = ElementMetadata(
        category=raw_metadata.get("category") or UNKNOWN,
        page_number=_page_number(raw_metadata.get("page_number")),
        sheet_name=raw_metadata.get("sheet_name") or None,
        has_cell_format=bool(raw_metadata.get("cell_format")),
        style_name=raw_metadata.get("style_name") or None,
        extra={k: v for k, v in raw_metadata.items() if k not in _KNOWN_METADATA_KEYS},
    )

    text = raw.get("text") or ""
    if file_type is FileType.XLSX:
        text = f"[Sheet: {metadata.sheet_name or UNKNOWN}] {text}"

    return ExtractedElement(element_type=raw.get("type") or UNKNOWN, text=text, metadata=metadata)


def _page_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.isdigit():
        return int(value) or None
    return None


def _aggregate(
    elements: tuple[ExtractedElement, ...],
    file_type: FileType,
    file_name: str,
) -> DocumentMetadata:
    if file_type is FileType.XLSX:
        return SpreadsheetMetadata(
            file_type=file_type,
            file_name=file_name,
            # None counts as its own "unknown" sheet
            total_sheets=len({e.metadata.sheet_name for e in elements}),
            total_tables=sum(1 for e in elements if e.element_type.lower() == "table"),
            has_cell_formatting=any(e.metadata.has_cell_format for e in elements),
        )

    total_pages = max((e.metadata.page_number or 0 for e in elements), default=0)
    if file_type is FileType.PDF:
        return PdfMetadata(file_type=file_type, file_name=file_name, total_pages=total_pages)
    if file_type is FileType.DOCX:
        return WordProcessorMetadata(
            file_type=file_type,
            file_name=file_name,
            total_pages=total_pages,
            has_style_formatting=any(e.metadata.style_name for e in elements),
        )
    return PresentationMetadata(file_type=file_type, file_name=file_name)


def format_element_location(element: ExtractedElement, metadata: DocumentMetadata) -> str:
    """Human-readable provenance label, e.g. "[File: q3.pdf, Page: 4]"."""
    if metadata.file_type is FileType.XLSX:
        return f"[File: {metadata.file_name}, Sheet: {element.metadata.sheet_name or UNKNOWN}]"
    return f"[File: {metadata.file_name}, Page: {element.metadata.page_number or UNKNOWN}]"


def format_element(element: ExtractedElement, metadata: DocumentMetadata) -> str:
    location = format_element_location(element, metadata)
    return f"{location} [{element.metadata.category}]: {element.text}"


def format_metadata(metadata: DocumentMetadata) -> str:
    return ", ".join(f"{key}: {value}" for key, value in metadata.to_dict().items())


def format_extracted_text(result: ExtractionResult) -> str:
    """
    Render one file as a framed, labelled text block.

    Format:
        === Document: <name> ===
        Metadata: file_type: pdf, file_name: <name>, total_pages: 3

        Content:
        [File: <name>, Page: 1] [Title]: ...
    """
    content = "\n\n".join(format_element(e, result.metadata) for e in result.elements)
    return (
        f"=== Document: {result.file_name} ===\n"
        f"Metadata: {format_metadata(result.metadata)}\n\n"
        f"Content:\n{content}"
    )


def combine_documents(formatted_documents: Iterable[str]) -> str:
    """Join framed documents with the "=== Next Document ===" divider, keeping order."""
    return DOCUMENT_DIVIDER.join(formatted_documents)


def split_documents(combined_text: str) -> list[str]:
    """Inverse of combine_documents."""
    return combined_text.split(DOCUMENT_DIVIDER)
