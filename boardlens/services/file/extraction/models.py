"""Data models for document extraction."""

from dataclasses import dataclass, field
from typing import Any

from boardlens.enums import FileType

UNKNOWN = "unknown"


@dataclass(frozen=True)
class ElementMetadata:
    """Location and formatting data attached to one extracted element."""

    category: str = UNKNOWN
    page_number: int | None = None
    sheet_name: str | None = None
    has_cell_format: bool = False
    style_name: str | None = None
    # Remaining upstream keys, passed through untouched
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractedElement:
    """One atomic unit of extracted content (paragraph, table, title, cell run)."""

    element_type: str
    text: str
    metadata: ElementMetadata


@dataclass(frozen=True)
class ExtractionMetadata:
    """Aggregate metadata shared by every file type."""

    file_type: FileType
    file_name: str

    def to_dict(self) -> dict[str, Any]:
        """Fields relevant to this file type only; absent means not applicable."""
        return {"file_type": str(self.file_type), "file_name": self.file_name}


@dataclass(frozen=True)
class PdfMetadata(ExtractionMetadata):
    total_pages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "total_pages": self.total_pages}


@dataclass(frozen=True)
class SpreadsheetMetadata(ExtractionMetadata):
    total_sheets: int = 0
    total_tables: int = 0
    has_cell_formatting: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "total_sheets": self.total_sheets,
            "total_tables": self.total_tables,
            "has_cell_formatting": self.has_cell_formatting,
        }


@dataclass(frozen=True)
class WordProcessorMetadata(ExtractionMetadata):
    total_pages: int = 0
    has_style_formatting: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "total_pages": self.total_pages,
            "has_style_formatting": self.has_style_formatting,
        }


@dataclass(frozen=True)
class PresentationMetadata(ExtractionMetadata):
    """Slides carry no format-specific aggregates."""


DocumentMetadata = PdfMetadata | SpreadsheetMetadata | WordProcessorMetadata | PresentationMetadata


@dataclass(frozen=True)
class ExtractionResult:
    """Result of normalizing all elements of one file."""

    elements: tuple[ExtractedElement, ...]
    metadata: DocumentMetadata

    @property
    def file_type(self) -> FileType:
        return self.metadata.file_type

    @property
    def file_name(self) -> str:
        return self.metadata.file_name
