"""Tests for upload validation and file type resolution."""

import pytest

from boardlens.enums import DocumentType, FileType
from boardlens.exceptions import FileValidationError, UnsupportedFileTypeError
from boardlens.services.file.validation import (
    MIME_TYPES,
    document_type_for,
    get_file_type,
    is_supported,
    validate_file,
)


class TestGetFileType:
    """Tests for extension-based type resolution."""

    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("report.pdf", FileType.PDF),
            ("Budget FY25.XLSX", FileType.XLSX),
            ("minutes.final.docx", FileType.DOCX),
            ("deck.pptx", FileType.PPTX),
        ],
    )
    def test_supported(self, file_name, expected):
        assert get_file_type(file_name) is expected

    def test_unsupported_extension(self):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            get_file_type("notes.txt")
        assert exc_info.value.extension == "txt"
        assert "notes.txt" in str(exc_info.value)

    def test_missing_extension(self):
        with pytest.raises(UnsupportedFileTypeError, match="none"):
            get_file_type("README")

    def test_is_supported(self):
        assert is_supported("a.pdf")
        assert not is_supported("a.csv")


class TestValidateFile:
    """Tests for upload validation."""

    def test_valid_upload(self):
        assert validate_file("q3.pdf", 1024, MIME_TYPES[FileType.PDF]) is FileType.PDF

    def test_too_large(self):
        with pytest.raises(FileValidationError, match="50MB"):
            validate_file("q3.pdf", 50 * 1024 * 1024 + 1)

    def test_custom_limit(self):
        with pytest.raises(FileValidationError):
            validate_file("q3.pdf", 2048, max_size=1024)

    def test_bad_mime_type(self):
        with pytest.raises(FileValidationError, match="MIME"):
            validate_file("q3.pdf", 10, "text/plain")

    def test_allowed_types_subset(self):
        with pytest.raises(UnsupportedFileTypeError):
            validate_file("deck.pptx", 10, allowed_types={FileType.PDF, FileType.XLSX})

    def test_mime_type_optional(self):
        assert validate_file("budget.xlsx", 10) is FileType.XLSX


class TestDocumentTypeFor:
    def test_spreadsheets_are_financial(self):
        assert document_type_for(FileType.XLSX) is DocumentType.FINANCIAL

    def test_pdf_is_report(self):
        assert document_type_for(FileType.PDF) is DocumentType.REPORT
