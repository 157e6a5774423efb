"""Upload validation and file type resolution."""

from boardlens.enums import DocumentType, FileType
from boardlens.exceptions import FileValidationError, UnsupportedFileTypeError

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB

MIME_TYPES: dict[FileType, str] = {
    FileType.PDF: "application/pdf",
    FileType.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FileType.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    FileType.PPTX: "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

# Document type recorded for an upload, by file type
FILE_TYPE_TO_DOCUMENT_TYPE: dict[FileType, DocumentType] = {
    FileType.PDF: DocumentType.REPORT,
    FileType.XLSX: DocumentType.FINANCIAL,
    FileType.DOCX: DocumentType.REPORT,
    FileType.PPTX: DocumentType.REPORT,
}


def get_file_type(file_name: str) -> FileType:
    """
    Resolve the file type from the file name's extension.

    Raises:
        UnsupportedFileTypeError: If the extension is missing or unsupported
    """
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else None
    try:
        return FileType(extension)
    except ValueError:
        raise UnsupportedFileTypeError(file_name, extension) from None


def is_supported(file_name: str) -> bool:
    try:
        get_file_type(file_name)
    except UnsupportedFileTypeError:
        return False
    return True


def validate_mime_type(mime_type: str) -> None:
    if mime_type not in MIME_TYPES.values():
        raise FileValidationError(f"Unsupported MIME type: {mime_type}")


def validate_file(
    file_name: str,
    size: int,
    mime_type: str | None = None,
    max_size: int = MAX_FILE_SIZE,
    allowed_types: set[FileType] | None = None,
) -> FileType:
    """
    Validate an upload before any processing.

    Args:
        file_name: Original file name
        size: File size in bytes
        mime_type: Declared content type; checked only when provided
        max_size: Size limit in bytes
        allowed_types: Subset of supported types to accept

    Returns:
        The resolved file type

    Raises:
        FileValidationError: If the file is too large or the MIME type is not allowed
        UnsupportedFileTypeError: If the extension is not supported
    """
    if size > max_size:
        raise FileValidationError(
            f"File size exceeds maximum allowed size of {max_size / (1024 * 1024):g}MB"
        )

    file_type = get_file_type(file_name)
    if allowed_types is not None and file_type not in allowed_types:
        allowed = ", ".join(sorted(allowed_types))
        raise UnsupportedFileTypeError(file_name, f"{file_type} (allowed: {allowed})")

    if mime_type:
        validate_mime_type(mime_type)

    return file_type


def document_type_for(file_type: FileType) -> DocumentType:
    return FILE_TYPE_TO_DOCUMENT_TYPE.get(file_type, DocumentType.OTHER)
