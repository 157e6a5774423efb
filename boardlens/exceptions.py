"""Exception taxonomy for document processing and analysis errors.

Every error names the file, path or record it concerns so a caller can
surface an actionable message without exposing internals.
"""


class BoardlensError(Exception):
    """Base class for all boardlens errors."""

    pass


class ConfigurationError(BoardlensError, ValueError):
    """Invalid caller-supplied configuration (e.g. a negative chunk size).

    Raised eagerly at call time, never mid-processing.
    """

    pass


class UnauthorizedError(BoardlensError):
    """No authenticated user for an operation that requires one."""

    pass


class UnsupportedFileTypeError(BoardlensError, ValueError):
    """File extension is not in the supported set. No external call is made."""

    def __init__(self, file_name: str, extension: str | None = None):
        self.file_name = file_name
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or 'none'} ({file_name})")


class FileValidationError(BoardlensError, ValueError):
    """Upload rejected before processing (size, MIME type)."""

    pass


class ExtractionError(BoardlensError):
    """Partitioning service returned a non-success status or no elements."""

    def __init__(self, file_path: str, reason: str | None = None):
        self.file_path = file_path
        self.reason = reason
        message = f"Failed to extract text from file: {file_path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class StorageError(BoardlensError):
    """Base class for blob store failures."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class DownloadError(StorageError):
    def __init__(self, path: str, reason: str | None = None):
        message = f"Failed to download file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, path)


class UploadError(StorageError):
    def __init__(self, path: str, reason: str | None = None):
        message = f"Failed to upload file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, path)


class RecordStoreError(BoardlensError):
    """A record could not be created, read or updated."""

    pass


class AnalysisError(BoardlensError):
    """The LLM call failed or returned a payload failing schema validation."""

    def __init__(self, message: str, analysis_id: str | None = None):
        self.analysis_id = analysis_id
        super().__init__(message)
