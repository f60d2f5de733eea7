"""Domain-specific exceptions for the upload intake."""


class IngestError(Exception):
    """Base class for ingest-related errors."""


class ValidationError(IngestError):
    """Raised when the upload request is rejected as invalid (HTTP 400)."""


class UnsupportedMediaError(ValidationError):
    """Raised when the declared filename extension is not allowed."""


class PayloadTooLargeError(ValidationError):
    """Raised when the uploaded file exceeds the configured ceiling."""


class MissingUploadError(ValidationError):
    """Raised when the multipart form carries no ``file`` field."""


class StorageError(IngestError):
    """Raised when the namespace directory or upload file cannot be written."""
