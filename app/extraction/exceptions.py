class ExtractionError(Exception):
    """Raised when report content cannot be extracted. Never retried."""


class UnsupportedMimeTypeError(ExtractionError):
    """Raised when no extractor handles the report's MIME type."""
