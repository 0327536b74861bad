class StorageError(Exception):
    """Base exception for report file storage."""


class FileReadError(StorageError):
    """Raised when a stored report file cannot be read."""
