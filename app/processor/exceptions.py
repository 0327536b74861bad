class ProcessorError(Exception):
    """Base exception for all report pipeline errors raised to callers."""


class ValidationError(ProcessorError):
    """Raised when an upload is rejected at intake. Nothing is persisted."""


class NotFoundError(ProcessorError):
    """Raised when a report does not exist."""


class OwnershipError(NotFoundError):
    """Raised when a report exists but belongs to another user.

    Subclasses NotFoundError so callers report both the same way.
    """
