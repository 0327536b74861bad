class ProviderError(Exception):
    """Raised when the analysis provider cannot produce a result."""


class TransientProviderError(ProviderError):
    """Network, timeout, rate-limit or 5xx failure. Safe to retry."""


class NonTransientProviderError(ProviderError):
    """Rejected request or unusable response. Retrying will not help."""


class AnalysisValidationError(NonTransientProviderError):
    """Raised when the provider's payload violates the analysis schema."""
