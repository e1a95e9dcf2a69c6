"""Lazy holder error types."""


class LazyError(Exception):
    """Base error for lazy holder failures."""


class LazyStateError(LazyError, RuntimeError):
    """Raised when a holder is used in a way its current state does not allow."""


class NullProviderError(LazyStateError, TypeError):
    """Raised when a holder is constructed without a usable provider."""


class ProviderReturnedNoneError(LazyStateError):
    """Raised when a strict holder's provider yields ``None``."""


class NotACapabilityTypeError(LazyStateError):
    """Raised when a type cannot be masked behind a forwarding proxy."""
