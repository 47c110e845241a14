class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced ledger entry does not exist."""


class ConflictError(DomainError):
    """Raised when a write would break a store invariant (duplicate open entry, cross-table regNo)."""


class StoreUnavailableError(DomainError):
    """Raised when the persistence layer cannot be reached."""
