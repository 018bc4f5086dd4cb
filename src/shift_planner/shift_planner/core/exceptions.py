class DomainError(Exception):
    """Base exception for business rule violations."""


class InvalidRequestError(DomainError):
    """Raised when input data is missing or violates domain rules."""


class RequestNotFoundError(InvalidRequestError):
    """Raised when a referenced vacation request does not exist."""


class AccessDeniedError(DomainError):
    """Raised when the actor's scope does not cover a team or request."""


class OverlapError(DomainError):
    """Raised when a non-rejected request already covers the date/time window."""


class HierarchyCycleError(DomainError):
    """Raised when the team forest contains a cycle."""


class PersistenceError(DomainError):
    """Raised when the storage collaborator fails a read or write."""


class NotificationDeliveryFailure(Exception):
    """Raised by notifiers. Never surfaced as an operation result."""


class DuplicateRecordError(PersistenceError):
    """Raised when the store rejects a write on a uniqueness constraint."""
