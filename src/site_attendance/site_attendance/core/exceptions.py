class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class WorkerNotFound(DomainError):
    """Raised when a name or id does not resolve to a known worker."""


class AlreadySignedIn(DomainError):
    """Raised when a worker already has an open sign-in session for the day."""


class NoActiveSignIn(DomainError):
    """Raised on sign-out when no open session exists for the day."""


class InvalidTimeRange(ValidationError):
    """Raised when computed hours are negative or check-out precedes check-in."""


class ConcurrentWriteConflict(DomainError):
    """Raised when a constraint violation cannot be resolved by merging."""


class TimesheetNotFound(DomainError):
    """Raised when a timesheet id does not exist."""


class InvalidTransition(ValidationError):
    """Raised when a timesheet status change is not allowed."""


class StorageUnavailable(Exception):
    """Database unreachable or timed out. Not a domain error; callers may retry."""

    retryable = True
