class CheckError(Exception):
    """Base exception for check record errors."""


class CheckNotFoundError(CheckError):
    """Raised when a check cannot be found in the database."""


class ConflictError(CheckError):
    """Raised when a compare-and-set finds the check in an unexpected state."""


class AccessTokenCollisionError(CheckError):
    """Raised when a freshly generated access token is already taken."""


class DocumentAlreadyRegisteredError(CheckError):
    """Raised when an upload is registered for a check that already has one."""


class InvalidTransitionError(CheckError):
    """Raised when a status change would break the check lifecycle."""


class StoreUnavailable(CheckError):
    """Raised when the check store cannot be reached. Retryable."""
