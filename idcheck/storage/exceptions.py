class StorageError(Exception):
    """Base exception for document storage errors."""


class StorageUnavailable(StorageError):
    """Raised when the staged object is missing or the service is unreachable. Retryable."""
