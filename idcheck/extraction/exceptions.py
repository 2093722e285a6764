class ExtractionError(Exception):
    """Raised when extraction fails for a reason that is neither bad input nor transient."""


class ExtractionFailed(ExtractionError):
    """Raised when the document itself is unreadable or unsupported. Not retried."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ExtractionTimeout(ExtractionError):
    """Raised when the extraction service did not answer in time. Retryable."""


class ExtractionUnavailable(ExtractionError):
    """Raised on network failures, throttling or provider-side errors. Retryable."""
