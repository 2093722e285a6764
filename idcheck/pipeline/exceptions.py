class PipelineError(Exception):
    """Base exception for verification pipeline errors."""


class PreconditionFailed(PipelineError):
    """Raised when a check cannot be processed yet (caller/ordering bug). Not retried."""


class StepTimeout(PipelineError):
    """Raised when a single step attempt exceeds its timeout. Retryable."""
