"""Bounded retry with exponential backoff and a per-attempt timeout."""

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from idcheck.checks.exceptions import StoreUnavailable
from idcheck.config.settings import Settings
from idcheck.extraction.exceptions import ExtractionTimeout, ExtractionUnavailable
from idcheck.logging.logger import Log
from idcheck.pipeline.exceptions import StepTimeout
from idcheck.storage.exceptions import StorageUnavailable

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    StorageUnavailable,
    StoreUnavailable,
    ExtractionTimeout,
    ExtractionUnavailable,
    StepTimeout,
)


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, RETRYABLE_ERRORS)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one pipeline step.

    Only RETRYABLE_ERRORS are retried; anything else propagates on the first
    attempt. After the last attempt the final error is re-raised unchanged.
    """

    max_attempts: int = 5
    initial_backoff_seconds: float = 1.0
    max_backoff_seconds: float = 30.0
    timeout_seconds: float | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    @classmethod
    def from_settings(cls, settings: Settings, *, timeout_seconds: float | None) -> "RetryPolicy":
        return cls(
            max_attempts=settings.step_max_attempts,
            initial_backoff_seconds=settings.step_backoff_initial_seconds,
            max_backoff_seconds=settings.step_backoff_max_seconds,
            timeout_seconds=timeout_seconds,
        )

    def call(self, step_name: str, fn: Callable[..., T], *args: Any) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.initial_backoff_seconds,
                max=self.max_backoff_seconds,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=_log_retry(step_name),
            sleep=self.sleep,
            reraise=True,
        )
        return retrying(self._attempt, step_name, fn, *args)

    def _attempt(self, step_name: str, fn: Callable[..., T], *args: Any) -> T:
        if self.timeout_seconds is None:
            return fn(*args)
        # A timed-out attempt keeps running in its worker thread; its result is discarded.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"step-{step_name}")
        try:
            future = executor.submit(fn, *args)
            try:
                return future.result(timeout=self.timeout_seconds)
            except FutureTimeoutError as exc:
                raise StepTimeout(
                    f"Step {step_name} timed out after {self.timeout_seconds}s"
                ) from exc
        finally:
            executor.shutdown(wait=False)


def _log_retry(step_name: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        Log.warning(
            f"Step {step_name} attempt {retry_state.attempt_number} failed: "
            f"{type(exc).__name__}: {exc}; retrying in {delay:.1f}s"
        )

    return before_sleep
