"""Tests for RetryPolicy (bounded exponential backoff with per-attempt timeout)."""

import threading
from unittest.mock import MagicMock

import pytest

from idcheck.checks.exceptions import ConflictError, StoreUnavailable
from idcheck.extraction.exceptions import ExtractionFailed, ExtractionTimeout
from idcheck.pipeline.exceptions import StepTimeout
from idcheck.pipeline.retry import RetryPolicy, is_retryable
from idcheck.storage.exceptions import StorageUnavailable


def _policy(**overrides: object) -> tuple[RetryPolicy, list[float]]:
    sleeps: list[float] = []
    params: dict[str, object] = {
        "max_attempts": 5,
        "initial_backoff_seconds": 1.0,
        "max_backoff_seconds": 30.0,
        "sleep": sleeps.append,
    }
    params.update(overrides)
    return RetryPolicy(**params), sleeps  # type: ignore[arg-type]


class TestIsRetryable:
    @pytest.mark.parametrize(
        "exc",
        [
            StorageUnavailable("down"),
            StoreUnavailable("down"),
            ExtractionTimeout("slow"),
            StepTimeout("slow"),
        ],
    )
    def test_transient_errors(self, exc: Exception) -> None:
        assert is_retryable(exc)

    @pytest.mark.parametrize(
        "exc",
        [ExtractionFailed("blurry"), ConflictError("lost"), ValueError("bad")],
    )
    def test_permanent_errors(self, exc: Exception) -> None:
        assert not is_retryable(exc)


class TestCall:
    def test_returns_result_without_sleeping(self) -> None:
        policy, sleeps = _policy()
        assert policy.call("fetch", lambda value: value * 2, 21) == 42
        assert sleeps == []

    def test_backs_off_exponentially_until_success(self) -> None:
        policy, sleeps = _policy()
        fn = MagicMock(side_effect=[StorageUnavailable("a"), StorageUnavailable("b"),
                                    StorageUnavailable("c"), "ok"])
        assert policy.call("resolve-reference", fn, "key") == "ok"
        assert fn.call_count == 4
        assert sleeps == [1.0, 2.0, 4.0]
        fn.assert_called_with("key")

    def test_backoff_is_capped(self) -> None:
        policy, sleeps = _policy(max_backoff_seconds=3.0)
        fn = MagicMock(side_effect=[StoreUnavailable("x")] * 4 + ["ok"])
        policy.call("fetch", fn)
        assert sleeps == [1.0, 2.0, 3.0, 3.0]

    def test_reraises_last_error_when_exhausted(self) -> None:
        policy, sleeps = _policy(max_attempts=3)
        fn = MagicMock(side_effect=[StorageUnavailable("1"), StorageUnavailable("2"),
                                    StorageUnavailable("3")])
        with pytest.raises(StorageUnavailable, match="3"):
            policy.call("resolve-reference", fn)
        assert fn.call_count == 3
        assert len(sleeps) == 2

    def test_does_not_retry_permanent_error(self) -> None:
        policy, sleeps = _policy()
        fn = MagicMock(side_effect=ExtractionFailed("unreadable"))
        with pytest.raises(ExtractionFailed):
            policy.call("extract", fn)
        assert fn.call_count == 1
        assert sleeps == []


class TestTimeout:
    def test_slow_attempt_raises_step_timeout(self) -> None:
        release = threading.Event()
        policy, sleeps = _policy(max_attempts=2, timeout_seconds=0.05)

        def slow() -> str:
            release.wait(5)
            return "late"

        try:
            with pytest.raises(StepTimeout, match="extract"):
                policy.call("extract", slow)
        finally:
            release.set()
        assert sleeps == [1.0]

    def test_timed_out_attempt_is_retried(self) -> None:
        release = threading.Event()
        calls: list[int] = []
        policy, _ = _policy(timeout_seconds=0.05)

        def flaky() -> str:
            calls.append(1)
            if len(calls) == 1:
                release.wait(5)
                return "late"
            return "fresh"

        try:
            assert policy.call("extract", flaky) == "fresh"
        finally:
            release.set()

    def test_error_inside_timed_attempt_propagates(self) -> None:
        policy, _ = _policy(max_attempts=1, timeout_seconds=1.0)
        with pytest.raises(ExtractionFailed):
            policy.call("extract", MagicMock(side_effect=ExtractionFailed("nope")))


class TestFromSettings:
    def test_reads_budget_from_settings(self, settings) -> None:
        policy = RetryPolicy.from_settings(settings, timeout_seconds=7.0)
        assert policy.max_attempts == settings.step_max_attempts
        assert policy.initial_backoff_seconds == settings.step_backoff_initial_seconds
        assert policy.max_backoff_seconds == settings.step_backoff_max_seconds
        assert policy.timeout_seconds == 7.0
