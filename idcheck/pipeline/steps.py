from collections.abc import Callable
from datetime import datetime, timedelta
from functools import partial

from idcheck.checks.exceptions import ConflictError
from idcheck.checks.models import Check
from idcheck.checks.state import CheckStatus
from idcheck.database.repositories.base import BaseCheckStore
from idcheck.extraction.base import BaseExtractor
from idcheck.extraction.exceptions import ExtractionFailed
from idcheck.logging.logger import Log
from idcheck.pipeline.exceptions import PreconditionFailed
from idcheck.pipeline.models import PipelineOutcome
from idcheck.pipeline.pipeline import PipelineContext, PipelineStep
from idcheck.pipeline.retry import RetryPolicy
from idcheck.policy.compliance import (
    PROCESSING_ERROR_NOTE,
    SUCCESS_NOTE,
    evaluate,
    extraction_failed_note,
)
from idcheck.policy.models import Verdict
from idcheck.security.cipher import Cipher
from idcheck.storage.base import BaseDocumentStore


def _require_check(context: PipelineContext) -> Check:
    if context.check is None:
        raise ValueError("PipelineContext.check must be set before this step")
    return context.check


def _observe_after_conflict(
    store: BaseCheckStore,
    retry: RetryPolicy,
    context: PipelineContext,
) -> PipelineContext:
    current = retry.call("fetch", store.load, context.check_id)
    Log.info(
        f"Check {context.check_id} was moved to {current.status.value} concurrently; "
        "keeping the stored outcome"
    )
    context.check = current
    context.outcome = PipelineOutcome.observed(current)
    return context


class FetchCheckStep(PipelineStep):
    """Load the check and decide whether there is work to do."""

    def __init__(
        self,
        store: BaseCheckStore,
        retry: RetryPolicy,
        *,
        analyzing_lease: timedelta,
        clock: Callable[[], datetime],
    ) -> None:
        self._store = store
        self._retry = retry
        self._analyzing_lease = analyzing_lease
        self._clock = clock

    def run(self, context: PipelineContext) -> PipelineContext:
        check = self._retry.call("fetch", self._store.load, context.check_id)
        context.check = check
        if check.status.is_terminal:
            Log.info(f"Check {check.id} already {check.status.value}; trigger absorbed")
            context.outcome = PipelineOutcome.observed(check)
        elif check.document_ref is None:
            raise PreconditionFailed(f"Check {check.id} has no uploaded document to analyze")
        elif check.status is CheckStatus.ANALYZING and not self._is_abandoned(check):
            Log.info(f"Check {check.id} is already being analyzed; trigger absorbed")
            context.outcome = PipelineOutcome.observed(check)
        return context

    def _is_abandoned(self, check: Check) -> bool:
        if check.updated_at is None:
            return False
        return check.updated_at <= self._clock() - self._analyzing_lease


class MarkAnalyzingStep(PipelineStep):
    """Claim the check: pending -> analyzing, or re-lease an abandoned analysis."""

    def __init__(self, store: BaseCheckStore, retry: RetryPolicy) -> None:
        self._store = store
        self._retry = retry

    def run(self, context: PipelineContext) -> PipelineContext:
        check = _require_check(context)
        if check.status is CheckStatus.PENDING:
            claim = partial(
                self._store.compare_and_set_status,
                check.id,
                CheckStatus.PENDING,
                CheckStatus.ANALYZING,
            )
        else:
            Log.warning(f"Check {check.id} resuming abandoned analysis")
            claim = partial(
                self._store.compare_and_set_status,
                check.id,
                CheckStatus.ANALYZING,
                CheckStatus.ANALYZING,
                expected_updated_at=check.updated_at,
            )
        try:
            context.check = self._retry.call("mark-analyzing", claim)
        except ConflictError:
            return _observe_after_conflict(self._store, self._retry, context)
        context.claimed = True
        Log.info(f"Check {check.id} marked as analyzing")
        return context


class ResolveReferenceStep(PipelineStep):
    def __init__(self, document_store: BaseDocumentStore, retry: RetryPolicy) -> None:
        self._document_store = document_store
        self._retry = retry

    def run(self, context: PipelineContext) -> PipelineContext:
        check = _require_check(context)
        if check.document_ref is None:
            raise PreconditionFailed(f"Check {check.id} has no uploaded document to analyze")
        context.reference = self._retry.call(
            "resolve-reference",
            self._document_store.stage_retrieval_reference,
            check.document_ref,
        )
        Log.info(
            f"Staged document for check {check.id} "
            f"(valid until {context.reference.valid_until.isoformat()})"
        )
        return context


class ExtractStep(PipelineStep):
    """Read identity fields. An unreadable document becomes a rejection, not an error."""

    def __init__(self, extractor: BaseExtractor, retry: RetryPolicy) -> None:
        self._extractor = extractor
        self._retry = retry

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.reference is None:
            raise ValueError("PipelineContext.reference must be set before extraction")
        try:
            context.fields = self._retry.call(
                "extract", self._extractor.extract, context.reference.url
            )
        except ExtractionFailed as exc:
            Log.warning(f"Check {context.check_id}: document unreadable: {exc.reason}")
            context.verdict = Verdict.reject(extraction_failed_note(exc.reason))
            return context
        Log.info(f"Extracted fields for check {context.check_id}")
        return context


class EvaluateStep(PipelineStep):
    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.verdict is not None:
            return context
        if context.fields is None:
            raise ValueError("PipelineContext.fields must be set before evaluation")
        context.verdict = evaluate(context.fields, self._clock())
        Log.info(
            f"Check {context.check_id} verdict: "
            f"{'accept' if context.verdict.accepted else 'reject'}"
            + (f" ({context.verdict.reason})" if context.verdict.reason else "")
        )
        return context


class SealAndPersistStep(PipelineStep):
    """Encrypt the extracted fields and write the terminal state in one compare-and-set."""

    def __init__(self, store: BaseCheckStore, cipher: Cipher, retry: RetryPolicy) -> None:
        self._store = store
        self._cipher = cipher
        self._retry = retry

    def run(self, context: PipelineContext) -> PipelineContext:
        check = _require_check(context)
        verdict = context.verdict
        if verdict is None:
            raise ValueError("PipelineContext.verdict must be set before persist")
        status = CheckStatus.CLEAR if verdict.accepted else CheckStatus.REJECTED
        payload = (
            self._cipher.seal_json(context.fields.to_dict())
            if context.fields is not None
            else None
        )
        persist = partial(
            self._store.compare_and_set_status,
            check.id,
            CheckStatus.ANALYZING,
            status,
            note=verdict.reason or SUCCESS_NOTE,
            encrypted_payload=payload,
        )
        try:
            updated = self._retry.call("seal-and-persist", persist)
        except ConflictError:
            return _observe_after_conflict(self._store, self._retry, context)
        context.check = updated
        context.outcome = PipelineOutcome.completed(updated)
        Log.info(f"Check {check.id} completed as {status.value}")
        return context


class MarkProcessingErrorStep(PipelineStep):
    """Reject a claimed check whose processing could not complete."""

    def __init__(self, store: BaseCheckStore, retry: RetryPolicy) -> None:
        self._store = store
        self._retry = retry

    def run(self, context: PipelineContext) -> PipelineContext:
        mark = partial(
            self._store.compare_and_set_status,
            context.check_id,
            CheckStatus.ANALYZING,
            CheckStatus.REJECTED,
            note=PROCESSING_ERROR_NOTE,
        )
        try:
            updated = self._retry.call("mark-processing-error", mark)
        except ConflictError:
            return _observe_after_conflict(self._store, self._retry, context)
        context.check = updated
        context.outcome = PipelineOutcome.completed(updated)
        Log.error(f"Check {context.check_id} rejected: {context.error_message}")
        return context
