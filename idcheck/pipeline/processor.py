from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from idcheck.config.settings import Settings
from idcheck.database.repositories.base import BaseCheckStore
from idcheck.database.repositories.check_repository import CheckRepository
from idcheck.extraction.base import BaseExtractor
from idcheck.extraction.factory import ExtractorFactory
from idcheck.logging.logger import Log
from idcheck.pipeline.locks import KeyedLock
from idcheck.pipeline.models import PipelineOutcome
from idcheck.pipeline.pipeline import PipelineContext, PipelineStep
from idcheck.pipeline.retry import RetryPolicy, is_retryable
from idcheck.pipeline.steps import (
    EvaluateStep,
    ExtractStep,
    FetchCheckStep,
    MarkAnalyzingStep,
    MarkProcessingErrorStep,
    ResolveReferenceStep,
    SealAndPersistStep,
)
from idcheck.security.cipher import Cipher
from idcheck.storage.base import BaseDocumentStore
from idcheck.storage.factory import DocumentStoreFactory


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationPipeline:
    """Drives one check from an uploaded document to a terminal verdict.

    Pipeline: fetch -> mark-analyzing -> resolve-reference -> extract ->
    evaluate -> seal-and-persist.

    Where to resume is read from the persisted status, never from a step
    index, so replaying a trigger converges on the same terminal state. Runs
    for the same check id are serialized within the process; across processes
    the store's compare-and-set decides the single writer.
    """

    def __init__(
        self,
        *,
        steps: list[PipelineStep],
        failed_step: PipelineStep,
        locks: KeyedLock | None = None,
    ) -> None:
        self._steps = steps
        self._failed_step = failed_step
        self._locks = locks if locks is not None else KeyedLock()

    def process(self, check_id: str) -> PipelineOutcome:
        """Run the pipeline for a check.

        Raises:
            PreconditionFailed: if the check has no uploaded document yet.
            CheckNotFoundError: if the check does not exist.
        """
        if self._locks.is_locked(check_id):
            Log.info(f"Check {check_id} has a run in flight in this process; waiting for it")
        with self._locks.hold(check_id):
            return self._run(PipelineContext(check_id=check_id))

    def _run(self, context: PipelineContext) -> PipelineOutcome:
        Log.info(f"Processing check {context.check_id}")
        try:
            for step in self._steps:
                context = step.run(context)
                if context.outcome is not None:
                    break
        except Exception as exc:
            if not context.claimed:
                raise
            context.error_message = f"{type(exc).__name__}: {exc}"
            context = self._failed_step.run(context)
            if not is_retryable(exc):
                raise
        if context.outcome is None:
            raise RuntimeError(f"Pipeline for check {context.check_id} ended without an outcome")
        return context.outcome


def build_pipeline(
    settings: Settings,
    *,
    check_store: BaseCheckStore | None = None,
    document_store: BaseDocumentStore | None = None,
    extractor: BaseExtractor | None = None,
    cipher: Cipher | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> VerificationPipeline:
    """Build a VerificationPipeline with all required adapters."""
    store = check_store if check_store is not None else CheckRepository()
    documents = (
        document_store if document_store is not None else DocumentStoreFactory.create(settings)
    )
    reader = extractor if extractor is not None else ExtractorFactory.create(settings)
    sealer = cipher if cipher is not None else Cipher.from_hex(settings.encryption_key)

    step_retry = RetryPolicy.from_settings(settings, timeout_seconds=settings.step_timeout_seconds)
    extract_retry = RetryPolicy.from_settings(
        settings, timeout_seconds=settings.extraction_timeout_seconds
    )
    steps: list[PipelineStep] = [
        FetchCheckStep(
            store,
            step_retry,
            analyzing_lease=timedelta(seconds=settings.analyzing_lease_seconds),
            clock=clock,
        ),
        MarkAnalyzingStep(store, step_retry),
        ResolveReferenceStep(documents, step_retry),
        ExtractStep(reader, extract_retry),
        EvaluateStep(clock),
        SealAndPersistStep(store, sealer, step_retry),
    ]
    return VerificationPipeline(
        steps=steps,
        failed_step=MarkProcessingErrorStep(store, step_retry),
    )
