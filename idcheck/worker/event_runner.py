from idcheck.checks.exceptions import CheckNotFoundError
from idcheck.config.settings import Settings
from idcheck.database.models import EventRecord
from idcheck.database.repositories.event_repository import EventRepository
from idcheck.logging.logger import Log
from idcheck.pipeline.exceptions import PreconditionFailed
from idcheck.pipeline.models import TriggerEvent
from idcheck.pipeline.processor import VerificationPipeline
from idcheck.security.exceptions import CipherError

# Operator-facing failures: retrying the event cannot fix them.
FATAL_ERRORS: tuple[type[Exception], ...] = (
    PreconditionFailed,
    CheckNotFoundError,
    CipherError,
    ValueError,
)


class EventRunner:
    """Run one trigger event, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        pipeline: VerificationPipeline,
        event_repo: EventRepository,
        settings: Settings,
    ) -> None:
        self._pipeline = pipeline
        self._event_repo = event_repo
        self._settings = settings

    def run(self, event: EventRecord) -> None:
        """Execute a single event with error handling."""
        Log.info(f"Running event {event.id} '{event.name}' (attempt {event.attempts + 1})")
        try:
            trigger = TriggerEvent.from_payload(event.payload)
            outcome = self._pipeline.process(trigger.check_id)
            if not outcome.status.is_terminal:
                self._defer(event, outcome.check_id)
                return
            self._event_repo.mark_done(event.id)
            Log.info(
                f"Event {event.id} completed: check {outcome.check_id} is "
                f"{outcome.status.value}{' (replayed)' if outcome.replayed else ''}"
            )
        except FATAL_ERRORS as exc:
            self._event_repo.mark_failed(event.id, str(exc))
            Log.error(f"Event {event.id} failed permanently: {type(exc).__name__}: {exc}")
        except Exception as exc:
            self._handle_failure(event, exc)

    def _handle_failure(self, event: EventRecord, exc: Exception) -> None:
        """Increment attempts; mark failed if at max, otherwise back to pending."""
        Log.error(f"Event {event.id} failed: {exc}")
        if event.attempts + 1 >= self._settings.max_event_attempts:
            self._event_repo.mark_failed(event.id, str(exc))
            Log.error(f"Event {event.id} permanently failed after {event.attempts + 1} attempts")
        else:
            self._event_repo.increment_attempts(event.id)
            Log.warning(f"Event {event.id} will be retried (attempt {event.attempts + 1})")

    def _defer(self, event: EventRecord, check_id: str) -> None:
        """Redeliver once the analysis lease has run out.

        The check is analyzing under a claim this run does not hold. If that
        run finishes, the redelivery is absorbed; if it was lost, the expired
        lease lets the redelivery take the check over.
        """
        delay = self._settings.analyzing_lease_seconds
        self._event_repo.defer(event.id, delay)
        Log.info(f"Event {event.id} deferred {delay}s: check {check_id} is still analyzing")
