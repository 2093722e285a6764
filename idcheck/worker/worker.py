import time

from idcheck.config.settings import Settings
from idcheck.database.connection import get_connection
from idcheck.database.models import EventRecord
from idcheck.database.repositories.event_repository import EventRepository
from idcheck.logging.logger import Log
from idcheck.worker.event_runner import EventRunner


class Worker:
    """Poll loop: sleep -> claim -> dispatch."""

    def __init__(
        self,
        event_repo: EventRepository,
        event_runner: EventRunner,
        settings: Settings,
    ) -> None:
        self._event_repo = event_repo
        self._event_runner = event_runner
        self._settings = settings

    def run(self, max_events: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_events is set, stop after processing that many events (for testing).
        """
        Log.info("Worker started, polling for verification events")
        events_done = 0
        try:
            while True:
                if max_events is not None and events_done >= max_events:
                    break
                event = self._try_claim_event()
                if event:
                    self._event_runner.run(event)
                    events_done += 1
                else:
                    Log.debug("No events available, sleeping")
                    time.sleep(self._settings.event_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_claim_event(self) -> EventRecord | None:
        """Attempt to claim the next pending event. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._event_repo.claim_next_event(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
