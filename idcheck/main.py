from idcheck.config.settings import Settings
from idcheck.database.connection import close_pool, init_pool
from idcheck.database.repositories.event_repository import EventRepository
from idcheck.logging.logger import Log
from idcheck.pipeline.processor import build_pipeline
from idcheck.worker.event_runner import EventRunner
from idcheck.worker.worker import Worker


def main() -> None:
    """Entry point: load settings -> initialize pool -> build pipeline -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        pipeline = build_pipeline(settings)
        event_repo = EventRepository(settings.max_event_attempts, settings.analyzing_lease_seconds)
        event_runner = EventRunner(pipeline, event_repo, settings)
        worker = Worker(event_repo, event_runner, settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
