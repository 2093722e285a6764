from pathlib import Path

from idcheck.config.settings import Settings
from idcheck.storage.base import BaseDocumentStore
from idcheck.storage.local_adapter import LocalDocumentStore
from idcheck.storage.r2_adapter import R2DocumentStore


class DocumentStoreFactory:
    """Creates the configured document store adapter."""

    BACKENDS = ("r2", "local")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentStore:
        backend = settings.storage_backend.lower()
        if backend == "r2":
            return R2DocumentStore.from_settings(settings)
        if backend == "local":
            return LocalDocumentStore(
                Path(settings.local_files_root),
                download_ttl_seconds=settings.download_url_ttl_seconds,
            )
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
