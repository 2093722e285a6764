from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from idcheck.storage.base import BaseDocumentStore
from idcheck.storage.exceptions import StorageUnavailable
from idcheck.storage.models import RetrievalReference


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalDocumentStore(BaseDocumentStore):
    """Filesystem-backed document store for local development.

    URLs are plain file:// URIs, so only the simulated extractor can use them.
    """

    FILES_ROOT = Path("/app/files")

    def __init__(
        self,
        files_root: Path | None = None,
        *,
        download_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._download_ttl_seconds = download_ttl_seconds
        self._clock = clock

    def stage_retrieval_reference(self, file_key: str) -> RetrievalReference:
        path = self._resolve_path(file_key)
        if not path.is_file():
            raise StorageUnavailable(f"Object not found: {file_key}")
        return RetrievalReference(
            url=path.as_uri(),
            valid_until=self._clock() + timedelta(seconds=self._download_ttl_seconds),
        )

    def create_upload_url(self, file_key: str, content_type: str) -> str:
        _ = content_type
        path = self._resolve_path(file_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.as_uri()

    def _resolve_path(self, file_key: str) -> Path:
        root = self._files_root.resolve()
        path = (root / file_key).resolve()
        if not path.is_relative_to(root):
            raise ValueError(f"File key escapes storage root: {file_key}")
        return path
