import re
from abc import ABC, abstractmethod
from datetime import datetime

from idcheck.storage.models import RetrievalReference

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def generate_file_key(check_id: str, filename: str, now: datetime) -> str:
    """Build the object key for an upload: checks/{check_id}/{epoch_ms}-{filename}"""
    timestamp = int(now.timestamp() * 1000)
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    return f"checks/{check_id}/{timestamp}-{sanitized}"


class BaseDocumentStore(ABC):
    """Contract for staging uploaded documents and minting access URLs."""

    @abstractmethod
    def stage_retrieval_reference(self, file_key: str) -> RetrievalReference:
        """Produce a time-limited read URL for a staged document.

        Raises:
            StorageUnavailable: if the object is missing or the service is unreachable.
        """

    @abstractmethod
    def create_upload_url(self, file_key: str, content_type: str) -> str:
        """Produce a time-limited URL the subject can upload the document to."""
