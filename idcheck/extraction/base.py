from abc import ABC, abstractmethod

from idcheck.extraction.models import ExtractedFields


class BaseExtractor(ABC):
    """Contract for all extraction adapters."""

    @abstractmethod
    def extract(self, document_url: str) -> ExtractedFields:
        """Read identity fields from a staged document.

        Must have no side effects on the source object, so it is safe to call
        repeatedly with the same URL.

        Args:
            document_url: Time-limited retrieval URL for the document.

        Returns:
            ExtractedFields read from the document.

        Raises:
            ExtractionFailed: if the document is unreadable or unsupported.
            ExtractionTimeout: if the backend did not answer in time.
            ExtractionUnavailable: on transient backend failures.
        """
