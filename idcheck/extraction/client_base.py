from abc import ABC, abstractmethod


class BaseExtractionClient(ABC):
    """Contract for provider-specific document reading clients."""

    @abstractmethod
    def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        image_url: str,
        json_schema: dict[str, object],
    ) -> str:
        """Return provider response as plain text."""
