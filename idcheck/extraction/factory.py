from idcheck.config.settings import Settings
from idcheck.extraction.base import BaseExtractor
from idcheck.extraction.extractor import Extractor
from idcheck.extraction.openai_client_adapter import OpenAIClientAdapter
from idcheck.extraction.simulated_client_adapter import SimulatedClientAdapter


class ExtractorFactory:
    """Creates the configured extraction backend."""

    PROVIDERS = ("simulated", "openai", "openai_compatible")

    @classmethod
    def create(cls, settings: Settings) -> BaseExtractor:
        """Create a configured extractor from application settings."""
        provider = settings.extraction_provider.lower()
        if provider == "simulated":
            return Extractor(
                client=SimulatedClientAdapter(
                    delay_seconds=settings.extraction_simulated_delay_seconds
                ),
                model="simulated",
            )
        client = OpenAIClientAdapter(
            api_key=settings.extraction_openai_api_key,
            timeout_seconds=settings.extraction_openai_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )
        return Extractor(
            client=client,
            model=settings.extraction_openai_model_name,
            temperature=settings.extraction_openai_temperature,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.extraction_openai_base_url or "").strip()
            if not url:
                raise ValueError(
                    "extraction_openai_base_url is required for "
                    "extraction_provider=openai_compatible"
                )
            return url
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
