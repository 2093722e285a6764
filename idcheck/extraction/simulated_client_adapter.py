"""Simulated extraction client.

Stands in for a real OCR backend during local development and tests.
Implement BaseExtractionClient and register the provider in ExtractorFactory
to add a real one.
"""

import json
import time
from typing import ClassVar

from idcheck.extraction.client_base import BaseExtractionClient


class SimulatedClientAdapter(BaseExtractionClient):
    """Waits for a configurable delay, then returns a fixed readable passport.

    No network calls, and the image URL is never fetched.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "readable": True,
        "reason": None,
        "fields": {
            "name": "John Smith",
            "document_number": "GB123456789",
            "date_of_birth": "1990-01-15",
            "nationality": "British",
            "expiry_date": "2030-12-31",
        },
    }

    def __init__(self, delay_seconds: float = 0.0) -> None:
        self._delay_seconds = delay_seconds

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
        _ = model, temperature, system_prompt, user_prompt, image_url, json_schema
        if self._delay_seconds > 0:
            time.sleep(self._delay_seconds)
        return json.dumps(self.DEFAULT_RESPONSE)
