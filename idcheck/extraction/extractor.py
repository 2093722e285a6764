"""Identity document extractor backed by a pluggable reading client."""

import json
from pathlib import Path

from idcheck.extraction.base import BaseExtractor
from idcheck.extraction.client_base import BaseExtractionClient
from idcheck.extraction.exceptions import ExtractionFailed
from idcheck.extraction.models import ExtractedFields
from idcheck.extraction.prompt_loader import load_json_schema, load_prompt_template
from idcheck.extraction.validator import validate_and_build
from idcheck.logging.logger import Log

_DEFAULT_SYSTEM_PROMPT = "You extract identity document fields and answer in strict JSON."


class Extractor(BaseExtractor):
    """Reads identity fields from a document image through an extraction client."""

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = _DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        schema_str = load_json_schema(json_schema_path)
        self._json_schema_dict = json.loads(schema_str)
        self._prompt = load_prompt_template(prompt_template_path).format(json_schema=schema_str)

    def extract(self, document_url: str) -> ExtractedFields:
        """Read identity fields from the document behind ``document_url``."""
        raw_response = self._client.create_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=self._prompt,
            image_url=document_url,
            json_schema=self._json_schema_dict,
        )
        result = validate_and_build(self._parse_json(raw_response))
        Log.info("Extraction complete")
        return result

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ExtractionFailed(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ExtractionFailed("JSON response must be an object")
        return parsed
