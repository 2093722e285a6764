"""Validates the parsed provider response and builds ExtractedFields."""

from dataclasses import fields
from typing import Any

from idcheck.extraction.exceptions import ExtractionFailed
from idcheck.extraction.models import ExtractedFields

_FIELD_NAMES = tuple(f.name for f in fields(ExtractedFields))
_MAX_FIELD_LENGTH = 200


def validate_and_build(data: dict[str, Any]) -> ExtractedFields:
    """Validate a provider response and build ExtractedFields.

    Missing values are allowed here; the compliance policy decides whether
    they matter.

    Raises:
        ExtractionFailed: if the document was reported unreadable or the
            response does not have the expected shape.
    """
    readable = data.get("readable")
    if not isinstance(readable, bool):
        raise ExtractionFailed("Malformed extraction response: 'readable' must be a boolean")
    if not readable:
        reason = data.get("reason")
        if not isinstance(reason, str) or not reason.strip():
            reason = "Document could not be read"
        raise ExtractionFailed(reason.strip())
    return ExtractedFields(**_build_values(data.get("fields")))


def _build_values(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise ExtractionFailed("Malformed extraction response: 'fields' must be an object")
    values: dict[str, str] = {}
    for name in _FIELD_NAMES:
        value = raw.get(name)
        if value is None:
            values[name] = ""
            continue
        if not isinstance(value, str):
            raise ExtractionFailed(
                f"Malformed extraction response: '{name}' must be a string or null"
            )
        if len(value) > _MAX_FIELD_LENGTH:
            raise ExtractionFailed(
                f"Malformed extraction response: '{name}' exceeds {_MAX_FIELD_LENGTH} chars"
            )
        values[name] = value.strip()
    return values
