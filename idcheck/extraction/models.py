from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass(frozen=True, repr=False)
class ExtractedFields:
    """Identity fields read from a document.

    Lives only in process memory; persisted exclusively as a sealed envelope.
    """

    name: str = ""
    document_number: str = ""
    date_of_birth: str = ""
    nationality: str = ""
    expiry_date: str = ""

    def __repr__(self) -> str:
        return "ExtractedFields(<redacted>)"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractedFields":
        """Build from a decoded record. Unknown keys are ignored, missing or null become ''."""
        values = {}
        for f in fields(cls):
            raw = data.get(f.name)
            values[f.name] = "" if raw is None else str(raw)
        return cls(**values)
