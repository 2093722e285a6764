from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class EventRecord:
    """Represents a row from the verification_events table."""

    id: int
    name: str
    payload: dict[str, Any]
    status: str
    attempts: int
    error_message: str | None = None
    locked_at: datetime | None = None
    available_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class OwnerRecord:
    """Represents a row from the owners table."""

    id: str
    external_id: str
    email: str = field(default="", repr=False)
    created_at: datetime | None = None
