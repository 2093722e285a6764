from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from idcheck.checks.models import Check
from idcheck.checks.state import CheckStatus


@dataclass(frozen=True)
class TriggerEvent:
    """An at-least-once delivered request to process one check."""

    check_id: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TriggerEvent":
        """Parse ``{"checkId": ...}`` (``check_id`` is accepted too).

        Raises:
            ValueError: if no usable check id is present.
        """
        check_id = payload.get("checkId", payload.get("check_id"))
        if not isinstance(check_id, str) or not check_id.strip():
            raise ValueError("Trigger payload must carry a non-empty 'checkId'")
        return cls(check_id=check_id.strip())


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of one pipeline run.

    ``replayed`` is True when the run did no new work and only re-observed
    the persisted state (terminal check, run in progress elsewhere, or a lost
    compare-and-set race).
    """

    check_id: str
    status: CheckStatus
    note: str | None = None
    replayed: bool = False

    @classmethod
    def observed(cls, check: Check) -> "PipelineOutcome":
        return cls(check_id=check.id, status=check.status, note=check.note, replayed=True)

    @classmethod
    def completed(cls, check: Check) -> "PipelineOutcome":
        return cls(check_id=check.id, status=check.status, note=check.note, replayed=False)
