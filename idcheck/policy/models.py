from dataclasses import dataclass


@dataclass(frozen=True)
class Verdict:
    """Outcome of the compliance policy."""

    accepted: bool
    reason: str | None = None

    @classmethod
    def accept(cls) -> "Verdict":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "Verdict":
        return cls(accepted=False, reason=reason)
