"""Check lifecycle: pending -> analyzing -> clear | rejected."""

from enum import Enum

from idcheck.checks.exceptions import InvalidTransitionError


class CheckStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    CLEAR = "clear"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckStatus.CLEAR, CheckStatus.REJECTED)


# analyzing -> analyzing only renews the lease of an abandoned run.
_TRANSITIONS: dict[CheckStatus, frozenset[CheckStatus]] = {
    CheckStatus.PENDING: frozenset({CheckStatus.ANALYZING}),
    CheckStatus.ANALYZING: frozenset(
        {CheckStatus.ANALYZING, CheckStatus.CLEAR, CheckStatus.REJECTED}
    ),
    CheckStatus.CLEAR: frozenset(),
    CheckStatus.REJECTED: frozenset(),
}


def can_transition(current: CheckStatus, new: CheckStatus) -> bool:
    return new in _TRANSITIONS[current]


def ensure_transition(current: CheckStatus, new: CheckStatus) -> None:
    """Raise InvalidTransitionError unless ``current -> new`` is allowed."""
    if not can_transition(current, new):
        raise InvalidTransitionError(
            f"Transition {current.value} -> {new.value} is not allowed"
        )
