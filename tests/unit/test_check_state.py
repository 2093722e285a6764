import pytest

from idcheck.checks.exceptions import InvalidTransitionError
from idcheck.checks.state import CheckStatus, can_transition, ensure_transition

_ALLOWED = {
    (CheckStatus.PENDING, CheckStatus.ANALYZING),
    (CheckStatus.ANALYZING, CheckStatus.ANALYZING),
    (CheckStatus.ANALYZING, CheckStatus.CLEAR),
    (CheckStatus.ANALYZING, CheckStatus.REJECTED),
}


class TestCheckStatus:
    def test_values_match_stored_strings(self) -> None:
        assert [s.value for s in CheckStatus] == ["pending", "analyzing", "clear", "rejected"]

    def test_terminal_statuses(self) -> None:
        assert CheckStatus.CLEAR.is_terminal
        assert CheckStatus.REJECTED.is_terminal
        assert not CheckStatus.PENDING.is_terminal
        assert not CheckStatus.ANALYZING.is_terminal


class TestTransitions:
    @pytest.mark.parametrize("current", list(CheckStatus))
    @pytest.mark.parametrize("new", list(CheckStatus))
    def test_transition_table(self, current: CheckStatus, new: CheckStatus) -> None:
        assert can_transition(current, new) is ((current, new) in _ALLOWED)

    def test_ensure_transition_allows_forward_move(self) -> None:
        ensure_transition(CheckStatus.PENDING, CheckStatus.ANALYZING)

    def test_ensure_transition_rejects_leaving_terminal(self) -> None:
        with pytest.raises(InvalidTransitionError, match="clear -> analyzing"):
            ensure_transition(CheckStatus.CLEAR, CheckStatus.ANALYZING)

    def test_ensure_transition_rejects_skipping_analysis(self) -> None:
        with pytest.raises(InvalidTransitionError):
            ensure_transition(CheckStatus.PENDING, CheckStatus.CLEAR)
