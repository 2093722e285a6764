from abc import ABC, abstractmethod
from datetime import datetime

from idcheck.checks.models import Check
from idcheck.checks.state import CheckStatus, ensure_transition
from idcheck.security.cipher import Cipher


def validate_status_write(
    expected: CheckStatus,
    new: CheckStatus,
    encrypted_payload: str | None,
) -> None:
    """Guard shared by every store: lifecycle order and the no-plaintext rule."""
    ensure_transition(expected, new)
    if encrypted_payload is None:
        return
    if not new.is_terminal:
        raise ValueError("encrypted_payload may only be written on a terminal transition")
    if not Cipher.is_envelope(encrypted_payload):
        raise ValueError("encrypted_payload must be a sealed envelope")


class BaseCheckStore(ABC):
    """Persistence port for the check entity used by the verification pipeline."""

    @abstractmethod
    def load(self, check_id: str) -> Check:
        """Load a check by id.

        Raises:
            CheckNotFoundError: if no check with this id exists.
            StoreUnavailable: if the store cannot be reached.
        """

    @abstractmethod
    def compare_and_set_status(
        self,
        check_id: str,
        expected: CheckStatus,
        new: CheckStatus,
        *,
        note: str | None = None,
        encrypted_payload: str | None = None,
        expected_updated_at: datetime | None = None,
    ) -> Check:
        """Atomically move a check from ``expected`` to ``new``.

        The write only applies while the check is still in ``expected`` (and,
        when given, still carries ``expected_updated_at``). ``updated_at`` is
        advanced. A payload is only accepted on a terminal transition and only
        as a sealed envelope.

        Returns:
            The check as stored after the update.

        Raises:
            ConflictError: if the check is no longer in the expected state.
            InvalidTransitionError: if ``expected -> new`` is not allowed.
            StoreUnavailable: if the store cannot be reached.
        """
