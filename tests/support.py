"""Shared test doubles and builders."""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from idcheck.checks.exceptions import CheckNotFoundError, ConflictError
from idcheck.checks.models import Check
from idcheck.checks.state import CheckStatus
from idcheck.database.repositories.base import BaseCheckStore, validate_status_write

TEST_KEY_HEX = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
OTHER_KEY_HEX = "ffeeddccbbaa99887766554433221100ffeeddccbbaa99887766554433221100"
NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryCheckStore(BaseCheckStore):
    """Check store with the same compare-and-set contract as CheckRepository."""

    def __init__(self, clock: Callable[[], datetime] = lambda: NOW) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._checks: dict[str, Check] = {}
        self.history: dict[str, list[CheckStatus]] = {}
        self.payload_writes: dict[str, int] = {}

    def add(self, check: Check) -> Check:
        with self._lock:
            self._checks[check.id] = check
            self.history[check.id] = [check.status]
            self.payload_writes[check.id] = 0
        return check

    def load(self, check_id: str) -> Check:
        with self._lock:
            check = self._checks.get(check_id)
        if check is None:
            raise CheckNotFoundError(f"Check {check_id} not found")
        return check

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
        validate_status_write(expected, new, encrypted_payload)
        with self._lock:
            current = self._checks.get(check_id)
            if (
                current is None
                or current.status is not expected
                or current.document_ref is None
                or (expected_updated_at is not None and current.updated_at != expected_updated_at)
            ):
                raise ConflictError(f"Check {check_id} is no longer {expected.value}")
            updated = replace(
                current,
                status=new,
                note=note if note is not None else current.note,
                encrypted_payload=(
                    encrypted_payload if encrypted_payload is not None else current.encrypted_payload
                ),
                updated_at=self._next_timestamp(current.updated_at),
            )
            self._checks[check_id] = updated
            self.history[check_id].append(new)
            if encrypted_payload is not None:
                self.payload_writes[check_id] += 1
        return updated

    def _next_timestamp(self, previous: datetime | None) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            return previous + timedelta(microseconds=1)
        return now


def make_check(
    *,
    check_id: str = "check-1",
    status: CheckStatus = CheckStatus.PENDING,
    document_ref: str | None = "checks/check-1/1704110400000-passport.jpg",
    encrypted_payload: str | None = None,
    note: str | None = None,
    updated_at: datetime = NOW,
) -> Check:
    return Check(
        id=check_id,
        owner_id="owner-1",
        status=status,
        access_token="tok_secret_value",
        document_ref=document_ref,
        encrypted_payload=encrypted_payload,
        note=note,
        created_at=updated_at,
        updated_at=updated_at,
    )


