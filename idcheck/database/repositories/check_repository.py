import secrets
from collections.abc import Callable
from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row

from idcheck.checks.exceptions import (
    AccessTokenCollisionError,
    CheckNotFoundError,
    ConflictError,
    DocumentAlreadyRegisteredError,
    StoreUnavailable,
)
from idcheck.checks.models import Check
from idcheck.checks.state import CheckStatus
from idcheck.database.connection import get_connection
from idcheck.database.repositories.base import BaseCheckStore, validate_status_write

_COLUMNS = """
    id, owner_id, status, access_token, document_ref,
    encrypted_payload, note, created_at, updated_at
"""


def _new_access_token() -> str:
    return secrets.token_urlsafe(32)


class CheckRepository(BaseCheckStore):
    """Database operations for the checks table."""

    def __init__(self, token_factory: Callable[[], str] = _new_access_token) -> None:
        self._token_factory = token_factory

    def load(self, check_id: str) -> Check:
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM checks WHERE id = %s",
            (check_id,),
        )
        if row is None:
            raise CheckNotFoundError(f"Check {check_id} not found")
        return self._to_check(row)

    def find_by_access_token(self, access_token: str) -> Check:
        """Find a check by its subject access token.

        Raises:
            CheckNotFoundError: if no check carries this token. The message
                never contains the token.
        """
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM checks WHERE access_token = %s",
            (access_token,),
        )
        if row is None:
            raise CheckNotFoundError("No check matches the presented access token")
        return self._to_check(row)

    def list_for_owner(self, owner_id: str) -> list[Check]:
        """Return all checks of an owner, newest first."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_COLUMNS} FROM checks
                        WHERE owner_id = %s
                        ORDER BY created_at DESC
                        """,
                        (owner_id,),
                    )
                    rows = cur.fetchall()
        except psycopg.OperationalError as exc:
            raise StoreUnavailable(f"Check store unavailable: {exc}") from exc
        return [self._to_check(row) for row in rows]

    def create(self, owner_id: str) -> Check:
        """Insert a new pending check with a fresh access token.

        Raises:
            AccessTokenCollisionError: if the generated token is already in use.
        """
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO checks (owner_id, status, access_token)
                        VALUES (%s, 'pending', %s)
                        RETURNING {_COLUMNS}
                        """,
                        (owner_id, self._token_factory()),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.errors.UniqueViolation as exc:
            raise AccessTokenCollisionError(
                "Generated access token already exists; check not created"
            ) from exc
        except psycopg.OperationalError as exc:
            raise StoreUnavailable(f"Check store unavailable: {exc}") from exc
        if row is None:
            raise RuntimeError("INSERT ... RETURNING produced no row")
        return self._to_check(row)

    def attach_document(self, check_id: str, document_ref: str) -> Check:
        """Set the document reference of a pending check. Set-once.

        Raises:
            CheckNotFoundError: if no check with this id exists.
            DocumentAlreadyRegisteredError: if a document is already attached
                or the check has left pending.
        """
        row = self._fetch_one(
            f"""
            UPDATE checks
            SET document_ref = %s, updated_at = NOW()
            WHERE id = %s AND document_ref IS NULL AND status = 'pending'
            RETURNING {_COLUMNS}
            """,
            (document_ref, check_id),
            commit=True,
        )
        if row is None:
            self.load(check_id)
            raise DocumentAlreadyRegisteredError(
                f"Check {check_id} already has a document; create a new check"
            )
        return self._to_check(row)

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
        row = self._fetch_one(
            f"""
            UPDATE checks
            SET status = %s::check_status,
                note = COALESCE(%s, note),
                encrypted_payload = COALESCE(%s, encrypted_payload),
                updated_at = NOW()
            WHERE id = %s
              AND status = %s::check_status
              AND document_ref IS NOT NULL
              AND (%s::timestamptz IS NULL OR updated_at = %s::timestamptz)
            RETURNING {_COLUMNS}
            """,
            (
                new.value,
                note,
                encrypted_payload,
                check_id,
                expected.value,
                expected_updated_at,
                expected_updated_at,
            ),
            commit=True,
        )
        if row is None:
            raise ConflictError(
                f"Check {check_id} is no longer {expected.value}; "
                f"transition to {new.value} not applied"
            )
        return self._to_check(row)

    @staticmethod
    def _fetch_one(
        query: str,
        params: tuple[Any, ...],
        *,
        commit: bool = False,
    ) -> dict[str, Any] | None:
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
                if commit:
                    conn.commit()
        except psycopg.OperationalError as exc:
            raise StoreUnavailable(f"Check store unavailable: {exc}") from exc
        return row

    @staticmethod
    def _to_check(row: dict[str, Any]) -> Check:
        return Check(
            id=str(row["id"]),
            owner_id=str(row["owner_id"]),
            status=CheckStatus(row["status"]),
            access_token=row["access_token"],
            document_ref=row["document_ref"],
            encrypted_payload=row["encrypted_payload"],
            note=row["note"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
