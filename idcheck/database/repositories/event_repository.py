from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from idcheck.database.connection import get_connection
from idcheck.database.models import EventRecord

UPLOAD_COMPLETED = "upload.completed"


class EventRepository:
    """Database operations for the verification_events table."""

    def __init__(self, max_attempts: int, lease_seconds: int) -> None:
        self._max_attempts = max_attempts
        self._lease_seconds = lease_seconds

    def publish(self, check_id: str, name: str = UPLOAD_COMPLETED) -> int:
        """Enqueue a trigger event for a check and return its id."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO verification_events (name, payload, status, attempts)
                    VALUES (%s, %s, 'pending', 0)
                    RETURNING id
                    """,
                    (name, Jsonb({"checkId": check_id})),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError("INSERT ... RETURNING produced no row")
        return int(row[0])

    def claim_next_event(self, conn: psycopg.Connection[Any]) -> EventRecord | None:
        """Claim the next due event using SELECT FOR UPDATE SKIP LOCKED.

        A pending event is due once its available_at has passed. An event left
        in processing longer than the lease belongs to a worker that died; it
        is reclaimed and the lost run counts as an attempt.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM verification_events
                WHERE attempts < %s
                  AND (
                    (status = 'pending' AND available_at <= NOW())
                    OR (status = 'processing'
                        AND locked_at < NOW() - make_interval(secs => %s))
                  )
                ORDER BY available_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts, self._lease_seconds),
            )
            row = cur.fetchone()
            if row is None:
                return None

            cur.execute(
                """
                UPDATE verification_events
                SET attempts = attempts + CASE WHEN status = 'processing' THEN 1 ELSE 0 END,
                    status = 'processing', locked_at = NOW(), updated_at = NOW()
                WHERE id = %s
                RETURNING id, name, payload, status, attempts
                """,
                (row["id"],),
            )
            claimed = cur.fetchone()
        conn.commit()

        if claimed is None:
            raise RuntimeError("UPDATE ... RETURNING produced no row")
        return EventRecord(
            id=claimed["id"],
            name=claimed["name"],
            payload=claimed["payload"],
            status=claimed["status"],
            attempts=claimed["attempts"],
        )

    def mark_done(self, event_id: int) -> None:
        """Mark an event as done."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE verification_events
                SET status = 'done', updated_at = NOW()
                WHERE id = %s
                """,
                (event_id,),
            )
            conn.commit()

    def mark_failed(self, event_id: int, error: str) -> None:
        """Mark an event as permanently failed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE verification_events
                SET status = 'failed', error_message = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (error, event_id),
            )
            conn.commit()

    def defer(self, event_id: int, delay_seconds: int) -> None:
        """Return an event to pending, due again after delay_seconds.

        The attempt count is left alone: the run did not fail, its check was
        still being analyzed.
        """
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE verification_events
                SET status = 'pending', locked_at = NULL,
                    available_at = NOW() + make_interval(secs => %s), updated_at = NOW()
                WHERE id = %s
                """,
                (delay_seconds, event_id),
            )
            conn.commit()

    def increment_attempts(self, event_id: int) -> None:
        """Increment attempt count and return event to pending."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE verification_events
                SET attempts = attempts + 1, status = 'pending',
                    locked_at = NULL, available_at = NOW(), updated_at = NOW()
                WHERE id = %s
                """,
                (event_id,),
            )
            conn.commit()

    def find_by_id(self, event_id: int) -> EventRecord | None:
        """Find an event by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, name, payload, status, attempts,
                           error_message, locked_at, available_at, created_at, updated_at
                    FROM verification_events
                    WHERE id = %s
                    """,
                    (event_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return EventRecord(
            id=row["id"],
            name=row["name"],
            payload=row["payload"],
            status=row["status"],
            attempts=row["attempts"],
            error_message=row["error_message"],
            locked_at=row["locked_at"],
            available_at=row["available_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
