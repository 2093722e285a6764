from psycopg.rows import dict_row

from idcheck.database.connection import get_connection
from idcheck.database.models import OwnerRecord


class OwnerRepository:
    """Database operations for the owners table (requesting operators)."""

    def get_or_create(self, external_id: str, email: str = "") -> OwnerRecord:
        """Return the owner for an identity-provider user id, creating it on first use."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO owners (external_id, email)
                    VALUES (%s, %s)
                    ON CONFLICT (external_id) DO UPDATE
                        SET updated_at = owners.updated_at
                    RETURNING id, external_id, email, created_at
                    """,
                    (external_id, email),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError("INSERT ... RETURNING produced no row")
        return OwnerRecord(
            id=str(row["id"]),
            external_id=row["external_id"],
            email=row["email"],
            created_at=row["created_at"],
        )

    def find_by_external_id(self, external_id: str) -> OwnerRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, external_id, email, created_at
                    FROM owners
                    WHERE external_id = %s
                    """,
                    (external_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return OwnerRecord(
            id=str(row["id"]),
            external_id=row["external_id"],
            email=row["email"],
            created_at=row["created_at"],
        )
