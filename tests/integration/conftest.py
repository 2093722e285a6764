import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from idcheck.checks.models import Check
from idcheck.config.settings import Settings
from idcheck.database.connection import close_pool, get_connection, init_pool
from idcheck.database.repositories.check_repository import CheckRepository
from idcheck.database.repositories.event_repository import EventRepository
from idcheck.database.repositories.owner_repository import OwnerRepository
from tests.support import TEST_KEY_HEX

_SCHEMA = Path(__file__).resolve().parents[2] / "idcheck" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "idcheck_test")
    return Settings(
        encryption_key=os.environ.get("ENCRYPTION_KEY") or TEST_KEY_HEX,
        step_backoff_initial_seconds=0.0,
        step_backoff_max_seconds=0.0,
        extraction_simulated_delay_seconds=0.0,
        storage_backend="local",
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        with psycopg.connect(
            host=test_settings.db_host,
            port=test_settings.db_port,
            dbname=test_settings.db_database,
            user=test_settings.db_username,
            password=test_settings.db_password,
            connect_timeout=3,
        ) as conn:
            conn.execute(_SCHEMA.read_text(encoding="utf-8"))
            conn.commit()
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    init_pool(test_settings)
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Collects owner external ids; their checks cascade on delete."""
    owners: list[str] = []
    yield owners
    with get_connection() as conn:
        for external_id in owners:
            conn.execute(
                """
                DELETE FROM verification_events
                WHERE payload->>'checkId' IN (
                    SELECT c.id::text FROM checks c
                    JOIN owners o ON o.id = c.owner_id
                    WHERE o.external_id = %s
                )
                """,
                (external_id,),
            )
            conn.execute("DELETE FROM owners WHERE external_id = %s", (external_id,))
        conn.commit()


@pytest.fixture
def owner_id(integration_cleanup: list[str]) -> str:
    external_id = f"user_{os.urandom(6).hex()}"
    integration_cleanup.append(external_id)
    return OwnerRepository().get_or_create(external_id, "agent@example.com").id


@pytest.fixture
def seed_check(owner_id: str) -> Check:
    """A pending check with a registered document."""
    repo = CheckRepository()
    check = repo.create(owner_id)
    return repo.attach_document(check.id, f"checks/{check.id}/1704110400000-passport.jpg")


@pytest.fixture
def event_repo(test_settings: Settings) -> EventRepository:
    return EventRepository(test_settings.max_event_attempts, test_settings.analyzing_lease_seconds)
