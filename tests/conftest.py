from collections.abc import Generator

import pytest

from idcheck.config.settings import Settings
from idcheck.security.cipher import Cipher
from tests.support import TEST_KEY_HEX, InMemoryCheckStore


@pytest.fixture(autouse=True)
def _encryption_key_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("ENCRYPTION_KEY", TEST_KEY_HEX)
    yield


@pytest.fixture()
def cipher() -> Cipher:
    return Cipher.from_hex(TEST_KEY_HEX)


@pytest.fixture()
def settings() -> Settings:
    """Settings with instant backoff so retry tests do not sleep."""
    return Settings(
        encryption_key=TEST_KEY_HEX,
        step_max_attempts=5,
        step_backoff_initial_seconds=0.0,
        step_backoff_max_seconds=0.0,
        step_timeout_seconds=5.0,
        extraction_timeout_seconds=5.0,
        analyzing_lease_seconds=900,
        extraction_provider="simulated",
        extraction_simulated_delay_seconds=0.0,
        storage_backend="local",
    )


@pytest.fixture()
def check_store() -> InMemoryCheckStore:
    return InMemoryCheckStore()
