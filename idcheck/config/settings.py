import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HEX_KEY_RE = re.compile(r"[0-9a-fA-F]{64}")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    app_base_url: str = "http://localhost:3000"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "idcheck"
    db_username: str = "idcheck"
    db_password: str = "secret"

    encryption_key: str

    max_event_attempts: int = 3
    event_poll_interval_seconds: int = 5

    step_max_attempts: int = 5
    step_backoff_initial_seconds: float = 1.0
    step_backoff_max_seconds: float = 30.0
    step_timeout_seconds: float = 30.0
    extraction_timeout_seconds: float = 120.0
    analyzing_lease_seconds: int = 900

    storage_backend: str = "r2"
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = ""
    local_files_root: str = "/app/files"
    download_url_ttl_seconds: int = 3600
    upload_url_ttl_seconds: int = 900

    extraction_provider: str = "simulated"
    extraction_simulated_delay_seconds: float = 3.0
    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = "gpt-4o-mini"
    extraction_openai_base_url: str | None = None
    extraction_openai_timeout_seconds: int = 60
    extraction_openai_temperature: float = 0.0

    @field_validator("encryption_key")
    @classmethod
    def _validate_encryption_key(cls, value: str) -> str:
        if not _HEX_KEY_RE.fullmatch(value):
            raise ValueError("encryption_key must be 64 hex characters (32 bytes)")
        return value.lower()
