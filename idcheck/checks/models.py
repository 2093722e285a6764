from dataclasses import dataclass, field
from datetime import datetime

from idcheck.checks.state import CheckStatus


@dataclass(frozen=True)
class Check:
    """Domain model for a row of the checks table."""

    id: str
    owner_id: str
    status: CheckStatus
    access_token: str = field(repr=False)
    document_ref: str | None = None
    encrypted_payload: str | None = field(default=None, repr=False)
    note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CreatedCheck:
    """Result of creating a check: what the operator hands to the subject."""

    check_id: str
    access_token: str = field(repr=False)
    verify_url: str = field(repr=False)


@dataclass(frozen=True)
class UploadTicket:
    upload_url: str = field(repr=False)
    file_key: str


@dataclass(frozen=True)
class PublicCheckView:
    """What the subject may see: coarse status only."""

    id: str
    status: CheckStatus
    created_at: datetime | None = None
