"""Operator and subject workflow around a check.

Authentication is handled by the caller; every method here trusts the ids it
is given.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from idcheck.checks.models import Check, CreatedCheck, PublicCheckView, UploadTicket
from idcheck.config.settings import Settings
from idcheck.database.repositories.check_repository import CheckRepository
from idcheck.database.repositories.event_repository import EventRepository
from idcheck.database.repositories.owner_repository import OwnerRepository
from idcheck.extraction.models import ExtractedFields
from idcheck.logging.logger import Log
from idcheck.pipeline.exceptions import PreconditionFailed
from idcheck.security.cipher import Cipher
from idcheck.storage.base import BaseDocumentStore, generate_file_key
from idcheck.storage.factory import DocumentStoreFactory


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckService:
    def __init__(
        self,
        *,
        check_repo: CheckRepository,
        owner_repo: OwnerRepository,
        event_repo: EventRepository,
        document_store: BaseDocumentStore,
        cipher: Cipher,
        app_base_url: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._check_repo = check_repo
        self._owner_repo = owner_repo
        self._event_repo = event_repo
        self._document_store = document_store
        self._cipher = cipher
        self._app_base_url = app_base_url.rstrip("/")
        self._clock = clock

    def create_check(self, owner_external_id: str, email: str = "") -> CreatedCheck:
        """Create a pending check and the one-time link for the subject.

        Raises:
            AccessTokenCollisionError: if the generated token is already taken.
        """
        owner = self._owner_repo.get_or_create(owner_external_id, email)
        check = self._check_repo.create(owner.id)
        Log.info(f"Created check {check.id} for owner {owner.id}")
        return CreatedCheck(
            check_id=check.id,
            access_token=check.access_token,
            verify_url=f"{self._app_base_url}/verify/{check.access_token}",
        )

    def issue_upload_url(self, check_id: str, filename: str, content_type: str) -> UploadTicket:
        """Register the upload location for a check and sign an upload URL.

        Raises:
            CheckNotFoundError: if the check does not exist.
            DocumentAlreadyRegisteredError: if the check already has a document.
        """
        file_key = generate_file_key(check_id, filename, self._clock())
        self._check_repo.attach_document(check_id, file_key)
        upload_url = self._document_store.create_upload_url(file_key, content_type)
        Log.info(f"Issued upload URL for check {check_id}")
        return UploadTicket(upload_url=upload_url, file_key=file_key)

    def complete_upload(self, check_id: str) -> int:
        """Publish the upload-completed trigger for a check.

        Raises:
            PreconditionFailed: if no upload was registered for the check.
        """
        check = self._check_repo.load(check_id)
        if check.document_ref is None:
            raise PreconditionFailed(f"Check {check_id} has no registered upload")
        event_id = self._event_repo.publish(check.id)
        Log.info(f"Published upload.completed event {event_id} for check {check.id}")
        return event_id

    def get_public_status(self, access_token: str) -> PublicCheckView:
        """Coarse status for the subject holding the access token."""
        check = self._check_repo.find_by_access_token(access_token)
        return PublicCheckView(id=check.id, status=check.status, created_at=check.created_at)

    def list_checks(self, owner_external_id: str) -> list[Check]:
        owner = self._owner_repo.find_by_external_id(owner_external_id)
        if owner is None:
            return []
        return self._check_repo.list_for_owner(owner.id)

    def reveal_extracted_fields(self, check_id: str) -> ExtractedFields | None:
        """Decrypt the stored fields of a finished check for its operator.

        Returns None when the check has no payload (unfinished or unreadable).

        Raises:
            IntegrityError: if the payload fails authentication.
            FormatError: if the payload is not a valid envelope.
        """
        check = self._check_repo.load(check_id)
        if check.encrypted_payload is None:
            return None
        return ExtractedFields.from_dict(self._cipher.open_json(check.encrypted_payload))


def build_check_service(settings: Settings) -> CheckService:
    """Build a CheckService over the PostgreSQL repositories and configured storage."""
    return CheckService(
        check_repo=CheckRepository(),
        owner_repo=OwnerRepository(),
        event_repo=EventRepository(settings.max_event_attempts, settings.analyzing_lease_seconds),
        document_store=DocumentStoreFactory.create(settings),
        cipher=Cipher.from_hex(settings.encryption_key),
        app_base_url=settings.app_base_url,
    )
