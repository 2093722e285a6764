from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from idcheck.config.settings import Settings
from idcheck.storage.base import BaseDocumentStore
from idcheck.storage.exceptions import StorageUnavailable
from idcheck.storage.models import RetrievalReference

_MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class R2DocumentStore(BaseDocumentStore):
    """Cloudflare R2 (S3-compatible) document store using presigned URLs."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        *,
        download_ttl_seconds: int = 3600,
        upload_ttl_seconds: int = 900,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._download_ttl_seconds = download_ttl_seconds
        self._upload_ttl_seconds = upload_ttl_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "R2DocumentStore":
        client = boto3.client(
            "s3",
            endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=BotoConfig(signature_version="s3v4"),
        )
        return cls(
            client,
            settings.r2_bucket_name,
            download_ttl_seconds=settings.download_url_ttl_seconds,
            upload_ttl_seconds=settings.upload_url_ttl_seconds,
        )

    def stage_retrieval_reference(self, file_key: str) -> RetrievalReference:
        try:
            self._client.head_object(Bucket=self._bucket, Key=file_key)
            url = self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": file_key},
                ExpiresIn=self._download_ttl_seconds,
            )
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                raise StorageUnavailable(f"Object not found: {file_key}") from exc
            raise StorageUnavailable(f"Object storage error ({code}): {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailable(f"Object storage unreachable: {exc}") from exc
        return RetrievalReference(
            url=url,
            valid_until=self._clock() + timedelta(seconds=self._download_ttl_seconds),
        )

    def create_upload_url(self, file_key: str, content_type: str) -> str:
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": file_key,
                    "ContentType": content_type,
                },
                ExpiresIn=self._upload_ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailable(f"Could not sign upload URL: {exc}") from exc
