"""Object storage service for video files (Cloudflare R2, S3 API).

Videos never pass through the API. Admins upload straight to the bucket
with a presigned PUT URL, and clients stream with short-lived presigned
GET URLs minted per request.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings, get_settings
from ..exceptions import ServiceUnavailableError, StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """Mints presigned URLs against the configured bucket."""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or get_settings()
        self.bucket = self.settings.r2_bucket_name
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or self.settings.storage_configured

    @property
    def client(self):
        if self._client is None:
            if not self.settings.storage_configured:
                raise ServiceUnavailableError("Object storage is not configured", service="r2")
            endpoint = (
                self.settings.r2_endpoint_url
                or f"https://{self.settings.r2_account_id}.r2.cloudflarestorage.com"
            )
            self._client = boto3.client(
                "s3",
                endpoint_url=endpoint,
                aws_access_key_id=self.settings.r2_access_key_id,
                aws_secret_access_key=self.settings.r2_secret_access_key,
                region_name="auto",
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def get_signed_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """Presigned GET URL for a stored object.

        Raises:
            ServiceUnavailableError: If storage is not configured
            StorageError: If the URL could not be generated
        """
        expires_in = expires_in or self.settings.signed_url_expire_seconds
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to sign URL for {key}: {e}")
            raise StorageError("Failed to generate signed URL", key=key) from e

    def get_upload_url(
        self, key: str, content_type: str = "video/mp4", expires_in: Optional[int] = None
    ) -> str:
        """Presigned PUT URL the admin UI uploads to directly."""
        expires_in = expires_in or self.settings.upload_url_expire_seconds
        try:
            return self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to create upload URL for {key}: {e}")
            raise StorageError("Failed to generate upload URL", key=key) from e

    def try_signed_url(self, key: Optional[str]) -> Optional[str]:
        """Signed URL, or None when it cannot be minted.

        Listings use this so one bad object does not fail the response.
        """
        if not key:
            return None
        try:
            return self.get_signed_url(key)
        except (StorageError, ServiceUnavailableError) as e:
            logger.warning(f"Signed URL unavailable for {key}: {e.message}")
            return None

    async def signed_urls(self, keys: Iterable[Optional[str]]) -> Dict[str, Optional[str]]:
        """Mint URLs for many keys concurrently, each one independently failable."""
        unique = [key for key in dict.fromkeys(keys) if key]
        results = await asyncio.gather(
            *(asyncio.to_thread(self.try_signed_url, key) for key in unique)
        )
        return dict(zip(unique, results))


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get or create the storage service singleton."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
