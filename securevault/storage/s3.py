"""S3 object storage for document bytes.

Blobs are written private and encrypted at rest; reads go through
short-lived presigned URLs so the API never proxies file bytes.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from securevault.config import settings
from securevault.errors import StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    key: str
    bucket: str
    region: str
    location: str


MAX_EXTENSION_LENGTH = 16


def file_extension(filename: str) -> str:
    """Lower-cased extension, or "" when it is missing, too long or not alphanumeric."""
    if "." not in filename:
        return ""
    ext = filename.rsplit(".", 1)[1].lower()
    if len(ext) > MAX_EXTENSION_LENGTH or not ext.isalnum() or not ext.isascii():
        return ""
    return ext


def build_storage_key(owner_id: str, filename: str) -> str:
    """``<owner>/<epoch ms>-<random>.<ext>``; unique per user and upload."""
    ext = file_extension(filename)
    stamp = int(time.time() * 1000)
    name = f"{stamp}-{secrets.token_hex(8)}"
    return f"{owner_id}/{name}.{ext}" if ext else f"{owner_id}/{name}"


class S3Storage:
    def __init__(
        self,
        bucket: str,
        region: str,
        *,
        access_key: str | None = None,
        secret_key: str | None = None,
        endpoint_url: str | None = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
        )

    @classmethod
    def from_settings(cls) -> "S3Storage":
        if not settings.s3_bucket_name:
            raise StoreUnavailable(details="S3_BUCKET_NAME is not configured")
        return cls(
            bucket=settings.s3_bucket_name,
            region=settings.s3_bucket_region,
            access_key=settings.aws_access_key_id,
            secret_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
        )

    def _location(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def put(self, data: bytes, key: str, content_type: str) -> StoredObject:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="private",
                ServerSideEncryption="AES256",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise StoreUnavailable(details=str(e))
        return StoredObject(key=key, bucket=self.bucket, region=self.region, location=self._location(key))

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            raise StoreUnavailable(details=str(e))

    def signed_url(self, key: str, operation: str = "get_object", ttl_seconds: int = 3600) -> str:
        try:
            return self._client.generate_presigned_url(
                ClientMethod=operation,
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Could not sign %s for %s: %s", operation, key, e)
            raise StoreUnavailable(details=str(e))

    def check_connection(self) -> bool:
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 connection failed for bucket %s: %s", self.bucket, e)
            return False
        logger.info("Using S3 bucket %s in %s", self.bucket, self.region)
        return True


@lru_cache
def get_storage() -> S3Storage:
    return S3Storage.from_settings()
