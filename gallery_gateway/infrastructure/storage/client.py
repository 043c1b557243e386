"""
Object storage backends for gallery images.

Supports Cloudflare R2 (S3-compatible) with an in-memory mode for local
development. Both implement the gateway's ObjectStore protocol:
- put overwrites whatever is stored at the key
- get returns None for a missing key
- delete of a missing key is a no-op

boto3 is synchronous, so every call runs in a worker thread to keep the
event loop free while R2 answers.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ...core.gateway.store import ObjectStore

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class ObjectStoreConfig:
    """Configuration for an R2/S3-compatible bucket."""
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    region: str = "auto"  # R2 uses 'auto' for region


@dataclass
class StoredObjectHandle:
    """
    An object found in the store.

    The payload is read on demand through `read()`; for R2 that is the
    streaming body of the GET response.
    """
    key: str
    content_type: Optional[str]
    size: Optional[int]
    _body: Any = None
    _data: Optional[bytes] = None

    async def read(self) -> bytes:
        if self._data is not None:
            return self._data
        if self._body is None:
            raise StorageError(f"Object body unavailable: {self.key}")
        try:
            return await asyncio.to_thread(self._body.read)
        finally:
            self._body.close()


class R2ObjectStore:
    """
    Cloudflare R2 object store.

    Uses boto3 because R2 is S3-compatible, so the same code would work
    against S3 or MinIO with a different endpoint.
    """

    def __init__(self, config: ObjectStoreConfig) -> None:
        self._config = config

        # R2 requires v4 signatures and path-style addressing
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        # A private session per store: boto3's default session is shared
        # and not thread-safe.
        session = boto3.session.Session()
        self._s3_client = session.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized R2 object store",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    @property
    def s3_client(self) -> Any:
        return self._s3_client

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload (or overwrite) an object."""
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error(
                "Failed to upload object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}") from e

        logger.debug(
            "Uploaded object",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get(self, key: str) -> Optional[StoredObjectHandle]:
        """Fetch an object handle, or None when the key does not exist."""
        try:
            response = await asyncio.to_thread(
                self._s3_client.get_object,
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in MISSING_KEY_CODES:
                return None
            logger.error(
                "Failed to download object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}") from e

        return StoredObjectHandle(
            key=key,
            content_type=response.get("ContentType"),
            size=response.get("ContentLength"),
            _body=response["Body"],
        )

    async def delete(self, key: str) -> None:
        """Delete an object. S3 delete is idempotent, so missing keys succeed."""
        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except ClientError as e:
            logger.error(
                "Failed to delete object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockObjectStore:
    """
    In-memory object store for local development and tests.

    Objects are kept in a dictionary keyed by object key. Not suitable for
    production: nothing survives a restart.
    """

    def __init__(self) -> None:
        # {key: (bytes, content_type)}
        self._objects: dict[str, tuple[bytes, str]] = {}
        logger.info("Initialized mock object store (in-memory)")

    def __contains__(self, key: str) -> bool:
        return key in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self._objects[key] = (bytes(data), content_type)

        logger.debug(
            "Stored object in mock store",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get(self, key: str) -> Optional[StoredObjectHandle]:
        if key not in self._objects:
            return None

        data, content_type = self._objects[key]
        return StoredObjectHandle(
            key=key,
            content_type=content_type,
            size=len(data),
            _data=data,
        )

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)

        logger.debug("Deleted object from mock store", extra={"key": key})


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[ObjectStoreConfig] = None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create an object store based on configuration.

    Args:
        config: Bucket configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store

    Returns:
        ObjectStore implementation (R2 or Mock)
    """
    if mock_mode:
        return MockObjectStore()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2ObjectStore(config)
