"""Object store client abstraction (Cloudflare R2 over the S3 API).

Provides a narrow interface for the operations the gateway needs:
- Object existence and size checks (head)
- Whole and byte-range reads, streamed in chunks
- Object deletion

All methods receive the full object key directly - no prefix manipulation.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError


# Chunk size used when streaming object bodies
STREAM_CHUNK_SIZE = 1024 * 1024  # 1 MiB

MISSING_OBJECT_ERROR_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


@dataclass(frozen=True)
class ObjectMetadata:
    """Storage object metadata from a head request."""

    size_bytes: int
    content_type: str | None = None


@dataclass
class StoredObject:
    """An open object body.

    Attributes:
        body: Iterator over the body bytes; the underlying stream is released
            once the iterator is exhausted or closed.
        size_bytes: Number of bytes the body will yield.
        content_type: Content type recorded on the object, if any.
    """

    body: Iterator[bytes]
    size_bytes: int
    content_type: str | None = None


class ObjectStoreError(Exception):
    """Object store operation error."""

    def __init__(self, message: str, code: str = "E_BACKEND_OPERATION_FAILED"):
        super().__init__(message)
        self.message = message
        self.code = code


class ObjectStoreBase(ABC):
    """Abstract base class for object store implementations."""

    @abstractmethod
    def head_object(self, key: str) -> ObjectMetadata | None:
        """Check if an object exists and get its size.

        Returns:
            ObjectMetadata if the object exists, None otherwise.

        Raises:
            ObjectStoreError: On any failure other than a missing object.
        """
        ...

    @abstractmethod
    def get_object(
        self,
        key: str,
        *,
        offset: int | None = None,
        length: int | None = None,
    ) -> StoredObject | None:
        """Open an object for reading, optionally limited to a byte window.

        Args:
            key: Full object key.
            offset: First byte to read (None reads the whole object).
            length: Number of bytes to read from offset.

        Returns:
            StoredObject, or None if the object does not exist.

        Raises:
            ObjectStoreError: On any failure other than a missing object.
        """
        ...

    @abstractmethod
    def delete_object(self, key: str) -> None:
        """Delete an object. Deleting a missing object succeeds.

        Raises:
            ObjectStoreError: If the delete is not confirmed.
        """
        ...


def _iter_streaming_body(body, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield chunks from a botocore StreamingBody and always close it."""
    try:
        yield from body.iter_chunks(chunk_size=chunk_size)
    finally:
        body.close()


def _is_missing(exc: Exception) -> bool:
    response = getattr(exc, "response", {}) or {}
    status_code = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    error_code = str((response.get("Error") or {}).get("Code") or "")
    return status_code == 404 or error_code in MISSING_OBJECT_ERROR_CODES


class R2StorageClient(ObjectStoreBase):
    """Production R2 client using boto3's S3 client with lazy initialization."""

    def __init__(
        self,
        *,
        bucket: str,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        region: str = "auto",
        client=None,
    ):
        """Initialize the storage client.

        Args:
            bucket: Bucket name.
            endpoint_url: S3 endpoint (https://<account>.r2.cloudflarestorage.com).
            access_key_id: R2 access key id.
            secret_access_key: R2 secret access key.
            region: Signing region; R2 accepts "auto".
            client: Pre-built boto3 S3 client (tests inject a stubbed one).
        """
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region = region
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client

        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=self.region,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        return self._client

    def head_object(self, key: str) -> ObjectMetadata | None:
        """Check object existence via HeadObject."""
        try:
            data = self._get_client().head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise ObjectStoreError(f"Failed to head object {key}: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to head object {key}: {e}") from e

        return ObjectMetadata(
            size_bytes=int(data.get("ContentLength") or 0),
            content_type=data.get("ContentType"),
        )

    def get_object(
        self,
        key: str,
        *,
        offset: int | None = None,
        length: int | None = None,
    ) -> StoredObject | None:
        """Open an object via GetObject, using a Range header for windows."""
        params = {"Bucket": self.bucket, "Key": key}
        if offset is not None and length is not None:
            params["Range"] = f"bytes={offset}-{offset + length - 1}"

        try:
            data = self._get_client().get_object(**params)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise ObjectStoreError(f"Failed to get object {key}: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to get object {key}: {e}") from e

        return StoredObject(
            body=_iter_streaming_body(data["Body"]),
            size_bytes=int(data.get("ContentLength") or 0),
            content_type=data.get("ContentType"),
        )

    def delete_object(self, key: str) -> None:
        """Delete object via DeleteObject (idempotent on the S3 side)."""
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"Failed to delete object {key}: {e}") from e


class FakeObjectStore(ObjectStoreBase):
    """Fake object store for testing without R2.

    Stores objects in memory and provides deterministic behavior for unit tests.
    """

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str | None]] = {}  # key -> (content, content_type)
        self.range_reads: list[tuple[str, int, int]] = []
        self.fail_deletes = False

    def head_object(self, key: str) -> ObjectMetadata | None:
        if key not in self._objects:
            return None
        content, content_type = self._objects[key]
        return ObjectMetadata(size_bytes=len(content), content_type=content_type)

    def get_object(
        self,
        key: str,
        *,
        offset: int | None = None,
        length: int | None = None,
    ) -> StoredObject | None:
        if key not in self._objects:
            return None
        content, content_type = self._objects[key]
        if offset is not None and length is not None:
            self.range_reads.append((key, offset, length))
            content = content[offset : offset + length]
        chunks = [
            content[i : i + STREAM_CHUNK_SIZE] for i in range(0, len(content), STREAM_CHUNK_SIZE)
        ]
        return StoredObject(body=iter(chunks), size_bytes=len(content), content_type=content_type)

    def delete_object(self, key: str) -> None:
        if self.fail_deletes:
            raise ObjectStoreError(f"Failed to delete object {key}: simulated failure")
        self._objects.pop(key, None)

    # Test helper methods

    def put_object(self, key: str, content: bytes, content_type: str | None = None) -> None:
        """Store an object directly (test helper)."""
        self._objects[key] = (content, content_type)

    def has_object(self, key: str) -> bool:
        """Check presence without going through head_object (test helper)."""
        return key in self._objects

    def clear(self) -> None:
        """Clear all stored objects (test helper)."""
        self._objects.clear()
        self.range_reads.clear()
