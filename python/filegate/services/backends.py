"""Backend adapters: one fetch/delete contract over heterogeneous stores.

Each adapter is bound to one file location and exposes:
- fetch(range_header, head=...): open the bytes, optionally range-limited
- delete(): remove the artifact from its backend

The object store serves ranges natively. The message host may or may not
honour a forwarded Range header, so its responses go through the
RangeCompatibilityShim.

Rules:
- No retries inside adapters
- Callers own the returned BackendResponse and must close it
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum

import httpx

from filegate.errors import (
    ApiErrorCode,
    BackendOperationError,
    BackendUnavailableError,
    NotFoundError,
    RangeNotSatisfiableError,
)
from filegate.logging import get_logger
from filegate.services.ranges import ByteRange, UnsatisfiableRange, parse_range_header
from filegate.services.records import MessageHostLocation, ObjectStoreLocation
from filegate.storage.client import ObjectStoreBase, ObjectStoreError
from filegate.storage.telegram import TelegramBotClient, bot_file_id, is_telegraph_file

logger = get_logger(__name__)


class DeleteOutcome(str, Enum):
    """Result of asking a backend to delete an artifact."""

    DELETED = "deleted"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


def _noop() -> None:
    pass


@dataclass
class BackendResponse:
    """Bytes (or an upstream error) coming back from a backend.

    Attributes:
        status_code: 200, 206, or the upstream's status on passthrough.
        body: Iterator over the body bytes.
        content_length: Body length when known.
        content_range: Content-Range for 206 responses.
        content_encoding: Upstream Content-Encoding when the body was decoded in
            transit; content_length is then unknown.
    """

    status_code: int
    body: Iterator[bytes] = field(default_factory=lambda: iter(()))
    content_length: int | None = None
    content_range: str | None = None
    content_encoding: str | None = None
    on_close: Callable[[], None] = field(default=_noop, repr=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def read_all(self) -> bytes:
        """Materialize the whole body and release the stream."""
        try:
            return b"".join(self.body)
        finally:
            self.close()

    def close(self) -> None:
        self.on_close()


class BackendAdapter(ABC):
    """Abstract base class for backend adapters."""

    #: True when fetch() always answers range requests itself (206/416)
    native_ranges: bool = False

    @abstractmethod
    def fetch(self, range_header: str | None, *, head: bool = False) -> BackendResponse:
        """Open the file's bytes.

        Args:
            range_header: Client's Range header, or None.
            head: Only headers are needed; the body may be empty.

        Raises:
            ApiError: NotFound, RangeNotSatisfiable, BackendUnavailable or
                BackendOperationFailed.
        """
        ...

    @abstractmethod
    def delete(self) -> DeleteOutcome:
        """Delete the artifact from the backend."""
        ...


class ObjectStoreAdapter(BackendAdapter):
    """Adapter over the object store, using its native ranged reads."""

    native_ranges = True

    def __init__(self, store: ObjectStoreBase | None, location: ObjectStoreLocation):
        self._store = store
        self.location = location

    def _require_store(self) -> ObjectStoreBase:
        if self._store is None:
            raise BackendUnavailableError("R2 storage not configured")
        return self._store

    def fetch(self, range_header: str | None, *, head: bool = False) -> BackendResponse:
        store = self._require_store()
        key = self.location.key

        try:
            if range_header:
                metadata = store.head_object(key)
                if metadata is None:
                    raise NotFoundError(message="File not found in R2")

                byte_range = parse_range_header(range_header, metadata.size_bytes)
                if isinstance(byte_range, UnsatisfiableRange):
                    raise RangeNotSatisfiableError(byte_range.total_size)
                if isinstance(byte_range, ByteRange):
                    return self._fetch_window(store, key, byte_range, head=head)

            if head:
                metadata = store.head_object(key)
                if metadata is None:
                    raise NotFoundError(message="File not found in R2")
                return BackendResponse(status_code=200, content_length=metadata.size_bytes)

            obj = store.get_object(key)
            if obj is None:
                raise NotFoundError(message="File not found in R2")
            return BackendResponse(
                status_code=200,
                body=obj.body,
                content_length=obj.size_bytes,
                on_close=getattr(obj.body, "close", _noop),
            )
        except ObjectStoreError as e:
            raise BackendOperationError(f"Error fetching file from R2: {e.message}") from e

    def _fetch_window(
        self, store: ObjectStoreBase, key: str, byte_range: ByteRange, *, head: bool
    ) -> BackendResponse:
        if head:
            return BackendResponse(
                status_code=206,
                content_length=byte_range.length,
                content_range=byte_range.content_range,
            )

        obj = store.get_object(key, offset=byte_range.start, length=byte_range.length)
        if obj is None:
            raise NotFoundError(message="File not found in R2")

        logger.info("object_range_read", key=key, content_range=byte_range.content_range)
        return BackendResponse(
            status_code=206,
            body=obj.body,
            content_length=byte_range.length,
            content_range=byte_range.content_range,
            on_close=getattr(obj.body, "close", _noop),
        )

    def delete(self) -> DeleteOutcome:
        """Delete the object; success of the single call is authoritative.

        Raises:
            BackendUnavailableError: If the object store is not configured.
            BackendOperationError: If the delete was not confirmed.
        """
        store = self._require_store()
        try:
            store.delete_object(self.location.key)
        except ObjectStoreError as e:
            raise BackendOperationError(f"Failed to delete object from R2: {e.message}") from e
        return DeleteOutcome.DELETED


def _iter_upstream(response: httpx.Response) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes()
    finally:
        response.close()


class MessageHostAdapter(BackendAdapter):
    """Adapter over the message host.

    Locating the bytes is itself a remote call for bot uploads: the file id is
    exchanged for a short-lived download URL, then fetched with the client's
    Range header forwarded. Whatever status the upstream answers with is
    passed through.
    """

    native_ranges = False

    def __init__(self, client: TelegramBotClient | None, location: MessageHostLocation):
        self._client = client
        self.location = location

    def _require_client(self) -> TelegramBotClient:
        if self._client is None:
            raise BackendUnavailableError("Telegram bot not configured")
        return self._client

    def resolve_url(self) -> str:
        """Exchange the file id for a download URL.

        Raises:
            BackendUnavailableError: If bot credentials are missing.
            BackendOperationError: If the upstream lookup fails.
        """
        client = self._require_client()
        file_id = self.location.file_id

        if is_telegraph_file(file_id):
            return client.telegraph_url(file_id)

        if not client.can_resolve:
            raise BackendUnavailableError("Telegram bot token not configured")

        file_path = client.get_file_path(bot_file_id(file_id))
        if not file_path:
            raise BackendOperationError(
                "Failed to get file path from Telegram",
                code=ApiErrorCode.E_MESSAGE_HOST_RESOLVE_FAILED,
            )
        return client.download_url(file_path)

    def fetch(self, range_header: str | None, *, head: bool = False) -> BackendResponse:
        client = self._require_client()
        url = self.resolve_url()

        try:
            response = client.open(url, method="HEAD" if head else "GET", range_header=range_header)
        except httpx.RequestError as e:
            raise BackendOperationError(f"Error fetching file from Telegram: {e}") from e

        content_length = response.headers.get("content-length")
        content_encoding = response.headers.get("content-encoding", "identity").lower()
        decoded = content_encoding != "identity"
        if decoded:
            # The body is decoded while streaming; the declared length is the encoded one
            content_length = None

        logger.info(
            "upstream_response",
            status_code=response.status_code,
            range_requested=bool(range_header),
            content_encoding=content_encoding,
        )
        return BackendResponse(
            status_code=response.status_code,
            body=_iter_upstream(response),
            content_length=int(content_length) if content_length else None,
            content_range=response.headers.get("content-range"),
            content_encoding=content_encoding if decoded else None,
            on_close=response.close,
        )

    def delete(self) -> DeleteOutcome:
        """Delete the carrying message.

        Without a recorded message id there is no remote action to take, which
        is reported as UNSUPPORTED rather than silently treated as success.
        """
        if self.location.message_id is None:
            return DeleteOutcome.UNSUPPORTED

        if self._client is None or not self._client.delete_message(self.location.message_id):
            return DeleteOutcome.FAILED
        return DeleteOutcome.DELETED


def select_adapter(
    location: ObjectStoreLocation | MessageHostLocation,
    *,
    object_store: ObjectStoreBase | None,
    message_host: TelegramBotClient | None,
) -> BackendAdapter:
    """Pick the adapter for a resolved location."""
    if isinstance(location, ObjectStoreLocation):
        return ObjectStoreAdapter(object_store, location)
    return MessageHostAdapter(message_host, location)
