"""Delete path: remove a file from its backend, then its metadata.

Ordering rule: the storage artifact is deleted before the metadata record,
so success is never reported while the bytes remain retrievable.

- Object store: delete the object and wait for confirmation, then delete the
  metadata key that resolution matched. A failed object delete aborts with
  the metadata untouched; retrying finds the same state.
- Message host with a message id: delete the message. If that fails the
  metadata is kept and the whole operation fails.
- Message host without a message id: nothing can be done upstream. The
  metadata is deleted anyway and the result carries a warning that the
  upstream copy may still exist.

There is no cross-store transaction. A crash between the two deletes leaves
stale metadata for a gone object; deleting again resolves it because object
deletes are idempotent.
"""

from dataclasses import dataclass
from typing import Any

from filegate.errors import ApiError, ApiErrorCode, BackendOperationError, BackendUnavailableError
from filegate.gateway import Gateway
from filegate.logging import get_logger
from filegate.services.backends import DeleteOutcome, select_adapter
from filegate.services.records import ObjectStoreLocation
from filegate.services.resolver import ResolvedFile, resolve_file
from filegate.storage.kv import MetadataStoreBase, MetadataStoreError

logger = get_logger(__name__)

NO_MESSAGE_ID_WARNING = (
    "No messageId recorded: only the metadata was deleted, "
    "the Telegram copy of the file may still exist"
)


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of a completed deletion."""

    file_id: str
    kv_key: str
    message: str
    r2_key: str | None = None
    telegram_deleted: bool | None = None
    warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Response body for a successful delete."""
        body: dict[str, Any] = {
            "success": True,
            "message": self.message,
            "fileId": self.file_id,
            "kvKey": self.kv_key,
        }
        if self.r2_key is not None:
            body["r2Key"] = self.r2_key
        if self.telegram_deleted is not None:
            body["telegramDeleted"] = self.telegram_deleted
        if self.warning:
            body["warning"] = self.warning
        return body


def _delete_metadata(store: MetadataStoreBase, resolved: ResolvedFile) -> None:
    try:
        store.delete(resolved.kv_key)
    except MetadataStoreError as e:
        raise BackendOperationError(f"Failed to delete file metadata: {e.message}") from e
    logger.info("metadata_deleted", kv_key=resolved.kv_key)


def delete_file(gateway: Gateway, file_id: str) -> DeletionResult:
    """Delete a file from its backend and the metadata store.

    Args:
        gateway: Settings and backend clients.
        file_id: Identifier, prefixed or bare.

    Returns:
        DeletionResult describing what was removed.

    Raises:
        ApiError: If the metadata store is missing, the id does not resolve,
            the backend is not configured, or the backend delete fails.
            Nothing is reported as deleted in any of these cases.
    """
    store = gateway.metadata_store
    if store is None:
        raise BackendUnavailableError("Metadata store not configured, cannot delete")

    resolved = resolve_file(store, file_id)
    if resolved is None:
        raise ApiError(ApiErrorCode.E_METADATA_NOT_FOUND, "File metadata not found, cannot delete")

    location = resolved.record.location
    adapter = select_adapter(
        location,
        object_store=gateway.object_store,
        message_host=gateway.message_host,
    )

    if isinstance(location, ObjectStoreLocation):
        adapter.delete()
        logger.info("object_deleted", r2_key=location.key)
        _delete_metadata(store, resolved)
        return DeletionResult(
            file_id=file_id,
            kv_key=resolved.kv_key,
            r2_key=location.key,
            message="Deleted from R2 and KV",
        )

    outcome = adapter.delete()

    if outcome == DeleteOutcome.FAILED:
        logger.error("telegram_delete_refused", kv_key=resolved.kv_key)
        raise ApiError(
            ApiErrorCode.E_UPSTREAM_DELETE_REFUSED,
            "Telegram message delete failed, metadata kept so the file is not half-deleted",
        )

    _delete_metadata(store, resolved)

    if outcome == DeleteOutcome.UNSUPPORTED:
        logger.warning("telegram_message_id_missing", kv_key=resolved.kv_key)
        return DeletionResult(
            file_id=file_id,
            kv_key=resolved.kv_key,
            telegram_deleted=False,
            message="KV metadata deleted, the file is no longer accessible",
            warning=NO_MESSAGE_ID_WARNING,
        )

    logger.info("telegram_message_deleted", kv_key=resolved.kv_key)
    return DeletionResult(
        file_id=file_id,
        kv_key=resolved.kv_key,
        telegram_deleted=True,
        message="Deleted from Telegram and KV",
    )
