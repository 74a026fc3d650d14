"""Identifier resolution against the metadata store.

Records may sit under any of the historical key prefixes, so a bare id is
probed under each prefix in a fixed order and the first key holding metadata
wins. The matched key is returned alongside the record: deletion must remove
exactly that key, never one reconstructed from the id.
"""

from dataclasses import dataclass

from filegate.errors import BackendOperationError
from filegate.logging import get_logger
from filegate.services.records import FileRecord, build_record
from filegate.storage.keys import candidate_keys
from filegate.storage.kv import MetadataStoreBase, MetadataStoreError

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedFile:
    """A metadata record and the exact key it was found under."""

    record: FileRecord
    kv_key: str
    value: str = ""


def resolve_file(store: MetadataStoreBase, file_id: str) -> ResolvedFile | None:
    """Find the metadata record for an identifier.

    Args:
        store: Metadata store to probe.
        file_id: Client-supplied identifier, prefixed or bare.

    Returns:
        ResolvedFile for the first key with non-empty metadata, or None.

    Raises:
        BackendOperationError: If the metadata store cannot be read.
    """
    for key in candidate_keys(file_id):
        try:
            entry = store.get_with_metadata(key)
        except MetadataStoreError as e:
            raise BackendOperationError(f"Failed to read file metadata: {e.message}") from e

        if entry is not None and entry.metadata:
            record = build_record(file_id, entry.metadata, kv_key=key)
            logger.info(
                "file_resolved",
                file_id=file_id,
                kv_key=key,
                storage=record.storage_kind.value,
            )
            return ResolvedFile(record=record, kv_key=key, value=entry.value)

    logger.info("file_not_resolved", file_id=file_id)
    return None
