"""Typed view of the per-file metadata records.

Metadata records keep the field names written by the upload path
(ListType, Label, TimeStamp, fileName, fileSize, storage/storageType,
r2Key, telegramMessageId, liked). They are parsed once, at resolution time,
into a FileRecord whose location says which backend holds the bytes, so
nothing downstream inspects id prefixes again.
"""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from filegate.storage.keys import OBJECT_STORE_PREFIX, is_object_store_id, strip_prefix

ADULT_LABEL = "adult"


class StorageKind(str, Enum):
    """Backends a file's bytes can live in."""

    OBJECT_STORE = "r2"
    MESSAGE_HOST = "telegram"


class ListType(str, Enum):
    """Access-control list a file was put on by an administrator."""

    NONE = "None"
    WHITE = "White"
    BLOCK = "Block"


@dataclass(frozen=True)
class ObjectStoreLocation:
    """Bytes live in the object store under key."""

    key: str
    kind: StorageKind = field(default=StorageKind.OBJECT_STORE, init=False)


@dataclass(frozen=True)
class MessageHostLocation:
    """Bytes are an attachment of a message on the message host.

    Attributes:
        file_id: Upstream file id (the identifier without storage prefix).
        message_id: Id of the carrying message; None for legacy records,
            in which case the upstream copy cannot be deleted.
    """

    file_id: str
    message_id: int | str | None = None
    kind: StorageKind = field(default=StorageKind.MESSAGE_HOST, init=False)


FileLocation = ObjectStoreLocation | MessageHostLocation


@dataclass(frozen=True)
class FileRecord:
    """A file's metadata with defaults filled in."""

    id: str
    location: FileLocation
    file_name: str
    file_size: int
    timestamp: int
    list_type: ListType = ListType.NONE
    label: str | None = None
    liked: bool = False
    raw_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def storage_kind(self) -> StorageKind:
        return self.location.kind

    @property
    def is_blocked(self) -> bool:
        """Blocked files and adult-labelled files never stream to the public."""
        return self.list_type == ListType.BLOCK or self.label == ADULT_LABEL

    def with_label(self, label: str) -> "FileRecord":
        """Return a copy carrying a moderation verdict."""
        return replace(self, label=label)

    def to_metadata(self) -> dict[str, Any]:
        """Metadata to write back, preserving fields this service does not model."""
        metadata = dict(self.raw_metadata)
        metadata.update(
            {
                "ListType": self.list_type.value,
                "Label": self.label or "None",
                "TimeStamp": self.timestamp,
                "liked": self.liked,
                "fileName": self.file_name,
                "fileSize": self.file_size,
            }
        )
        return metadata


def _parse_list_type(value: Any) -> ListType:
    try:
        return ListType(value)
    except ValueError:
        return ListType.NONE


def _parse_label(value: Any) -> str | None:
    if not value or value == "None":
        return None
    return str(value)


def is_object_store_record(file_id: str, metadata: dict[str, Any]) -> bool:
    """Decide the storage kind from the id prefix and stored fields."""
    if is_object_store_id(file_id):
        return True
    return (
        metadata.get("storage") == StorageKind.OBJECT_STORE.value
        or metadata.get("storageType") == StorageKind.OBJECT_STORE.value
    )


def object_key_for(file_id: str, metadata: dict[str, Any], kv_key: str | None) -> str:
    """Object key: explicit r2Key, else the matched key or id without its r2: prefix."""
    if metadata.get("r2Key"):
        return str(metadata["r2Key"])
    if kv_key and kv_key.startswith(OBJECT_STORE_PREFIX):
        return kv_key[len(OBJECT_STORE_PREFIX) :]
    if file_id.startswith(OBJECT_STORE_PREFIX):
        return file_id[len(OBJECT_STORE_PREFIX) :]
    return file_id


def build_record(
    file_id: str,
    metadata: dict[str, Any] | None,
    kv_key: str | None = None,
) -> FileRecord:
    """Parse stored metadata into a FileRecord.

    Args:
        file_id: Client-supplied identifier.
        metadata: Stored metadata (None when no record exists).
        kv_key: Metadata key the record was found under.

    Returns:
        FileRecord with display fields default-filled.
    """
    metadata = dict(metadata or {})

    location: FileLocation
    if is_object_store_record(file_id, metadata):
        location = ObjectStoreLocation(key=object_key_for(file_id, metadata, kv_key))
    else:
        location = MessageHostLocation(
            file_id=strip_prefix(file_id),
            message_id=metadata.get("telegramMessageId") or None,
        )

    return FileRecord(
        id=file_id,
        location=location,
        file_name=metadata.get("fileName") or file_id,
        file_size=int(metadata.get("fileSize") or 0),
        timestamp=int(metadata.get("TimeStamp") or time.time() * 1000),
        list_type=_parse_list_type(metadata.get("ListType", ListType.NONE.value)),
        label=_parse_label(metadata.get("Label")),
        liked=metadata.get("liked") in (True, "true"),
        raw_metadata=metadata,
    )
