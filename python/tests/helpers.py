"""Shared test helpers: upstream URLs and metadata seeding."""

from typing import Any

from filegate.storage.client import FakeObjectStore
from filegate.storage.kv import FakeMetadataStore

TG_API_BASE_URL = "https://tg.test"
TELEGRAPH_BASE_URL = "https://telegraph.test"
MODERATION_API_URL = "https://moderation.test/moderate/"
BOT_TOKEN = "123456:test-token"
CHAT_ID = "-1001234567890"

# Longer than a Telegraph id, so it is resolved through getFile
BOT_FILE_ID = "BQACAgUAAxkDAAIBG2ZzYWxsLW9uZS1maWxlLWlkLTAwMDE"


def seed_message_host_file(
    store: FakeMetadataStore,
    key: str,
    *,
    file_name: str = "photo.png",
    file_size: int = 0,
    message_id: int | str | None = None,
    value: str = "",
    **extra: Any,
) -> dict[str, Any]:
    """Write a message-host metadata record and return its metadata."""
    metadata: dict[str, Any] = {
        "TimeStamp": 1700000000000,
        "ListType": "None",
        "Label": "None",
        "liked": False,
        "fileName": file_name,
        "fileSize": file_size,
    }
    if message_id is not None:
        metadata["telegramMessageId"] = message_id
    metadata.update(extra)
    store.put(key, value, metadata=metadata)
    return metadata


def seed_object_store_file(
    store: FakeMetadataStore,
    objects: FakeObjectStore,
    file_id: str,
    content: bytes,
    *,
    file_name: str = "movie.mp4",
    key: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Write an r2: metadata record and the object it points at."""
    metadata: dict[str, Any] = {
        "TimeStamp": 1700000000000,
        "ListType": "None",
        "Label": "None",
        "fileName": file_name,
        "fileSize": len(content),
        "storage": "r2",
        "r2Key": file_id,
    }
    metadata.update(extra)
    store.put(key or f"r2:{file_id}", "", metadata=metadata)
    objects.put_object(file_id, content)
    return metadata


def telegraph_url(file_id: str) -> str:
    return f"{TELEGRAPH_BASE_URL}/file/{file_id}"


def get_file_url() -> str:
    return f"{TG_API_BASE_URL}/bot{BOT_TOKEN}/getFile"


def delete_message_url() -> str:
    return f"{TG_API_BASE_URL}/bot{BOT_TOKEN}/deleteMessage"


def bot_download_url(file_path: str) -> str:
    return f"{TG_API_BASE_URL}/file/bot{BOT_TOKEN}/{file_path}"
