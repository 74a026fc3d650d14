"""Storage backends the gateway resolves files against.

Provides:
- Metadata store client (Workers KV) and key-prefix utilities
- Object store client (R2 over the S3 API)
- Message host client (Telegram Bot API)
"""

from filegate.storage.client import (
    FakeObjectStore,
    ObjectMetadata,
    ObjectStoreBase,
    ObjectStoreError,
    R2StorageClient,
    StoredObject,
)
from filegate.storage.keys import KEY_PREFIXES, candidate_keys, strip_prefix
from filegate.storage.kv import (
    CloudflareKVClient,
    FakeMetadataStore,
    KVEntry,
    MetadataStoreBase,
    MetadataStoreError,
)
from filegate.storage.telegram import TelegramBotClient

__all__ = [
    "R2StorageClient",
    "FakeObjectStore",
    "ObjectMetadata",
    "ObjectStoreBase",
    "ObjectStoreError",
    "StoredObject",
    "CloudflareKVClient",
    "FakeMetadataStore",
    "KVEntry",
    "MetadataStoreBase",
    "MetadataStoreError",
    "TelegramBotClient",
    "KEY_PREFIXES",
    "candidate_keys",
    "strip_prefix",
]
