"""Metadata store client abstraction (Cloudflare Workers KV).

Provides the narrow key/value interface the gateway relies on:
- get: raw value by key
- get_with_metadata: value plus the JSON metadata attached to the key
- put: write a value with metadata
- delete: remove a key

The store is eventually consistent and atomic per key; the gateway never
needs cross-key transactions.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from filegate.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KVEntry:
    """A value and the metadata attached to its key."""

    value: str
    metadata: dict[str, Any] | None = field(default=None)


class MetadataStoreError(Exception):
    """Metadata store operation error."""

    def __init__(self, message: str, code: str = "E_BACKEND_OPERATION_FAILED"):
        super().__init__(message)
        self.message = message
        self.code = code


class MetadataStoreBase(ABC):
    """Abstract base class for metadata store implementations."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get the raw value stored under a key.

        Returns:
            The value, or None if the key does not exist.

        Raises:
            MetadataStoreError: If the lookup fails.
        """
        ...

    @abstractmethod
    def get_with_metadata(self, key: str) -> KVEntry | None:
        """Get a value together with its metadata.

        Returns:
            KVEntry if the key exists (metadata may be None), None otherwise.

        Raises:
            MetadataStoreError: If the lookup fails.
        """
        ...

    @abstractmethod
    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        """Write a value and its metadata.

        Raises:
            MetadataStoreError: If the write fails.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error.

        Raises:
            MetadataStoreError: If the delete fails.
        """
        ...


class CloudflareKVClient(MetadataStoreBase):
    """Production Workers KV client.

    Uses httpx against the Cloudflare v4 REST API.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        account_id: str,
        namespace_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
    ):
        """Initialize the KV client.

        Args:
            client: Shared httpx.Client for connection pooling.
            account_id: Cloudflare account id.
            namespace_id: KV namespace id.
            api_token: API token with Workers KV read/write permission.
            base_url: Cloudflare API base URL.
        """
        self._client = client
        self._namespace_url = (
            f"{base_url.rstrip('/')}/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        )
        self._headers = {"Authorization": f"Bearer {api_token}"}

    def _key_url(self, kind: str, key: str) -> str:
        return f"{self._namespace_url}/{kind}/{quote(key, safe='')}"

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.RequestError as e:
            raise MetadataStoreError(f"Metadata store request failed: {e}") from e

    def get(self, key: str) -> str | None:
        """Read a value via GET /values/{key}."""
        response = self._request("GET", self._key_url("values", key))

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            raise MetadataStoreError(
                f"Failed to read key: {response.status_code} {response.text}",
            )

        return response.text

    def get_with_metadata(self, key: str) -> KVEntry | None:
        """Read metadata via GET /metadata/{key}, then the value."""
        response = self._request("GET", self._key_url("metadata", key))

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            raise MetadataStoreError(
                f"Failed to read metadata: {response.status_code} {response.text}",
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MetadataStoreError("Metadata read returned invalid JSON") from e

        metadata = body.get("result") if isinstance(body, dict) else None
        value = self.get(key)
        if value is None:
            # Deleted between the two calls
            return None

        return KVEntry(value=value, metadata=metadata or None)

    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        """Write via PUT /values/{key} as multipart (value + metadata)."""
        files = {"value": (None, value.encode("utf-8"))}
        if metadata is not None:
            files["metadata"] = (None, json.dumps(metadata).encode("utf-8"))

        response = self._request("PUT", self._key_url("values", key), files=files)

        if response.status_code != 200:
            raise MetadataStoreError(
                f"Failed to write key: {response.status_code} {response.text}",
            )

    def delete(self, key: str) -> None:
        """Delete via DELETE /values/{key}."""
        response = self._request("DELETE", self._key_url("values", key))

        if response.status_code not in (200, 404):
            raise MetadataStoreError(
                f"Failed to delete key: {response.status_code} {response.text}",
            )


class FakeMetadataStore(MetadataStoreBase):
    """Fake metadata store for testing without Cloudflare.

    Stores entries in memory and records every key probed.
    """

    def __init__(self):
        self._entries: dict[str, KVEntry] = {}
        self.probed_keys: list[str] = []

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def get_with_metadata(self, key: str) -> KVEntry | None:
        self.probed_keys.append(key)
        return self._entries.get(key)

    def put(self, key: str, value: str, metadata: dict[str, Any] | None = None) -> None:
        self._entries[key] = KVEntry(value=value, metadata=dict(metadata) if metadata else None)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    # Test helper methods

    def keys(self) -> list[str]:
        """List stored keys (test helper)."""
        return list(self._entries)

    def clear(self) -> None:
        """Clear all stored entries (test helper)."""
        self._entries.clear()
        self.probed_keys.clear()
