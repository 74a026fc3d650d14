"""Tests for identifier resolution.

Tests cover:
- First matching prefix wins
- Legacy bare keys
- Prefixed ids probe a single key
- Records without metadata are skipped
- Store failures surface as backend errors
"""

import pytest

from filegate.errors import ApiErrorCode, BackendOperationError
from filegate.services.records import MessageHostLocation, ObjectStoreLocation
from filegate.services.resolver import resolve_file
from filegate.storage.kv import FakeMetadataStore, KVEntry, MetadataStoreError
from tests.helpers import seed_message_host_file


class FailingMetadataStore(FakeMetadataStore):
    def get_with_metadata(self, key: str) -> KVEntry | None:
        raise MetadataStoreError("connection reset")


class TestResolveFile:
    """Tests for resolve_file."""

    def test_resolves_typed_prefix(self, metadata_store):
        """A bare id finds its record under a typed prefix."""
        seed_message_host_file(metadata_store, "vid:clip.mp4", file_name="clip.mp4")

        resolved = resolve_file(metadata_store, "clip.mp4")

        assert resolved is not None
        assert resolved.kv_key == "vid:clip.mp4"
        assert resolved.record.file_name == "clip.mp4"
        assert resolved.record.location == MessageHostLocation(file_id="clip.mp4")

    def test_probe_order_decides_double_written_ids(self, metadata_store):
        """When two prefixes hold the id, the earlier prefix wins."""
        seed_message_host_file(metadata_store, "doc:x.bin", file_name="from-doc")
        seed_message_host_file(metadata_store, "img:x.bin", file_name="from-img")

        resolved = resolve_file(metadata_store, "x.bin")

        assert resolved.kv_key == "img:x.bin"
        assert resolved.record.file_name == "from-img"

    def test_legacy_bare_key(self, metadata_store):
        """Records written without a prefix are found under the bare id."""
        seed_message_host_file(metadata_store, "old.jpg", file_name="old.jpg")

        resolved = resolve_file(metadata_store, "old.jpg")

        assert resolved.kv_key == "old.jpg"
        assert metadata_store.probed_keys[-1] == "old.jpg"

    def test_prefixed_id_probes_once(self, metadata_store):
        """An already prefixed id is looked up under exactly that key."""
        resolved = resolve_file(metadata_store, "vid:missing")

        assert resolved is None
        assert metadata_store.probed_keys == ["vid:missing"]

    def test_object_store_record(self, metadata_store):
        """An r2: record resolves to an object-store location."""
        metadata_store.put("r2:movie.mp4", "", metadata={"storage": "r2", "fileName": "movie.mp4"})

        resolved = resolve_file(metadata_store, "movie.mp4")

        assert resolved.kv_key == "r2:movie.mp4"
        assert resolved.record.location == ObjectStoreLocation(key="movie.mp4")

    def test_key_without_metadata_is_skipped(self, metadata_store):
        """A key holding a value but no metadata does not count as a match."""
        metadata_store.put("img:a.png", "value-only")
        seed_message_host_file(metadata_store, "a.png", file_name="legacy")

        resolved = resolve_file(metadata_store, "a.png")

        assert resolved.kv_key == "a.png"

    def test_unknown_id(self, metadata_store):
        """An id with no record anywhere resolves to None."""
        assert resolve_file(metadata_store, "nope.png") is None
        assert len(metadata_store.probed_keys) == 6

    def test_preserves_stored_value(self, metadata_store):
        seed_message_host_file(metadata_store, "img:a.png", value="stored")
        assert resolve_file(metadata_store, "a.png").value == "stored"

    def test_store_failure_raises(self):
        """A metadata read failure is a backend operation error."""
        with pytest.raises(BackendOperationError) as exc_info:
            resolve_file(FailingMetadataStore(), "a.png")

        assert exc_info.value.code == ApiErrorCode.E_BACKEND_OPERATION_FAILED
        assert exc_info.value.status_code == 500
