"""Tests for local key-value storage."""

import json
import threading

import pytest

from iap_client.repositories.local_storage import JsonFileStorage, MemoryStorage


@pytest.fixture
def file_storage(tmp_path):
    """Create a JSON file storage in a temporary directory."""
    return JsonFileStorage(tmp_path / "state" / "storage.json")


class TestMemoryStorage:
    """Test in-memory storage."""

    def test_get_missing_key(self):
        assert MemoryStorage().get_item("iapReceipts") is None

    def test_set_and_get(self):
        storage = MemoryStorage()
        storage.set_item("iapReceipts", '["r1"]')

        assert storage.get_item("iapReceipts") == '["r1"]'
        assert "iapReceipts" in storage
        assert len(storage) == 1

    def test_initial_items(self):
        storage = MemoryStorage({"iapReceipts": "[]"})
        assert storage.get_item("iapReceipts") == "[]"

    def test_remove_item(self):
        storage = MemoryStorage({"a": "1"})
        storage.remove_item("a")
        storage.remove_item("missing")
        assert len(storage) == 0

    def test_clear(self):
        storage = MemoryStorage({"a": "1", "b": "2"})
        storage.clear()
        assert len(storage) == 0

    def test_concurrent_writes(self):
        """Test that writers on many threads do not lose keys."""
        storage = MemoryStorage()

        def writer(n):
            for i in range(50):
                storage.set_item(f"key-{n}-{i}", str(i))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(storage) == 400


class TestJsonFileStorage:
    """Test JSON file storage."""

    def test_missing_file_reads_empty(self, file_storage):
        assert file_storage.get_item("iapReceipts") is None
        assert not file_storage.path.exists()

    def test_set_creates_file(self, file_storage):
        file_storage.set_item("iapReceipts", '["r1"]')

        assert file_storage.path.exists()
        assert json.loads(file_storage.path.read_text()) == {"iapReceipts": '["r1"]'}

    def test_values_persist_across_instances(self, file_storage):
        """Test that a new instance sees what an earlier one wrote."""
        file_storage.set_item("iapReceipts", '["r1"]')

        reopened = JsonFileStorage(file_storage.path)

        assert reopened.get_item("iapReceipts") == '["r1"]'

    def test_remove_item(self, file_storage):
        file_storage.set_item("a", "1")
        file_storage.set_item("b", "2")

        file_storage.remove_item("a")

        assert file_storage.get_item("a") is None
        assert file_storage.get_item("b") == "2"

    def test_no_temporary_file_left(self, file_storage):
        file_storage.set_item("a", "1")
        assert [p.name for p in file_storage.path.parent.iterdir()] == ["storage.json"]

    def test_empty_file_reads_empty(self, file_storage):
        file_storage.path.parent.mkdir(parents=True)
        file_storage.path.write_text("")
        assert file_storage.get_item("a") is None

    def test_non_object_file_is_rejected(self, file_storage):
        file_storage.path.parent.mkdir(parents=True)
        file_storage.path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            file_storage.get_item("a")
