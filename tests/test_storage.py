"""
Tests for groupvault.storage module.
"""

import json
from uuid import uuid4

import pytest

from groupvault.config import VaultConfig
from groupvault.exceptions import StorageError
from groupvault.storage import (
    InMemoryStorage,
    JSONFileStorage,
    StorageAdapter,
    create_storage,
    vault_file_path,
)


class TestInMemoryStorage:
    """Tests for InMemoryStorage class."""

    def test_satisfies_protocol(self):
        """Test that the backend implements StorageAdapter."""
        assert isinstance(InMemoryStorage(), StorageAdapter)

    @pytest.mark.asyncio
    async def test_get_set(self):
        """Test storing and reading values."""
        storage = InMemoryStorage()
        assert await storage.get("name") is None
        await storage.set("name", "Team secrets")
        assert await storage.get("name") == "Team secrets"

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        """Test that stored values do not alias caller objects."""
        storage = InMemoryStorage()
        value = {"members": [1, 2]}
        await storage.set("directory", value)
        value["members"].append(3)

        stored = await storage.get("directory")
        assert stored == {"members": [1, 2]}
        stored["members"].clear()
        assert await storage.get("directory") == {"members": [1, 2]}

    @pytest.mark.asyncio
    async def test_set_many(self):
        """Test storing several keys in one call."""
        storage = InMemoryStorage()
        await storage.set("name", "old")
        await storage.set_many({"name": "Team secrets", "content": None, "directory": {"revision": 1}})

        assert await storage.get("name") == "Team secrets"
        assert await storage.get("content") is None
        assert await storage.get("directory") == {"revision": 1}

    @pytest.mark.asyncio
    async def test_destroy(self):
        """Test that a destroyed store is empty and read-only."""
        storage = InMemoryStorage()
        await storage.set("name", "x")
        await storage.destroy()

        assert storage.destroyed
        assert await storage.get("name") is None
        with pytest.raises(StorageError):
            await storage.set("name", "y")


class TestJSONFileStorage:
    """Tests for JSONFileStorage class."""

    def test_satisfies_protocol(self, tmp_path):
        """Test that the backend implements StorageAdapter."""
        assert isinstance(JSONFileStorage(tmp_path / "v.json"), StorageAdapter)

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        """Test that a second adapter reads what the first wrote."""
        path = tmp_path / "vault.json"
        first = JSONFileStorage(path)
        await first.set("name", "Team secrets")
        await first.set("content", None)

        second = JSONFileStorage(path)
        assert await second.get("name") == "Team secrets"
        assert await second.get("content") is None
        assert json.loads(path.read_text(encoding="utf-8"))["name"] == "Team secrets"

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, tmp_path):
        """Test reading before any write."""
        storage = JSONFileStorage(tmp_path / "nothing.json")
        assert await storage.get("id") is None
        assert not (tmp_path / "nothing.json").exists()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        """Test that the storage directory is created on first write."""
        path = tmp_path / "nested" / "dir" / "vault.json"
        await JSONFileStorage(path).set("id", "x")
        assert path.exists()

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        storage = JSONFileStorage(tmp_path / "vault.json")
        for i in range(3):
            await storage.set("counter", i)
        assert [p.name for p in tmp_path.iterdir()] == ["vault.json"]

    @pytest.mark.asyncio
    async def test_returned_values_are_copies(self, tmp_path):
        """Test that callers cannot mutate the cached document."""
        storage = JSONFileStorage(tmp_path / "vault.json")
        await storage.set("directory", {"members": []})
        (await storage.get("directory"))["members"].append("x")
        assert await storage.get("directory") == {"members": []}

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        """Test that unreadable JSON raises StorageError."""
        path = tmp_path / "vault.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            await JSONFileStorage(path).get("id")

    @pytest.mark.asyncio
    async def test_non_object_document(self, tmp_path):
        """Test that a JSON array is rejected."""
        path = tmp_path / "vault.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError):
            await JSONFileStorage(path).get("id")

    @pytest.mark.asyncio
    async def test_unserializable_value(self, tmp_path):
        """Test that a value JSON cannot encode raises StorageError."""
        path = tmp_path / "vault.json"
        storage = JSONFileStorage(path)
        await storage.set("id", "x")
        with pytest.raises(StorageError):
            await storage.set("bad", object())
        assert await JSONFileStorage(path).get("bad") is None

    @pytest.mark.asyncio
    async def test_set_many_is_all_or_nothing(self, tmp_path):
        """Test that a failed multi-key write leaves every key unchanged."""
        path = tmp_path / "vault.json"
        storage = JSONFileStorage(path)
        await storage.set_many({"id": "x", "content": {"ciphertext": "aa"}})

        with pytest.raises(StorageError):
            await storage.set_many({"content": {"ciphertext": "bb"}, "bad": object()})

        reopened = JSONFileStorage(path)
        assert await reopened.get("content") == {"ciphertext": "aa"}
        assert await reopened.get("bad") is None
        assert await storage.get("content") == {"ciphertext": "aa"}

    @pytest.mark.asyncio
    async def test_destroy(self, tmp_path):
        """Test that destroy removes the file and is idempotent."""
        path = tmp_path / "vault.json"
        storage = JSONFileStorage(path)
        await storage.set("id", "x")
        await storage.destroy()
        assert not path.exists()
        assert await storage.get("id") is None
        await storage.destroy()


class TestCreateStorage:
    """Tests for backend selection."""

    def test_memory_backend(self):
        """Test the default backend."""
        assert isinstance(create_storage(VaultConfig(storage_backend="memory"), uuid4()), InMemoryStorage)

    def test_file_backend(self, tmp_path):
        """Test the file backend and its path."""
        vault_id = uuid4()
        config = VaultConfig(storage_backend="file", storage_dir=str(tmp_path))
        storage = create_storage(config, vault_id)

        assert isinstance(storage, JSONFileStorage)
        assert storage.path == tmp_path / f"{vault_id}.json"
        assert vault_file_path(config, vault_id) == storage.path
