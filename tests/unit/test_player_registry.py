"""
Unit tests for the Minecraft player registry and its storage backends.
"""

import json

import pytest

from sdrp_broadcast.lib.errors import StorageError
from sdrp_broadcast.models import PlayerRecord, PlayerUpdate
from sdrp_broadcast.services.player_registry import (
    JsonFilePlayerStorage,
    MemoryPlayerStorage,
    PlayerRegistry,
)


class TestPlayerRegistry:
    """Test upsert, delete and stats on an in-memory registry."""

    @pytest.mark.asyncio
    async def test_upsert_creates_and_merges(self):
        registry = PlayerRegistry()

        await registry.upsert(PlayerUpdate(username="Steve", deaths=2, mined={'stone': 4}))
        record = await registry.upsert(PlayerUpdate(username="Steve", playerKills=1))

        assert record.deaths == 2
        assert record.player_kills == 1
        assert record.mined == {'stone': 4}
        assert len(registry) == 1
        assert registry.get("Steve") == record

    @pytest.mark.asyncio
    async def test_list_keeps_first_insert_order(self):
        registry = PlayerRegistry()
        for name in ("Steve", "Alex", "Herobrine"):
            await registry.upsert(PlayerUpdate(username=name))
        await registry.upsert(PlayerUpdate(username="Steve", deaths=1))

        assert [p.username for p in registry.list()] == ["Steve", "Alex", "Herobrine"]

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self):
        registry = PlayerRegistry()
        await registry.upsert(PlayerUpdate(username="Steve"))

        assert await registry.delete("Steve") == 1
        assert await registry.delete("Steve") == 0

    @pytest.mark.asyncio
    async def test_delete_all(self):
        registry = PlayerRegistry()
        await registry.upsert(PlayerUpdate(username="Steve"))
        await registry.upsert(PlayerUpdate(username="Alex"))

        assert await registry.delete_all() == 2
        assert registry.list() == []

    @pytest.mark.asyncio
    async def test_stats(self):
        registry = PlayerRegistry()
        await registry.upsert(PlayerUpdate(username="Steve", deaths=4, playerKills=1))
        await registry.upsert(PlayerUpdate(username="Alex", deaths=1, playerKills=6))

        assert registry.stats() == {
            'total': 2,
            'totalDeaths': 5,
            'totalPlayerKills': 7,
            'mostDeaths': {'username': "Steve", 'value': 4},
            'mostPlayerKills': {'username': "Alex", 'value': 6},
        }

    def test_stats_without_leaders(self):
        stats = PlayerRegistry().stats()
        assert stats['total'] == 0
        assert stats['mostDeaths'] is None
        assert stats['mostPlayerKills'] is None

    @pytest.mark.asyncio
    async def test_snapshot_shape(self):
        registry = PlayerRegistry()
        await registry.upsert(PlayerUpdate(username="Steve"))

        snapshot = registry.snapshot()

        assert snapshot['count'] == 1
        assert snapshot['players'][0]['username'] == "Steve"
        assert snapshot['timestamp'].endswith("Z")

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_memory_state(self, mocker):
        storage = MemoryPlayerStorage()
        mocker.patch.object(storage, 'save', side_effect=StorageError("disk full"))
        registry = PlayerRegistry(storage)

        await registry.upsert(PlayerUpdate(username="Steve"))

        assert registry.get("Steve") is not None


class TestJsonFilePlayerStorage:
    """Test snapshot persistence."""

    @pytest.mark.asyncio
    async def test_every_mutation_is_persisted(self, tmp_path):
        path = tmp_path / "players.json"
        registry = PlayerRegistry(JsonFilePlayerStorage(path))

        await registry.upsert(PlayerUpdate(username="Steve", deaths=3))
        assert json.loads(path.read_text())['players'][0]['deaths'] == 3

        await registry.delete("Steve")
        assert json.loads(path.read_text()) == {'players': []}

    @pytest.mark.asyncio
    async def test_reload_restores_records(self, tmp_path):
        path = tmp_path / "players.json"
        first = PlayerRegistry(JsonFilePlayerStorage(path))
        await first.upsert(PlayerUpdate(username="Steve", deaths=3, killed={'zombie': 2}))

        second = PlayerRegistry(JsonFilePlayerStorage(path))
        assert await second.load() == 1

        record = second.get("Steve")
        assert isinstance(record, PlayerRecord)
        assert record.deaths == 3
        assert record.killed == {'zombie': 2}

    @pytest.mark.asyncio
    async def test_missing_file_starts_empty(self, tmp_path):
        registry = PlayerRegistry(JsonFilePlayerStorage(tmp_path / "absent.json"))
        assert await registry.load() == 0

    @pytest.mark.asyncio
    async def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "players.json"
        path.write_text("{not json")

        registry = PlayerRegistry(JsonFilePlayerStorage(path))
        assert await registry.load() == 0

    @pytest.mark.asyncio
    async def test_wrong_document_shape_starts_empty(self, tmp_path):
        path = tmp_path / "players.json"
        path.write_text(json.dumps(["Steve"]))

        assert await JsonFilePlayerStorage(path).load() == []

    @pytest.mark.asyncio
    async def test_unwritable_path_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        storage = JsonFilePlayerStorage(blocker / "players.json")

        with pytest.raises(StorageError):
            await storage.save([PlayerRecord(username="Steve")])
