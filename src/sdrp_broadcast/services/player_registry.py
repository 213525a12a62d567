"""
Minecraft player registry.

Records are kept in memory, keyed by username, in first-insert order. A
storage backend is injected: MemoryPlayerStorage keeps nothing on disk,
JsonFilePlayerStorage rewrites a JSON snapshot after every mutation and
loads it once at startup.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..lib.errors import StorageError
from ..lib.timestamps import utc_now_iso
from ..models import PlayerRecord, PlayerUpdate

logger = logging.getLogger(__name__)


class MemoryPlayerStorage:
    """Storage backend that persists nothing."""

    async def load(self) -> List[PlayerRecord]:
        return []

    async def save(self, players: List[PlayerRecord]) -> None:
        return None


class JsonFilePlayerStorage:
    """
    Snapshot file backend.

    The file holds `{"players": [...]}`. Writes are serialized so that
    overlapping saves never interleave on disk.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._write_lock = asyncio.Lock()

    async def load(self) -> List[PlayerRecord]:
        """Read the snapshot; a missing or corrupt file yields an empty list."""
        if not self.path.exists():
            logger.info(f"No player snapshot at {self.path}, starting empty")
            return []

        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding='utf-8')
            document = json.loads(raw)
            players = [PlayerRecord.model_validate(p) for p in document.get('players', [])]
        except (OSError, ValueError, AttributeError, TypeError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            logger.error(f"Could not load player snapshot {self.path}, starting empty: {e}")
            return []

        logger.info(f"Loaded {len(players)} players from {self.path}")
        return players

    async def save(self, players: List[PlayerRecord]) -> None:
        document = {'players': [p.to_dict() for p in players]}
        text = json.dumps(document, indent=2, ensure_ascii=False)
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write, text)
            except OSError as e:
                raise StorageError(f"Could not save player snapshot {self.path}: {e}", cause=e) from e

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        tmp_path.write_text(text, encoding='utf-8')
        tmp_path.replace(self.path)


PlayerStorage = Union[MemoryPlayerStorage, JsonFilePlayerStorage]


class PlayerRegistry:
    """Upsert/delete/list registry of player records."""

    def __init__(self, storage: Optional[PlayerStorage] = None):
        self.storage = storage or MemoryPlayerStorage()
        self._players: Dict[str, PlayerRecord] = {}

    def __len__(self) -> int:
        return len(self._players)

    async def load(self) -> int:
        """Replace the in-memory contents with the stored snapshot."""
        players = await self.storage.load()
        self._players = {p.username: p for p in players}
        return len(self._players)

    async def _persist(self) -> None:
        # A failed snapshot write does not undo the in-memory change
        try:
            await self.storage.save(self.list())
        except StorageError as e:
            logger.error(str(e))

    def list(self) -> List[PlayerRecord]:
        return list(self._players.values())

    def get(self, username: str) -> Optional[PlayerRecord]:
        return self._players.get(username)

    async def upsert(self, update: PlayerUpdate) -> PlayerRecord:
        record = update.merge_into(self._players.get(update.username), seen_at=utc_now_iso())
        self._players[record.username] = record
        await self._persist()
        logger.info(f"Saved Minecraft player {record.username}", extra={'player': record.username})
        return record

    async def delete(self, username: str) -> int:
        """Remove one player; returns 1 when removed and 0 when absent."""
        removed = self._players.pop(username, None)
        await self._persist()
        return 1 if removed else 0

    async def delete_all(self) -> int:
        count = len(self._players)
        self._players = {}
        await self._persist()
        return count

    def stats(self) -> Dict[str, Any]:
        """Totals and leaders computed from the current records."""
        players = self.list()

        def leader(attr: str) -> Optional[Dict[str, Any]]:
            best = max(players, key=lambda p: getattr(p, attr), default=None)
            if best is None or getattr(best, attr) <= 0:
                return None
            return {'username': best.username, 'value': getattr(best, attr)}

        return {
            'total': len(players),
            'totalDeaths': sum(p.deaths for p in players),
            'totalPlayerKills': sum(p.player_kills for p in players),
            'mostDeaths': leader('deaths'),
            'mostPlayerKills': leader('player_kills'),
        }

    def snapshot(self) -> Dict[str, Any]:
        """Wire view for the list endpoint."""
        players = self.list()
        return {
            'players': [p.to_dict() for p in players],
            'timestamp': utc_now_iso(),
            'count': len(players),
        }
