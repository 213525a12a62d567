"""
Bounded in-memory death broadcast log.

Newest events sit at the front. The capacity bound is applied as part of
every insert, so readers never observe more than `capacity` entries.
Ranking statistics are recomputed from the live contents on each read.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List

from ..lib.errors import NotFoundError
from ..lib.timestamps import epoch_millis, utc_now_iso
from ..models import UNKNOWN, DeathEvent, DeathEventCreate, DeathStats, RankedName

logger = logging.getLogger(__name__)

MAX_DEATH_MESSAGES = 100
TOP_N = 10


def rank(names: Iterable[str], limit: int = TOP_N) -> List[RankedName]:
    """Frequency ranking, ties in first-seen order, sentinel ignored."""
    counts = Counter(name for name in names if name and name != UNKNOWN)
    # Counter.most_common is stable for equal counts (insertion order)
    return [RankedName(name=name, count=count) for name, count in counts.most_common(limit)]


class DeathLogStore:
    """Append-to-front registry of death events."""

    def __init__(self, capacity: int = MAX_DEATH_MESSAGES):
        if capacity < 1:
            raise ValueError("Capacity must be at least 1")
        self.capacity = capacity
        self._events: List[DeathEvent] = []
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._events)

    def _next_id(self) -> int:
        """Millisecond timestamp, bumped when two inserts share a millisecond."""
        self._last_id = max(epoch_millis(), self._last_id + 1)
        return self._last_id

    def add(self, payload: DeathEventCreate) -> DeathEvent:
        received_at = utc_now_iso()
        event = DeathEvent(
            id=self._next_id(),
            message=payload.message,
            player=payload.player or UNKNOWN,
            killer=payload.killer or UNKNOWN,
            weapon=payload.weapon or UNKNOWN,
            location=payload.location,
            timestamp=payload.timestamp or received_at,
            received_at=received_at,
        )
        self._events.insert(0, event)
        del self._events[self.capacity:]
        logger.info(
            f"Death: {event.player} by {event.killer} with {event.weapon}",
            extra={'player': event.player},
        )
        return event

    def get(self, event_id: int) -> DeathEvent:
        for event in self._events:
            if event.id == event_id:
                return event
        raise NotFoundError(f"Death message {event_id} not found")

    def list(self, offset: int = 0, limit: int = 20) -> List[DeathEvent]:
        offset = max(offset, 0)
        limit = max(limit, 0)
        return self._events[offset:offset + limit]

    def clear(self) -> int:
        count = len(self._events)
        self._events = []
        logger.info(f"Cleared {count} death messages")
        return count

    def stats(self) -> DeathStats:
        events = self._events
        return DeathStats(
            total_messages=len(events),
            last_message=events[0] if events else None,
            oldest_message=events[-1] if events else None,
            top_killers=rank(e.killer for e in events),
            top_weapons=rank(e.weapon for e in events),
        )

    def page(self, offset: int = 0, limit: int = 20) -> Dict[str, object]:
        """Paginated wire view used by the list endpoint."""
        return {
            'total': len(self._events),
            'limit': limit,
            'offset': offset,
            'messages': [e.to_dict() for e in self.list(offset, limit)],
        }
