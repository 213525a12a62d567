"""
Data models for the SD-RP broadcast backend.

This package contains the pydantic models for upstream payloads, the
normalized status shapes served to the dashboard, and the records held by
the in-memory registries.
"""

from .stream import (
    LiveStream,
    StreamerProfile,
)

from .server_status import (
    GameServerStatus,
    DEFAULT_MAX_PLAYERS,
)

from .death_event import (
    DeathEvent,
    DeathEventCreate,
    DeathStats,
    RankedName,
    UNKNOWN,
)

from .player import (
    PlayerRecord,
    PlayerUpdate,
)

__all__ = [
    # Twitch models
    "LiveStream",
    "StreamerProfile",

    # Game server
    "GameServerStatus",
    "DEFAULT_MAX_PLAYERS",

    # Death broadcast
    "DeathEvent",
    "DeathEventCreate",
    "DeathStats",
    "RankedName",
    "UNKNOWN",

    # Minecraft players
    "PlayerRecord",
    "PlayerUpdate",
]
