"""
Services for the SD-RP broadcast backend.

Upstream clients (Twitch, FiveM), the aggregation and enrichment layers
built on them, the in-memory registries and the HTTP API.
"""

from .auth import (
    TwitchAuthService,
    OAuthConfig,
    RetryBudget,
    TokenResponse,
)

from .twitch import (
    TwitchAPIService,
    HELIX_PAGE_SIZE,
)

from .sources import (
    ChannelSource,
    SourceConfig,
)

from .aggregator import (
    StreamAggregator,
    StreamsResult,
    NO_ACCESS_TOKEN,
)

from .enricher import StreamerProfileEnricher

from .game_server import (
    GameServerStatusService,
    FiveMConfig,
)

from .death_log import (
    DeathLogStore,
    MAX_DEATH_MESSAGES,
)

from .player_registry import (
    PlayerRegistry,
    MemoryPlayerStorage,
    JsonFilePlayerStorage,
)

from .web_api import BroadcastAPIService

__all__ = [
    # Twitch
    "TwitchAuthService",
    "OAuthConfig",
    "RetryBudget",
    "TokenResponse",
    "TwitchAPIService",
    "HELIX_PAGE_SIZE",
    "ChannelSource",
    "SourceConfig",
    "StreamAggregator",
    "StreamsResult",
    "NO_ACCESS_TOKEN",
    "StreamerProfileEnricher",

    # FiveM
    "GameServerStatusService",
    "FiveMConfig",

    # Registries
    "DeathLogStore",
    "MAX_DEATH_MESSAGES",
    "PlayerRegistry",
    "MemoryPlayerStorage",
    "JsonFilePlayerStorage",

    # HTTP
    "BroadcastAPIService",
]
