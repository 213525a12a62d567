"""
FiveM server status lookup.

The FiveM server list API has shipped several payload shapes over time:
the server object may sit under `Data`, under `data` or at the top level,
and the population, cap and hostname fields have had different names.
normalize_server_payload resolves each field through an ordered fallback
chain so the precedence is explicit.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from ..models import DEFAULT_MAX_PLAYERS, GameServerStatus

logger = logging.getLogger(__name__)

# FiveM's frontend API rejects requests without a browser user agent
BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

PLAYERS_KEYS = ('clients', 'players', 'playersCount')
MAX_PLAYERS_KEYS = ('sv_maxclients', 'svMaxclients', 'maxPlayers', 'maxClients')
NAME_KEYS = ('hostname', 'name', 'serverName')
UPTIME_KEYS = ('uptime',)
ENDPOINT_KEYS = ('connectEndPoint', 'connectEndpoint')


class FiveMConfig:
    """Configuration for the FiveM status lookup."""

    def __init__(
        self,
        server_code: str = "g984bz",
        default_server_name: str = "SD-RP Server",
        api_base_url: str = "https://servers-frontend.fivem.net/api/servers/single",
        timeout_seconds: float = 10,
    ):
        self.server_code = server_code
        self.default_server_name = default_server_name
        self.api_base_url = api_base_url
        self.timeout_seconds = timeout_seconds

    @property
    def status_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/{self.server_code}"


def first_of(payload: Dict[str, Any], keys, default: Any = None) -> Any:
    """Value of the first key present with a non-empty value."""
    for key in keys:
        value = payload.get(key)
        if value not in (None, "", 0, "0"):
            return value
    return default


def count_of(payload: Dict[str, Any], keys, default: int) -> int:
    """Numeric count from the first usable key; player lists count by length."""
    counts = {key: len(value) if isinstance(value, list) else value
              for key, value in payload.items() if key in keys}
    return int(first_of(counts, keys, default))


def unwrap_server_data(payload: Any) -> Dict[str, Any]:
    """Pick the server object out of `Data`, `data` or the payload itself."""
    if not isinstance(payload, dict):
        raise ValueError("Server payload is not an object")
    for key in ('Data', 'data'):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return payload


def normalize_server_payload(payload: Any, default_server_name: str) -> GameServerStatus:
    """
    Translate a raw FiveM payload into an online GameServerStatus.

    Raises:
        ValueError: If the payload is not an object or a count is not numeric
    """
    data = unwrap_server_data(payload)
    return GameServerStatus(
        online=True,
        players=count_of(data, PLAYERS_KEYS, 0),
        max_players=count_of(data, MAX_PLAYERS_KEYS, DEFAULT_MAX_PLAYERS),
        server_name=str(first_of(data, NAME_KEYS, default_server_name)),
        uptime=first_of(data, UPTIME_KEYS),
        connect_endpoint=first_of(data, ENDPOINT_KEYS),
    )


class GameServerStatusService:
    """Fetches the configured server's status, never failing observably."""

    def __init__(self, config: FiveMConfig, session: Optional[ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        if self._session:
            return
        self._session = ClientSession(
            timeout=ClientTimeout(total=self.config.timeout_seconds),
            headers={'User-Agent': BROWSER_USER_AGENT, 'Accept': 'application/json'},
        )
        self._owns_session = True

    async def close(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def get_server_status(self) -> GameServerStatus:
        if not self._session:
            await self.start()

        try:
            async with self._session.get(
                self.config.status_url,
                headers={'User-Agent': BROWSER_USER_AGENT},
            ) as response:
                if response.status != 200:
                    raise ValueError(f"FiveM API error: {response.status}")
                payload = await response.json(content_type=None)
            return normalize_server_payload(payload, self.config.default_server_name)

        except (ClientError, asyncio.TimeoutError, ValueError, TypeError) as e:
            message = str(e) or type(e).__name__
            logger.error(f"FiveM status lookup failed: {message}")
            return GameServerStatus.offline(self.config.default_server_name, error=message)
