"""
Twitch Helix endpoint wrappers.

Thin typed layer over TwitchAuthService.make_authenticated_request. Methods
raise the lib.errors upstream exceptions; callers decide how to degrade.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from .auth import RetryBudget, TwitchAuthService

logger = logging.getLogger(__name__)

# Helix caps list lookups and page sizes at 100 entries
HELIX_PAGE_SIZE = 100


def chunked(items: Sequence[str], size: int = HELIX_PAGE_SIZE) -> List[List[str]]:
    """Split items into consecutive batches of at most `size`."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class TwitchAPIService:
    """Helix API access for streams, users, clips and games."""

    def __init__(self, auth: TwitchAuthService, target_game_name: str = "Grand Theft Auto V"):
        self.auth = auth
        self.target_game_name = target_game_name
        self._game_id: Optional[str] = None
        self._game_id_lock = asyncio.Lock()

    @property
    def cached_game_id(self) -> Optional[str]:
        return self._game_id

    async def _data(
        self,
        endpoint: str,
        params,
        budget: Optional[RetryBudget] = None,
    ) -> List[Dict[str, Any]]:
        payload = await self.auth.make_authenticated_request(endpoint, params=params, budget=budget)
        data = payload.get('data') if isinstance(payload, dict) else None
        return data if isinstance(data, list) else []

    async def get_game_id(self, budget: Optional[RetryBudget] = None) -> Optional[str]:
        """
        Resolve the target game's Helix id, cached for the process lifetime.

        Only a successful lookup is cached; misses are retried on the next
        call.
        """
        if self._game_id:
            return self._game_id

        async with self._game_id_lock:
            if self._game_id:
                return self._game_id

            games = await self._data('games', {'name': self.target_game_name}, budget)
            if games:
                self._game_id = str(games[0].get('id'))
                logger.info(f"Resolved game id for {self.target_game_name}: {self._game_id}")
            else:
                logger.warning(f"Twitch knows no game named {self.target_game_name!r}")
            return self._game_id

    async def get_streams_by_logins(
        self,
        logins: Sequence[str],
        budget: Optional[RetryBudget] = None,
    ) -> List[Dict[str, Any]]:
        """Live streams for the given channel logins, one request per batch of 100."""
        streams: List[Dict[str, Any]] = []
        for batch in chunked(logins):
            params = [('user_login', login) for login in batch]
            streams.extend(await self._data('streams', params, budget))
        return streams

    async def get_streams_by_game(
        self,
        game_id: str,
        first: int = HELIX_PAGE_SIZE,
        budget: Optional[RetryBudget] = None,
    ) -> List[Dict[str, Any]]:
        return await self._data('streams', {'game_id': game_id, 'first': first}, budget)

    async def get_users(
        self,
        logins: Sequence[str],
        budget: Optional[RetryBudget] = None,
    ) -> List[Dict[str, Any]]:
        """User records for the given logins, in the order Twitch returns them."""
        users: List[Dict[str, Any]] = []
        for batch in chunked(logins):
            params = [('login', login) for login in batch]
            users.extend(await self._data('users', params, budget))
        return users

    async def get_follower_total(self, user_id: str, budget: Optional[RetryBudget] = None) -> int:
        payload = await self.auth.make_authenticated_request(
            'channels/followers', params={'broadcaster_id': user_id}, budget=budget
        )
        return int(payload.get('total') or 0)

    async def get_clips(
        self,
        user_id: str,
        first: int = 1,
        budget: Optional[RetryBudget] = None,
    ) -> List[Dict[str, Any]]:
        return await self._data('clips', {'broadcaster_id': user_id, 'first': first}, budget)

    async def get_stream_for_user(
        self,
        user_id: str,
        budget: Optional[RetryBudget] = None,
    ) -> Optional[Dict[str, Any]]:
        """The user's current stream, or None when offline."""
        streams = await self._data('streams', {'user_id': user_id}, budget)
        return streams[0] if streams else None
