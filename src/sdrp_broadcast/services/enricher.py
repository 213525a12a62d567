"""
Streamer profile enrichment and clip lookup.

For every configured channel the Helix user record is extended with the
follower total, the most recent clip and the current live stream. The three
lookups run concurrently and fail independently; a failed branch only
resets its own fields to their defaults.
"""

import asyncio
import logging
from typing import Any, Dict, List

from ..lib.errors import BroadcastError
from ..models import StreamerProfile
from .auth import RetryBudget
from .sources import ChannelSource
from .twitch import TwitchAPIService

logger = logging.getLogger(__name__)

CHANNEL_CLIP_COUNT = 10


def _settled(result: Any, default: Any, label: str, login: str) -> Any:
    """Unwrap one gather(return_exceptions=True) branch."""
    if isinstance(result, BaseException):
        logger.warning(f"{label} lookup failed for {login}: {result}")
        return default
    return result


class StreamerProfileEnricher:
    """Builds StreamerProfile entries for the configured channels."""

    def __init__(self, api: TwitchAPIService, source: ChannelSource):
        self.api = api
        self.source = source

    async def get_streamer_data(self) -> List[StreamerProfile]:
        """
        Profiles in the order Twitch returns the user records.

        Returns an empty list when no token is available, no channels are
        configured or the user lookup fails.
        """
        if not await self.api.auth.ensure_token():
            return []

        channels = self.source.get_channels()
        if not channels:
            return []

        budget = RetryBudget()
        try:
            users = await self.api.get_users(channels, budget)
        except BroadcastError as e:
            logger.error(f"Streamer lookup failed: {e}")
            return []

        users = [u for u in users if isinstance(u, dict) and u.get('id')]
        return list(await asyncio.gather(*(self._enrich(user, budget) for user in users)))

    async def _enrich(self, user: Dict[str, Any], budget: RetryBudget) -> StreamerProfile:
        user_id = str(user['id'])
        login = user.get('login') or user_id
        try:
            followers, clips, stream = await asyncio.gather(
                self.api.get_follower_total(user_id, budget),
                self.api.get_clips(user_id, first=1, budget=budget),
                self.api.get_stream_for_user(user_id, budget),
                return_exceptions=True,
            )
            clips = _settled(clips, [], "Clip", login)
            stream = _settled(stream, None, "Live status", login)

            return StreamerProfile.from_user(
                user,
                follower_count=_settled(followers, 0, "Follower", login),
                top_clip=clips[0] if clips else None,
                is_live=stream is not None,
                last_stream=stream,
            )
        except Exception as e:
            logger.warning(f"Enrichment failed for {login}, returning base profile: {e}")
            return self._base_profile(user)

    @staticmethod
    def _base_profile(user: Dict[str, Any]) -> StreamerProfile:
        try:
            return StreamerProfile.from_user(user)
        except ValueError as e:
            logger.warning(f"Malformed user record {user['id']}: {e}")
            return StreamerProfile(id=user['id'], login=str(user.get('login') or user['id']))

    async def get_channel_clips(self, channel: str) -> List[Dict[str, Any]]:
        """Most recent clips of one channel; empty on any miss."""
        if not await self.api.auth.ensure_token():
            return []

        budget = RetryBudget()
        try:
            users = await self.api.get_users([channel], budget)
            if not users or not users[0].get('id'):
                return []
            return await self.api.get_clips(str(users[0]['id']), first=CHANNEL_CLIP_COUNT, budget=budget)
        except BroadcastError as e:
            logger.error(f"Clip lookup failed for {channel}: {e}")
            return []
