"""
Stream aggregation for the dashboard's live list.

Combines two Helix queries into one ranked list:

1. live streams of every channel in the channel list (batched by 100)
2. live streams of the target game whose title or display name contains
   one of the configured keywords

Results are de-duplicated by stream id and ordered by viewers.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from ..lib.errors import BroadcastError, UnauthorizedError
from ..models import LiveStream
from .auth import RetryBudget
from .sources import ChannelSource
from .twitch import HELIX_PAGE_SIZE, TwitchAPIService

logger = logging.getLogger(__name__)

NO_ACCESS_TOKEN = "NO_ACCESS_TOKEN"


@dataclass
class StreamsResult:
    """Outcome of one aggregation call."""
    streams: List[LiveStream] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'streams': [s.to_dict() for s in self.streams]}
        if self.error:
            result['error'] = self.error
        return result


def parse_streams(raw_streams: Iterable[Dict[str, Any]]) -> List[LiveStream]:
    """Validate upstream entries, skipping any Twitch sent malformed."""
    streams = []
    for raw in raw_streams:
        try:
            streams.append(LiveStream.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed stream entry: {e.errors()[0]['msg']}")
    return streams


def filter_by_keywords(streams: Iterable[LiveStream], keywords: Sequence[str]) -> List[LiveStream]:
    return [s for s in streams if s.matches_any(keywords)]


def merge_streams(*groups: Iterable[LiveStream]) -> List[LiveStream]:
    """
    Concatenate groups, keep the first entry seen for each stream id and
    sort by viewer count, highest first. Ties keep their merged order.
    """
    unique: Dict[str, LiveStream] = {}
    for group in groups:
        for stream in group:
            unique.setdefault(stream.id, stream)
    return sorted(unique.values(), key=lambda s: s.viewer_count, reverse=True)


class StreamAggregator:
    """Builds the merged live stream list."""

    def __init__(self, api: TwitchAPIService, source: ChannelSource):
        self.api = api
        self.source = source

    async def get_streams(self) -> StreamsResult:
        if not await self.api.auth.ensure_token():
            return StreamsResult(error=NO_ACCESS_TOKEN)

        keywords = self.source.get_keywords()
        channels = self.source.get_channels()
        budget = RetryBudget()

        channel_streams: List[LiveStream] = []
        keyword_streams: List[LiveStream] = []

        if channels:
            channel_streams = await self._streams_for_channels(channels, budget)
        if keywords:
            keyword_streams = await self._streams_for_keywords(keywords, budget)

        merged = merge_streams(channel_streams, keyword_streams)
        logger.debug(
            f"Aggregated {len(merged)} streams "
            f"({len(channel_streams)} from channels, {len(keyword_streams)} from keywords)"
        )
        return StreamsResult(streams=merged)

    async def _streams_for_channels(self, channels: Sequence[str], budget: RetryBudget) -> List[LiveStream]:
        """All-or-nothing: a failure in any batch discards the whole phase."""
        try:
            raw = await self.api.get_streams_by_logins(channels, budget)
        except UnauthorizedError as e:
            logger.error(f"Channel stream lookup unauthorized, dropping channel results: {e}")
            return []
        except BroadcastError as e:
            logger.error(f"Channel stream lookup failed: {e}")
            return []
        return parse_streams(raw)

    async def _streams_for_keywords(self, keywords: Sequence[str], budget: RetryBudget) -> List[LiveStream]:
        try:
            game_id = await self.api.get_game_id(budget)
            if not game_id:
                return []
            raw = await self.api.get_streams_by_game(game_id, first=HELIX_PAGE_SIZE, budget=budget)
        except BroadcastError as e:
            logger.error(f"Keyword stream search failed: {e}")
            return []
        return filter_by_keywords(parse_streams(raw), keywords)
