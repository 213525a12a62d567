"""
Unit tests for stream aggregation.

The Helix layer is replaced with mocks so the merge, filter and phase
degradation rules can be checked in isolation.
"""

import pytest

from sdrp_broadcast.lib.errors import UnauthorizedError, UpstreamError
from sdrp_broadcast.models import LiveStream
from sdrp_broadcast.services.aggregator import (
    NO_ACCESS_TOKEN,
    StreamAggregator,
    filter_by_keywords,
    merge_streams,
    parse_streams,
)


def stream(stream_id, viewers, title="", user_name=""):
    return LiveStream(id=stream_id, viewer_count=viewers, title=title, user_name=user_name)


class TestMergeStreams:
    """Test merge_streams deduplication and ordering."""

    def test_duplicate_ids_collapse_to_one(self):
        merged = merge_streams([stream("1", 10)], [stream("1", 99), stream("2", 5)])

        assert [s.id for s in merged].count("1") == 1
        assert len(merged) == 2

    def test_first_occurrence_wins(self):
        merged = merge_streams([stream("1", 10)], [stream("1", 99)])
        assert merged[0].viewer_count == 10

    def test_sorted_by_viewers_descending(self):
        merged = merge_streams([stream("a", 3), stream("b", 50)], [stream("c", 20), stream("d", 50)])

        counts = [s.viewer_count for s in merged]
        assert all(a >= b for a, b in zip(counts, counts[1:]))

    def test_ties_keep_merged_order(self):
        merged = merge_streams([stream("b", 7)], [stream("a", 7)])
        assert [s.id for s in merged] == ["b", "a"]

    def test_empty_groups(self):
        assert merge_streams([], []) == []


class TestFilterAndParse:
    """Test keyword filtering and upstream parsing."""

    def test_filter_by_keywords(self):
        streams = [
            stream("1", 1, title="GTA Roleplay"),
            stream("2", 1, title="Speedrun any%"),
            stream("3", 1, title="chill", user_name="SDRPCop"),
        ]

        assert [s.id for s in filter_by_keywords(streams, ["roleplay", "sdrp"])] == ["1", "3"]

    def test_parse_streams_skips_malformed(self):
        raw = [
            {'id': '1', 'viewer_count': 3},
            {'viewer_count': 3},
            {'id': '2', 'viewer_count': -5},
        ]

        assert [s.id for s in parse_streams(raw)] == ["1"]


@pytest.fixture
def mock_api(mocker):
    api = mocker.Mock()
    api.auth.ensure_token = mocker.AsyncMock(return_value="token")
    api.get_streams_by_logins = mocker.AsyncMock(return_value=[])
    api.get_game_id = mocker.AsyncMock(return_value="32982")
    api.get_streams_by_game = mocker.AsyncMock(return_value=[])
    return api


@pytest.fixture
def mock_source(mocker):
    source = mocker.Mock()
    source.get_channels.return_value = ["alpha", "bravo"]
    source.get_keywords.return_value = ["sdrp"]
    return source


class TestStreamAggregator:
    """Test StreamAggregator phases."""

    @pytest.mark.asyncio
    async def test_no_token_short_circuits(self, mock_api, mock_source):
        mock_api.auth.ensure_token.return_value = None

        result = await StreamAggregator(mock_api, mock_source).get_streams()

        assert result.error == NO_ACCESS_TOKEN
        assert result.to_dict() == {'streams': [], 'error': NO_ACCESS_TOKEN}
        mock_api.get_streams_by_logins.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_sources_return_empty_without_error(self, mock_api, mock_source):
        mock_source.get_channels.return_value = []
        mock_source.get_keywords.return_value = []

        result = await StreamAggregator(mock_api, mock_source).get_streams()

        assert result.streams == []
        assert result.error is None
        mock_api.get_game_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_channel_and_keyword_results_merged(self, mock_api, mock_source):
        mock_api.get_streams_by_logins.return_value = [
            {'id': '1', 'user_name': 'Alpha', 'title': 'patrol', 'viewer_count': 10},
        ]
        mock_api.get_streams_by_game.return_value = [
            {'id': '1', 'user_name': 'Alpha', 'title': 'SDRP patrol', 'viewer_count': 12},
            {'id': '2', 'user_name': 'Other', 'title': 'SD-RP? no, SDRP', 'viewer_count': 40},
            {'id': '3', 'user_name': 'Rando', 'title': 'other server', 'viewer_count': 90},
        ]

        result = await StreamAggregator(mock_api, mock_source).get_streams()

        assert [s.id for s in result.streams] == ["2", "1"]
        assert result.streams[1].viewer_count == 10
        mock_api.get_streams_by_game.assert_awaited_once()
        assert mock_api.get_streams_by_game.await_args.kwargs['first'] == 100

    @pytest.mark.asyncio
    async def test_unauthorized_channel_phase_is_dropped(self, mock_api, mock_source):
        mock_api.get_streams_by_logins.side_effect = UnauthorizedError("rejected")
        mock_api.get_streams_by_game.return_value = [
            {'id': '9', 'title': 'sdrp heist', 'viewer_count': 1},
        ]

        result = await StreamAggregator(mock_api, mock_source).get_streams()

        assert [s.id for s in result.streams] == ["9"]
        assert result.error is None

    @pytest.mark.asyncio
    async def test_keyword_phase_failure_degrades_to_empty(self, mock_api, mock_source):
        mock_api.get_streams_by_logins.return_value = [{'id': '1', 'viewer_count': 1}]
        mock_api.get_game_id.side_effect = UpstreamError("boom", status=500)

        result = await StreamAggregator(mock_api, mock_source).get_streams()

        assert [s.id for s in result.streams] == ["1"]

    @pytest.mark.asyncio
    async def test_unresolved_game_skips_search(self, mock_api, mock_source):
        mock_api.get_game_id.return_value = None

        await StreamAggregator(mock_api, mock_source).get_streams()

        mock_api.get_streams_by_game.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_retry_budget_shared_by_both_phases(self, mock_api, mock_source):
        await StreamAggregator(mock_api, mock_source).get_streams()

        channel_budget = mock_api.get_streams_by_logins.await_args.args[1]
        game_budget = mock_api.get_game_id.await_args.args[0]
        assert channel_budget is game_budget
