"""
Shared fixtures: in-process fake upstreams and service builders.

The fakes are real aiohttp applications served by aiohttp.test_utils, so the
services under test go through their normal HTTP client code paths.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from sdrp_broadcast.services import (
    ChannelSource,
    FiveMConfig,
    OAuthConfig,
    SourceConfig,
    TwitchAPIService,
    TwitchAuthService,
)

GTA_GAME_ID = "32982"


def make_stream(stream_id: str, login: str, viewers: int, title: str = "", game_id: str = GTA_GAME_ID,
                user_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        'id': stream_id,
        'user_id': user_id or f"u-{login}",
        'user_login': login,
        'user_name': login.capitalize(),
        'game_id': game_id,
        'title': title or f"{login} live",
        'viewer_count': viewers,
        'thumbnail_url': f"https://static.example/{login}-{{width}}x{{height}}.jpg",
    }


def make_user(user_id: str, login: str) -> Dict[str, Any]:
    return {
        'id': user_id,
        'login': login,
        'display_name': login.capitalize(),
        'description': f"{login} streams SD-RP",
        'profile_image_url': f"https://static.example/{login}.png",
        'view_count': 1000,
    }


class FakeTwitch:
    """Token endpoint plus the subset of Helix the backend calls."""

    def __init__(self):
        self.token_status = 200
        self.token_requests = 0
        self.unauthorized_remaining = 0
        self.failing_endpoints: Dict[str, int] = {}
        self.requests: List[Tuple[str, List[Tuple[str, str]], Optional[str]]] = []

        self.games = {"Grand Theft Auto V": GTA_GAME_ID}
        self.streams: List[Dict[str, Any]] = []
        self.users: List[Dict[str, Any]] = []
        self.followers: Dict[str, int] = {}
        self.clips: Dict[str, List[Dict[str, Any]]] = {}

        self.server: Optional[TestServer] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post('/oauth2/token', self._token)
        app.router.add_get('/helix/{endpoint:.+}', self._helix)
        return app

    def oauth_config(self, timeout_seconds: float = 5) -> OAuthConfig:
        return OAuthConfig(
            client_id="test-client",
            client_secret="test-secret",
            token_url=str(self.server.make_url('/oauth2/token')),
            api_base_url=str(self.server.make_url('/helix')),
            timeout_seconds=timeout_seconds,
        )

    def requests_to(self, endpoint: str) -> List[List[Tuple[str, str]]]:
        return [query for path, query, _auth in self.requests if path == endpoint]

    async def _token(self, request: web.Request) -> web.Response:
        self.token_requests += 1
        if request.query.get('grant_type') != 'client_credentials':
            return web.json_response({'message': 'bad grant'}, status=400)
        if self.token_status != 200:
            return web.json_response({'message': 'denied'}, status=self.token_status)
        return web.json_response({
            'access_token': f"token-{self.token_requests}",
            'expires_in': 5000000,
            'token_type': 'bearer',
        })

    async def _helix(self, request: web.Request) -> web.Response:
        endpoint = request.match_info['endpoint']
        query = request.query
        self.requests.append((endpoint, list(query.items()), request.headers.get('Authorization')))

        if self.unauthorized_remaining > 0:
            self.unauthorized_remaining -= 1
            return web.json_response({'message': 'Invalid OAuth token'}, status=401)
        if endpoint in self.failing_endpoints:
            return web.json_response({'message': 'upstream failure'}, status=self.failing_endpoints[endpoint])

        if endpoint == 'games':
            game_id = self.games.get(query.get('name'))
            return web.json_response({'data': [{'id': game_id, 'name': query.get('name')}] if game_id else []})

        if endpoint == 'streams':
            if 'user_login' in query:
                logins = set(query.getall('user_login'))
                data = [s for s in self.streams if s['user_login'] in logins]
            elif 'game_id' in query:
                data = [s for s in self.streams if s['game_id'] == query['game_id']]
                data = data[:int(query.get('first', 20))]
            else:
                data = [s for s in self.streams if s['user_id'] == query.get('user_id')]
            return web.json_response({'data': data})

        if endpoint == 'users':
            logins = set(query.getall('login'))
            return web.json_response({'data': [u for u in self.users if u['login'] in logins]})

        if endpoint == 'channels/followers':
            return web.json_response({'total': self.followers.get(query.get('broadcaster_id'), 0), 'data': []})

        if endpoint == 'clips':
            clips = self.clips.get(query.get('broadcaster_id'), [])
            return web.json_response({'data': clips[:int(query.get('first', 20))]})

        return web.json_response({'message': 'not found'}, status=404)


class FakeFiveM:
    """Configurable stand-in for the FiveM server lookup API."""

    def __init__(self):
        self.status = 200
        self.payload: Any = {'Data': {'clients': 42, 'sv_maxclients': 200, 'hostname': 'SD-RP | Roleplay'}}
        self.delay = 0.0
        self.user_agents: List[str] = []
        self.server: Optional[TestServer] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/api/servers/single/{code}', self._single)
        return app

    def config(self, timeout_seconds: float = 2) -> FiveMConfig:
        return FiveMConfig(
            server_code="g984bz",
            default_server_name="SD-RP Server",
            api_base_url=str(self.server.make_url('/api/servers/single')),
            timeout_seconds=timeout_seconds,
        )

    async def _single(self, request: web.Request) -> web.Response:
        self.user_agents.append(request.headers.get('User-Agent', ''))
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.payload, str):
            return web.Response(text=self.payload, status=self.status, content_type='application/json')
        return web.json_response(self.payload, status=self.status)


@pytest_asyncio.fixture
async def fake_twitch():
    fake = FakeTwitch()
    fake.server = TestServer(fake.build_app())
    await fake.server.start_server()
    yield fake
    await fake.server.close()


@pytest_asyncio.fixture
async def fake_fivem():
    fake = FakeFiveM()
    fake.server = TestServer(fake.build_app())
    await fake.server.start_server()
    yield fake
    await fake.server.close()


@pytest_asyncio.fixture
async def auth_service(fake_twitch):
    auth = TwitchAuthService(fake_twitch.oauth_config())
    await auth.start()
    yield auth
    await auth.close()


@pytest.fixture
def twitch_api(auth_service):
    return TwitchAPIService(auth_service, target_game_name="Grand Theft Auto V")


@pytest.fixture
def source_files(tmp_path):
    """Writable channel list and filter file locations."""
    channels = tmp_path / "channel_list.txt"
    filters = tmp_path / "filters.json"
    return channels, filters


@pytest.fixture
def channel_source(source_files):
    channels, filters = source_files
    return ChannelSource(SourceConfig(channel_list_path=channels, filters_file_path=filters))
