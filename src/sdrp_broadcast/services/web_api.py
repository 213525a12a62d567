"""
HTTP API service for the broadcast dashboard.

Binds the Twitch aggregation, FiveM status lookup, death log and player
registry to JSON endpoints on an aiohttp application.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aiohttp import web
from aiohttp.web import Request, Response
from pydantic import ValidationError

from ..lib.errors import BroadcastError, RequestValidationError
from ..lib.logging import get_logger
from ..models import DeathEventCreate, PlayerUpdate
from .aggregator import StreamAggregator
from .auth import TwitchAuthService
from .death_log import DeathLogStore
from .enricher import StreamerProfileEnricher
from .game_server import GameServerStatusService
from .player_registry import PlayerRegistry

logger = logging.getLogger(__name__)
request_logger = get_logger(f"{__name__}.requests")

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _json_response(data: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> Response:
    return Response(
        text=json.dumps(data, default=str),
        content_type='application/json',
        status=status,
        headers=headers,
    )


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get('loc', ()))
    return f"{location}: {first['msg']}" if location else first['msg']


def make_error_middleware(expose_errors: bool):
    """
    Request-boundary error handling.

    Handled errors map to their own status, unmatched routes to a JSON 404,
    and anything else to a 500 whose detail is only shown when
    `expose_errors` is set.
    """

    @web.middleware
    async def error_middleware(request: Request, handler):
        try:
            return await handler(request)
        except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
            return _json_response({'error': 'Endpoint not found'}, status=404)
        except web.HTTPException:
            raise
        except BroadcastError as e:
            if e.http_status >= 500:
                logger.error(f"{request.method} {request.path} failed: {e}")
            return _json_response({'success': False, 'error': e.message}, status=e.http_status)
        except Exception as e:
            logger.exception(f"Unhandled error on {request.method} {request.path}")
            return _json_response({
                'error': 'Internal server error',
                'message': str(e) if expose_errors else GENERIC_ERROR_MESSAGE,
            }, status=500)

    return error_middleware


class BroadcastAPIService:
    """
    aiohttp application wiring for the dashboard backend.

    All collaborators are injected so tests can substitute isolated stores
    and upstream fakes.
    """

    def __init__(
        self,
        auth: TwitchAuthService,
        aggregator: StreamAggregator,
        enricher: StreamerProfileEnricher,
        game_server: GameServerStatusService,
        death_log: DeathLogStore,
        players: PlayerRegistry,
        host: str = "0.0.0.0",
        port: int = 3000,
        expose_errors: bool = True,
        warm_up: bool = True,
    ):
        self.auth = auth
        self.aggregator = aggregator
        self.enricher = enricher
        self.game_server = game_server
        self.death_log = death_log
        self.players = players
        self.host = host
        self.port = port
        self.expose_errors = expose_errors
        self.warm_up = warm_up

        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self._is_running = False

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes registered."""
        app = web.Application(middlewares=[make_error_middleware(self.expose_errors)])

        app.router.add_get('/health', self._handle_health)

        # Twitch
        app.router.add_get('/api/twitch/streams', self._handle_streams)
        app.router.add_get('/api/twitch/streamer-data', self._handle_streamer_data)
        app.router.add_get('/api/twitch/clips', self._handle_clips)

        # FiveM
        app.router.add_get('/api/fivem/status', self._handle_fivem_status)

        # Death broadcast; /stats must be registered before the id route
        app.router.add_post('/api/deathbroadcast', self._handle_death_create)
        app.router.add_get('/api/deathbroadcast', self._handle_death_list)
        app.router.add_delete('/api/deathbroadcast', self._handle_death_clear)
        app.router.add_get('/api/deathbroadcast/stats', self._handle_death_stats)
        app.router.add_get(r'/api/deathbroadcast/{id:\d+}', self._handle_death_get)

        # Minecraft players
        app.router.add_get('/api/minecraft/players', self._handle_players_list)
        app.router.add_post('/api/minecraft/players/update', self._handle_player_update)
        app.router.add_delete('/api/minecraft/players', self._handle_players_clear)
        app.router.add_delete('/api/minecraft/players/{username}', self._handle_player_delete)
        app.router.add_get('/api/minecraft/stats', self._handle_players_stats)

        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)

        self.app = app
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        if self._is_running:
            logger.warning("API server already running")
            return

        try:
            logger.info(f"Starting API server on {self.host}:{self.port}")
            self.runner = web.AppRunner(self.build_app())
            await self.runner.setup()
            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()
            self._is_running = True
            logger.info(f"API server started: {self.url}")
        except Exception as e:
            logger.error(f"Failed to start API server: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None

        self.app = None
        if self._is_running:
            logger.info("API server stopped")
        self._is_running = False

    async def _on_startup(self, app: web.Application) -> None:
        await self.auth.start()
        await self.game_server.start()

        count = await self.players.load()
        logger.info(f"Player registry ready with {count} players")

        if not self.warm_up:
            return
        if await self.auth.ensure_token():
            try:
                await self.aggregator.api.get_game_id()
            except BroadcastError as e:
                logger.warning(f"Game id lookup at startup failed: {e}")

    async def _on_cleanup(self, app: web.Application) -> None:
        await self.game_server.close()
        await self.auth.close()

    @staticmethod
    async def _read_json(request: Request) -> Dict[str, Any]:
        if not request.can_read_body:
            return {}
        try:
            body = await request.json()
        except ValueError:
            raise RequestValidationError("Request body must be valid JSON")
        if not isinstance(body, dict):
            raise RequestValidationError("Request body must be a JSON object")
        return body

    @staticmethod
    def _query_int(request: Request, name: str, default: int) -> int:
        raw = request.query.get(name)
        if raw is None or raw == "":
            return default
        try:
            return max(int(raw), 0)
        except ValueError:
            raise RequestValidationError(f"Query parameter '{name}' must be an integer")

    def _error_detail(self, error: Exception) -> str:
        return str(error) if self.expose_errors else GENERIC_ERROR_MESSAGE

    async def _handle_health(self, request: Request) -> Response:
        return _json_response({
            'status': 'ok',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'hasToken': self.auth.has_token,
        })

    async def _handle_streams(self, request: Request) -> Response:
        """Merged live stream list."""
        try:
            result = await self.aggregator.get_streams()
        except Exception as e:
            logger.exception("Stream aggregation failed")
            return _json_response({'error': 'Internal server error', 'message': self._error_detail(e)}, status=500)

        if result.error:
            return _json_response({'error': 'Failed to fetch streams', 'details': result.error}, status=503)
        return _json_response(result.to_dict())

    async def _handle_streamer_data(self, request: Request) -> Response:
        """Enriched profiles of the configured channels."""
        try:
            profiles = await self.enricher.get_streamer_data()
        except Exception as e:
            logger.exception("Streamer enrichment failed")
            return _json_response(
                {'error': 'Failed to fetch streamer data', 'message': self._error_detail(e)},
                status=500,
            )
        return _json_response({'streamers': [p.to_dict() for p in profiles]})

    async def _handle_clips(self, request: Request) -> Response:
        channel = request.query.get('channel', '').strip()
        if not channel:
            raise RequestValidationError('Channel parameter required')

        request_logger.debug("Fetching clips", extra={'channel': channel, 'api_endpoint': request.path})
        clips = await self.enricher.get_channel_clips(channel.lower())
        return _json_response({'clips': clips})

    async def _handle_fivem_status(self, request: Request) -> Response:
        """Server population; always 200, degraded shape when the lookup fails."""
        status = await self.game_server.get_server_status()
        headers = None if status.is_degraded else {'Cache-Control': 'public, max-age=10'}
        return _json_response(status.to_response(), headers=headers)

    async def _handle_death_create(self, request: Request) -> Response:
        body = await self._read_json(request)
        if not body.get('message'):
            raise RequestValidationError('Message is required')
        try:
            payload = DeathEventCreate.model_validate(body)
        except ValidationError as e:
            raise RequestValidationError(_validation_message(e))

        event = self.death_log.add(payload)
        return _json_response({
            'success': True,
            'id': event.id,
            'message': 'Death message received',
        })

    async def _handle_death_list(self, request: Request) -> Response:
        limit = self._query_int(request, 'limit', 20)
        offset = self._query_int(request, 'offset', 0)
        return _json_response(self.death_log.page(offset=offset, limit=limit))

    async def _handle_death_get(self, request: Request) -> Response:
        event = self.death_log.get(int(request.match_info['id']))
        return _json_response(event.to_dict())

    async def _handle_death_clear(self, request: Request) -> Response:
        count = self.death_log.clear()
        return _json_response({
            'success': True,
            'deletedCount': count,
            'message': 'All death messages deleted',
        })

    async def _handle_death_stats(self, request: Request) -> Response:
        return _json_response(self.death_log.stats().to_dict())

    async def _handle_players_list(self, request: Request) -> Response:
        return _json_response(
            self.players.snapshot(),
            headers={'Cache-Control': 'public, max-age=5'},
        )

    async def _handle_player_update(self, request: Request) -> Response:
        body = await self._read_json(request)
        if not body.get('username'):
            raise RequestValidationError('Username required')
        try:
            update = PlayerUpdate.model_validate(body)
        except ValidationError as e:
            raise RequestValidationError(_validation_message(e))

        record = await self.players.upsert(update)
        return _json_response({'success': True, 'player': record.to_dict()})

    async def _handle_player_delete(self, request: Request) -> Response:
        deleted = await self.players.delete(request.match_info['username'])
        return _json_response({'success': True, 'deleted': deleted})

    async def _handle_players_clear(self, request: Request) -> Response:
        count = await self.players.delete_all()
        return _json_response({'success': True, 'deletedCount': count})

    async def _handle_players_stats(self, request: Request) -> Response:
        return _json_response(self.players.stats())

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"
