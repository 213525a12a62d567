"""
CLI service command for the SD-RP broadcast backend.

Builds the service graph from configuration and runs the HTTP API until
interrupted.
"""

import argparse
import asyncio
import signal
from typing import Optional

from ..lib.config import ConfigurationError, ConfigurationManager
from ..lib.logging import get_logger, setup_logging
from ..services import (
    BroadcastAPIService,
    ChannelSource,
    DeathLogStore,
    GameServerStatusService,
    JsonFilePlayerStorage,
    MemoryPlayerStorage,
    PlayerRegistry,
    StreamAggregator,
    StreamerProfileEnricher,
    TwitchAPIService,
    TwitchAuthService,
)


class ServiceCommandError(Exception):
    """Service command specific errors."""
    pass


def build_api_service(config: ConfigurationManager) -> BroadcastAPIService:
    """Wire every service from one configuration."""
    oauth_config = config.get_oauth_config()
    try:
        oauth_config.validate()
    except ValueError as e:
        raise ServiceCommandError(f"Invalid Twitch credentials: {e}") from e

    auth = TwitchAuthService(oauth_config)
    api = TwitchAPIService(auth, target_game_name=config.get('TARGET_GAME_NAME'))
    source = ChannelSource(config.get_source_config())

    data_path = config.get_player_data_path()
    storage = JsonFilePlayerStorage(data_path) if data_path else MemoryPlayerStorage()

    return BroadcastAPIService(
        auth=auth,
        aggregator=StreamAggregator(api, source),
        enricher=StreamerProfileEnricher(api, source),
        game_server=GameServerStatusService(config.get_fivem_config()),
        death_log=DeathLogStore(),
        players=PlayerRegistry(storage),
        host=config.get('HOST'),
        port=config.get_int('PORT', 3000),
        expose_errors=not config.is_production,
    )


class ServiceCommands:
    """Service management CLI commands."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._api_service: Optional[BroadcastAPIService] = None
        self._shutdown = asyncio.Event()

    async def serve(self, args: argparse.Namespace) -> int:
        """Start the HTTP API and block until a shutdown signal."""
        overrides = {}
        if getattr(args, 'host', None):
            overrides['HOST'] = args.host
        if getattr(args, 'port', None):
            overrides['PORT'] = args.port

        try:
            config = ConfigurationManager(env_file=getattr(args, 'env_file', None), overrides=overrides)
        except ConfigurationError as e:
            print(f"Error: {e}")
            return 2

        setup_logging(
            level=getattr(args, 'log_level', None) or config.get('LOG_LEVEL', 'INFO'),
            log_file=getattr(args, 'log_file', None) or config.get('LOG_FILE') or None,
            rich_console=getattr(args, 'rich', False),
        )

        result = config.validate_configuration()
        for warning in result.warnings:
            self.logger.warning(warning)
        if not result.is_valid:
            for error in [*result.errors, *result.invalid_values]:
                print(f"  ✗ {error}")
            return 2

        try:
            self._api_service = build_api_service(config)
        except ServiceCommandError as e:
            print(f"Error: {e}")
            return 2

        self._setup_signal_handlers()
        try:
            await self._api_service.start()
            print(f" SD-RP broadcast API listening on {self._api_service.url}")
            await self._shutdown.wait()
        except OSError as e:
            self.logger.error(f"Service start failed: {e}")
            print(f"Error: {e}")
            return 1
        finally:
            await self._api_service.stop()

        print("Service stopped")
        return 0

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._shutdown.set)
            except (NotImplementedError, RuntimeError):
                # Windows event loops do not support signal handlers
                pass
