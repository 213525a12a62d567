"""
Configuration loading and validation with .env file support.

Provides centralized configuration management with support for environment
variables, .env files, and runtime validation for the broadcast backend.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import dotenv_values

from ..services.auth import OAuthConfig
from ..services.game_server import FiveMConfig
from ..services.sources import SourceConfig

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Configuration related errors."""
    pass


class ValidationLevel(str, Enum):
    """Configuration validation levels."""
    STRICT = "strict"      # Missing required settings are errors
    LENIENT = "lenient"    # Missing required settings are warnings


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    missing_required: List[str] = field(default_factory=list)
    invalid_values: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if validation has any errors."""
        return len(self.errors) > 0 or len(self.missing_required) > 0 or len(self.invalid_values) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_missing_required(self, key: str) -> None:
        self.missing_required.append(key)
        self.is_valid = False

    def add_invalid_value(self, key: str, reason: str) -> None:
        self.invalid_values.append(f"{key}: {reason}")
        self.is_valid = False


REQUIRED_SETTINGS = {
    'TWITCH_CLIENT_ID': 'Twitch application client ID',
    'TWITCH_CLIENT_SECRET': 'Twitch application client secret',
}

# key: (default, type, description)
OPTIONAL_SETTINGS = {
    'HOST': ('0.0.0.0', str, 'Interface to bind the HTTP server to'),
    'PORT': ('3000', int, 'HTTP server port'),
    'ENVIRONMENT': ('development', str, 'development exposes exception text in 500 responses'),
    'LOG_LEVEL': ('INFO', str, 'Application log level'),
    'LOG_FILE': ('', str, 'Optional JSON log file'),
    'CHANNEL_LIST_PATH': ('channel_list.txt', str, 'Newline-delimited Twitch channel list'),
    'FILTERS_FILE_PATH': ('filters.json', str, 'Keyword filter JSON file'),
    'MINECRAFT_DATA_PATH': ('minecraft_players.json', str, 'Player snapshot file, empty disables persistence'),
    'TARGET_GAME_NAME': ('Grand Theft Auto V', str, 'Game searched for keyword streams'),
    'FIVEM_SERVER_CODE': ('g984bz', str, 'FiveM server join code'),
    'FIVEM_SERVER_NAME': ('SD-RP Server', str, 'Server name reported when offline'),
    'UPSTREAM_TIMEOUT_SECONDS': ('10', float, 'Timeout for every outbound request'),
    'TWITCH_TOKEN_URL': ('https://id.twitch.tv/oauth2/token', str, 'Twitch OAuth token endpoint'),
    'TWITCH_API_BASE_URL': ('https://api.twitch.tv/helix', str, 'Twitch Helix base URL'),
    'FIVEM_API_BASE_URL': ('https://servers-frontend.fivem.net/api/servers/single', str, 'FiveM server lookup base URL'),
}

SENSITIVE_KEYS = {'TWITCH_CLIENT_SECRET'}


class ConfigurationManager:
    """
    Centralized configuration management system.

    Handles loading configuration from multiple sources with priority order:
    1. Explicit overrides (passed directly)
    2. Environment variables
    3. .env file
    4. Default values
    """

    def __init__(
        self,
        env_file: Optional[Union[str, Path]] = None,
        validation_level: ValidationLevel = ValidationLevel.STRICT,
        overrides: Optional[Dict[str, Any]] = None,
        auto_load: bool = True
    ):
        self.env_file = Path(env_file) if env_file else None
        self.validation_level = validation_level
        self._overrides = dict(overrides or {})

        self._config: Dict[str, Any] = {}
        self._config_sources: Dict[str, str] = {}
        self._is_loaded = False

        if auto_load:
            self.load_configuration()

    def load_configuration(self) -> None:
        """Load configuration from all sources."""
        self._config.clear()
        self._config_sources.clear()

        self._load_defaults()

        if self.env_file:
            if not self.env_file.exists():
                raise ConfigurationError(f"Configuration file not found: {self.env_file}")
            self._load_from_env_file(self.env_file)
        else:
            self._load_from_auto_detected_env_file()

        self._load_from_environment()
        self._apply_overrides()

        self._is_loaded = True
        logger.debug(f"Configuration loaded from {len(set(self._config_sources.values()))} sources")

    def _load_defaults(self) -> None:
        for key, (default, _type, _description) in OPTIONAL_SETTINGS.items():
            self._config[key] = default
            self._config_sources[key] = "defaults"

    def _load_from_env_file(self, env_file: Path) -> None:
        """Load configuration from a .env file without touching os.environ."""
        logger.info(f"Loading configuration from: {env_file}")
        try:
            values = dotenv_values(env_file)
        except OSError as e:
            raise ConfigurationError(f"Failed to load .env file: {e}") from e

        for key, value in values.items():
            if value is None:
                continue
            self._config[key] = value
            self._config_sources[key] = str(env_file)

    def _load_from_auto_detected_env_file(self) -> None:
        """Try to find and load .env file from common locations."""
        for env_path in (Path('.env'), Path('.env.local'), Path('config/.env')):
            if env_path.exists():
                logger.info(f"Auto-detected .env file: {env_path}")
                self.env_file = env_path
                self._load_from_env_file(env_path)
                break

    def _load_from_environment(self) -> None:
        """Load known settings from environment variables."""
        for key in (*REQUIRED_SETTINGS, *OPTIONAL_SETTINGS):
            if key in os.environ:
                self._config[key] = os.environ[key]
                self._config_sources[key] = "environment"

    def _apply_overrides(self) -> None:
        for key, value in self._overrides.items():
            self.set(key, value, source="override")

    def validate_configuration(self) -> ConfigValidationResult:
        """Validate the loaded configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self._is_loaded:
            result.add_error("Configuration not loaded")
            return result

        for key, description in REQUIRED_SETTINGS.items():
            value = self.get(key)
            if value is None or not str(value).strip():
                if self.validation_level == ValidationLevel.STRICT:
                    result.add_missing_required(key)
                    result.add_error(f"Missing required setting: {key} ({description})")
                else:
                    result.add_warning(f"Missing required setting: {key} ({description})")

        for key, (_default, expected_type, _description) in OPTIONAL_SETTINGS.items():
            value = self.get(key)
            if value in (None, ""):
                continue
            try:
                expected_type(value)
            except (TypeError, ValueError):
                result.add_invalid_value(key, f"Expected {expected_type.__name__}, got: {value}")

        port = self.get('PORT')
        try:
            if not 1 <= int(port) <= 65535:
                result.add_invalid_value('PORT', 'Port must be between 1 and 65535')
        except (TypeError, ValueError):
            pass  # already reported above

        try:
            if float(self.get('UPSTREAM_TIMEOUT_SECONDS')) <= 0:
                result.add_invalid_value('UPSTREAM_TIMEOUT_SECONDS', 'Must be positive')
        except (TypeError, ValueError):
            pass

        if not self.get_path('CHANNEL_LIST_PATH').exists():
            result.add_warning(f"Channel list {self.get('CHANNEL_LIST_PATH')} does not exist, no channels will be queried")

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key."""
        return self._config.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid integer value for {key}: {value}, using default: {default}")
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid float value for {key}: {value}, using default: {default}")
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ('true', '1', 'yes', 'on', 'enabled')

    def get_path(self, key: str) -> Path:
        return Path(str(self.get(key, '')))

    def set(self, key: str, value: Any, source: str = "programmatic") -> None:
        """Set configuration value programmatically."""
        self._config[key] = value
        self._config_sources[key] = source

    def get_source(self, key: str) -> Optional[str]:
        return self._config_sources.get(key)

    def get_all_config(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """All settings with their source, secrets masked by default."""
        result = {}
        for key in sorted(self._config):
            value = self._config[key]
            if mask_secrets and key in SENSITIVE_KEYS and value:
                value = f"{str(value)[:4]}****"
            result[key] = {'value': value, 'source': self._config_sources.get(key)}
        return result

    @property
    def is_production(self) -> bool:
        return str(self.get('ENVIRONMENT', '')).lower() == 'production'

    def get_oauth_config(self) -> OAuthConfig:
        return OAuthConfig(
            client_id=str(self.get('TWITCH_CLIENT_ID') or ''),
            client_secret=str(self.get('TWITCH_CLIENT_SECRET') or ''),
            token_url=self.get('TWITCH_TOKEN_URL'),
            api_base_url=self.get('TWITCH_API_BASE_URL'),
            timeout_seconds=self.get_float('UPSTREAM_TIMEOUT_SECONDS', 10.0),
        )

    def get_fivem_config(self) -> FiveMConfig:
        return FiveMConfig(
            server_code=self.get('FIVEM_SERVER_CODE'),
            default_server_name=self.get('FIVEM_SERVER_NAME'),
            api_base_url=self.get('FIVEM_API_BASE_URL'),
            timeout_seconds=self.get_float('UPSTREAM_TIMEOUT_SECONDS', 10.0),
        )

    def get_source_config(self) -> SourceConfig:
        return SourceConfig(
            channel_list_path=self.get_path('CHANNEL_LIST_PATH'),
            filters_file_path=self.get_path('FILTERS_FILE_PATH'),
        )

    def get_player_data_path(self) -> Optional[Path]:
        """Snapshot path, or None when persistence is disabled."""
        value = self.get('MINECRAFT_DATA_PATH')
        return Path(value) if value else None
