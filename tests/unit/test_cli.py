"""
Unit tests for the command-line interface.
"""

import json

import pytest

from sdrp_broadcast.cli.main import create_parser, main
from sdrp_broadcast.cli.service import ServiceCommandError, build_api_service
from sdrp_broadcast.lib.config import OPTIONAL_SETTINGS, REQUIRED_SETTINGS, ConfigurationManager
from sdrp_broadcast.services import JsonFilePlayerStorage, MemoryPlayerStorage


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in (*REQUIRED_SETTINGS, *OPTIONAL_SETTINGS):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


class TestParser:
    """Test argument parsing."""

    def test_serve_options(self):
        args = create_parser().parse_args([
            'serve', '--host', '127.0.0.1', '--port', '8081', '--log-level', 'DEBUG', '--rich',
        ])

        assert args.command == 'serve'
        assert args.host == '127.0.0.1'
        assert args.port == 8081
        assert args.log_level == 'DEBUG'
        assert args.rich is True

    def test_config_show_masks_by_default(self):
        args = create_parser().parse_args(['config', 'show'])
        assert args.mask_secrets is True

        args = create_parser().parse_args(['config', 'show', '--no-mask-secrets'])
        assert args.mask_secrets is False


class TestCommands:
    """Test command exit codes and output."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "serve" in capsys.readouterr().out

    def test_validate_fails_without_credentials(self):
        assert main(['config', 'validate']) == 2

    def test_validate_passes_with_credentials(self, monkeypatch):
        monkeypatch.setenv('TWITCH_CLIENT_ID', 'id')
        monkeypatch.setenv('TWITCH_CLIENT_SECRET', 'secret')

        assert main(['config', 'validate']) == 0

    def test_validate_missing_env_file(self):
        assert main(['config', 'validate', '--env-file', 'nope.env']) == 2

    def test_show_json_masks_secret(self, monkeypatch, capsys):
        monkeypatch.setenv('TWITCH_CLIENT_SECRET', 'supersecret')

        assert main(['config', 'show', '--format', 'json']) == 0

        settings = json.loads(capsys.readouterr().out)
        assert settings['TWITCH_CLIENT_SECRET'] == {'value': 'supe****', 'source': 'environment'}
        assert settings['PORT']['source'] == 'defaults'

    def test_serve_refuses_to_start_without_credentials(self, mocker):
        start = mocker.patch('sdrp_broadcast.services.web_api.BroadcastAPIService.start')
        mocker.patch('sdrp_broadcast.cli.service.setup_logging')

        assert main(['serve', '--port', '8099']) == 2
        start.assert_not_called()


class TestBuildApiService:
    """Test service wiring from configuration."""

    def test_wires_file_storage_and_error_exposure(self, tmp_path):
        config = ConfigurationManager(overrides={
            'TWITCH_CLIENT_ID': 'id',
            'TWITCH_CLIENT_SECRET': 'secret',
            'PORT': '8123',
            'ENVIRONMENT': 'production',
            'MINECRAFT_DATA_PATH': str(tmp_path / "players.json"),
        })

        service = build_api_service(config)

        assert service.port == 8123
        assert service.expose_errors is False
        assert isinstance(service.players.storage, JsonFilePlayerStorage)

    def test_memory_storage_when_path_empty(self):
        config = ConfigurationManager(overrides={
            'TWITCH_CLIENT_ID': 'id',
            'TWITCH_CLIENT_SECRET': 'secret',
            'MINECRAFT_DATA_PATH': '',
        })

        service = build_api_service(config)

        assert service.expose_errors is True
        assert isinstance(service.players.storage, MemoryPlayerStorage)

    def test_missing_credentials_rejected(self):
        with pytest.raises(ServiceCommandError):
            build_api_service(ConfigurationManager())
