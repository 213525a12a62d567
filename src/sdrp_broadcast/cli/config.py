"""
CLI configuration commands for the SD-RP broadcast backend.

Shows the effective settings with their sources and validates them before
the server is started.
"""

import argparse
import json
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..lib.config import OPTIONAL_SETTINGS, REQUIRED_SETTINGS, ConfigurationError, ConfigurationManager


class ConfigCommands:
    """Configuration management CLI commands."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _load(self, args: argparse.Namespace) -> ConfigurationManager:
        return ConfigurationManager(env_file=getattr(args, 'env_file', None))

    async def show(self, args: argparse.Namespace) -> int:
        """Show current configuration."""
        try:
            config = self._load(args)
        except ConfigurationError as e:
            self.console.print(f"[red]Error:[/red] {e}")
            return 2

        settings = config.get_all_config(mask_secrets=getattr(args, 'mask_secrets', True))
        known = {**REQUIRED_SETTINGS, **{k: v[2] for k, v in OPTIONAL_SETTINGS.items()}}
        settings = {k: v for k, v in settings.items() if k in known}

        if getattr(args, 'format', 'table') == 'json':
            print(json.dumps(settings, indent=2, default=str))
            return 0

        table = Table(title="SD-RP Broadcast Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_column("Source", style="dim")
        table.add_column("Description", style="dim")
        for key, entry in settings.items():
            table.add_row(key, str(entry['value']), entry['source'] or "", known[key])
        self.console.print(table)
        return 0

    async def validate(self, args: argparse.Namespace) -> int:
        """Validate configuration; exit code 2 when invalid."""
        try:
            config = self._load(args)
        except ConfigurationError as e:
            self.console.print(f"[red]✗ {e}[/red]")
            return 2

        result = config.validate_configuration()

        if result.is_valid:
            self.console.print("[green]✓ Configuration validation passed[/green]")
        else:
            self.console.print("[red]✗ Configuration validation failed[/red]")
            for error in [*result.errors, *result.invalid_values]:
                self.console.print(f"  ✗ {error}")

        for warning in result.warnings:
            self.console.print(f"  [yellow]⚠ {warning}[/yellow]")

        return 0 if result.is_valid else 2
