"""
Main CLI entry point for the SD-RP broadcast backend.

Provides the command-line interface with argument parsing and command
routing.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .. import __app_name__, __version__
from .config import ConfigCommands
from .service import ServiceCommands


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""

    parser = argparse.ArgumentParser(
        prog='sdrp-broadcast',
        description=f'{__app_name__} - dashboard backend for Twitch, FiveM and Minecraft data',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sdrp-broadcast config validate
  sdrp-broadcast config show --no-mask-secrets
  sdrp-broadcast serve --port 3000
  sdrp-broadcast serve --env-file production.env --log-level DEBUG
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # serve
    serve_parser = subparsers.add_parser(
        'serve',
        help='Start the HTTP API',
        description='Start the HTTP API and run until interrupted'
    )
    serve_parser.add_argument('--host', type=str, help='Bind address (default: HOST or 0.0.0.0)')
    serve_parser.add_argument('--port', type=int, help='Bind port (default: PORT or 3000)')
    serve_parser.add_argument('--env-file', type=str, help='Configuration file (default: auto-detected .env)')
    serve_parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Set logging level (default: from environment or INFO)'
    )
    serve_parser.add_argument('--log-file', type=str, help='Also write JSON logs to this file')
    serve_parser.add_argument(
        '--rich',
        action='store_true',
        help='Human-readable console logs instead of JSON'
    )

    # config
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management',
        description='Inspect and validate configuration settings'
    )
    config_subparsers = config_parser.add_subparsers(
        dest='config_command',
        help='Configuration subcommands'
    )

    show_parser = config_subparsers.add_parser('show', help='Show current configuration')
    show_parser.add_argument('--env-file', type=str, help='Configuration file to read')
    show_parser.add_argument(
        '--format',
        choices=['table', 'json'],
        default='table',
        help='Output format (default: table)'
    )
    show_parser.add_argument(
        '--no-mask-secrets',
        dest='mask_secrets',
        action='store_false',
        default=True,
        help='Show sensitive values in plain text'
    )

    validate_parser = config_subparsers.add_parser('validate', help='Validate configuration')
    validate_parser.add_argument('--env-file', type=str, help='Configuration file to read')

    return parser


async def run_command(args: argparse.Namespace) -> int:
    """Run the appropriate command based on parsed arguments."""
    if args.command == 'serve':
        return await ServiceCommands().serve(args)
    elif args.command == 'config':
        commands = ConfigCommands()
        if args.config_command == 'show':
            return await commands.show(args)
        elif args.config_command == 'validate':
            return await commands.validate(args)
        print("Error: No configuration subcommand specified", file=sys.stderr)
        return 6
    print("Error: No command specified", file=sys.stderr)
    return 6


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        print("\nOperation cancelled", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
