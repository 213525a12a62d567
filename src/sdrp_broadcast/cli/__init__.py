"""
Command-line interface for the SD-RP broadcast backend.
"""

from .main import main, create_parser

__all__ = ["main", "create_parser"]
