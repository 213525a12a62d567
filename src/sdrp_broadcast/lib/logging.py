"""
Logging configuration for sdrp-broadcast.

Console output is JSON lines or a rich handler; the optional log file is
always JSON. Request and upstream context travels as record attributes.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from rich.console import Console
from rich.logging import RichHandler

# Record attributes copied into JSON output when a caller supplies them
CONTEXT_FIELDS = ("api_endpoint", "response_status", "upstream", "channel", "player")

NOISY_LOGGERS = ("aiohttp.access", "asyncio")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, plus any context fields present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update({name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)})
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter whose sticky context fields are merged into every record."""

    def __init__(self, name: str):
        super().__init__(logging.getLogger(name), {})

    def set_context(self, **fields: Any) -> None:
        self.extra.update(fields)

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def _console_handler(json_format: bool, rich_console: bool) -> logging.Handler:
    if rich_console:
        return RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    json_format: bool = True,
    rich_console: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name
        log_file: Optional path of a JSON-lines log file
        console_output: Whether to log to stderr
        json_format: JSON console output when rich_console is off
        rich_console: Use a rich handler for the console
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(_console_handler(json_format, rich_console))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(name)
