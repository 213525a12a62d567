"""
Readers for the operator-maintained channel list and keyword filter file.

Both files are read on every request so edits take effect without a
restart. A missing or unreadable file is treated as an empty list.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


class SourceConfig:
    """Locations of the channel list and keyword filter files."""

    def __init__(
        self,
        channel_list_path: Union[str, Path] = "channel_list.txt",
        filters_file_path: Union[str, Path] = "filters.json",
    ):
        self.channel_list_path = Path(channel_list_path)
        self.filters_file_path = Path(filters_file_path)


def parse_channel_list(text: str) -> List[str]:
    """One login per line; trimmed, lowercased, blank lines dropped."""
    return [line.strip().lower() for line in text.splitlines() if line.strip()]


def parse_keywords(raw: str) -> List[str]:
    """Extract the `keywords` array from a filter document."""
    filters = json.loads(raw)
    if not isinstance(filters, dict) or not isinstance(filters.get('keywords'), list):
        return []
    keywords = (str(k).strip().lower() for k in filters['keywords'])
    return [k for k in keywords if k]


class ChannelSource:
    """Reads the configured channels and keywords."""

    def __init__(self, config: SourceConfig):
        self.config = config

    def get_channels(self) -> List[str]:
        try:
            text = self.config.channel_list_path.read_text(encoding='utf-8')
        except OSError as e:
            logger.error(f"Cannot read channel list {self.config.channel_list_path}: {e}")
            return []
        except ValueError as e:
            logger.error(f"Channel list {self.config.channel_list_path} is not valid UTF-8: {e}")
            return []
        return parse_channel_list(text)

    def get_keywords(self) -> List[str]:
        try:
            raw = self.config.filters_file_path.read_text(encoding='utf-8')
            return parse_keywords(raw)
        except OSError as e:
            logger.error(f"Cannot read filter file {self.config.filters_file_path}: {e}")
        except ValueError as e:
            logger.error(f"Filter file {self.config.filters_file_path} is malformed: {e}")
        return []
