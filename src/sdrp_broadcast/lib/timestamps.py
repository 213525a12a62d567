"""Server-side clock helpers shared by the stores and the HTTP layer."""

import time
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000
