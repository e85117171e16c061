"""Clock and duration formatting helpers."""

import time
from datetime import datetime


def now_ms() -> int:
    """Returns the current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def format_duration(ms: int) -> str:
    """
    Format a millisecond span as HH:MM:SS.

    Hours are not capped, so 100 hours renders as "100:00:00".
    Negative input is clamped to zero.
    """
    total_seconds = max(0, int(ms)) // 1000
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hours(ms: int) -> str:
    """Format a millisecond span as "Nh MMm" (e.g. "1h 30m")."""
    total_minutes = max(0, int(ms)) // 60_000
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes:02d}m"


def format_date(ts_ms: int) -> str:
    """Calendar date of a timestamp in local time, as M/D/YYYY."""
    dt = datetime.fromtimestamp(ts_ms / 1000)
    return f"{dt.month}/{dt.day}/{dt.year}"


def is_same_day(ts_ms: int, other_ms: int) -> bool:
    """True if both timestamps fall on the same local calendar day."""
    a = datetime.fromtimestamp(ts_ms / 1000).date()
    b = datetime.fromtimestamp(other_ms / 1000).date()
    return a == b
