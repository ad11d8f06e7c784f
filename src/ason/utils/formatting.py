"""Human readable sizes and timestamps for listings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def format_size(size: int) -> str:
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def format_time(when: datetime, now: Optional[datetime] = None) -> str:
    """Relative description for recent timestamps, a date for older ones."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = (now - when).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)} min ago"
    if seconds < 24 * 3600:
        return f"{int(seconds // 3600)} hr ago"
    if seconds < 7 * 24 * 3600:
        return f"{int(seconds // 86400)} days ago"
    return when.strftime("%Y-%m-%d")
