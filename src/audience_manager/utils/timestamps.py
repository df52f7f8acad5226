"""Timestamp helpers for status cells and job logs."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def current_date_string(now: Optional[datetime] = None) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM:SS`` (UTC, no fraction).

    Args:
        now: Timestamp to format. Defaults to the current time.

    Returns:
        The formatted timestamp.
    """
    now = now or utc_now()
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
