"""Utility functions for the audience manager."""

from audience_manager.utils.logging import setup_logging
from audience_manager.utils.timestamps import current_date_string, utc_now

__all__ = [
    "current_date_string",
    "setup_logging",
    "utc_now",
]
