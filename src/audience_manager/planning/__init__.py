"""Change detection and action planning."""

from audience_manager.planning.checksum import ChecksumEngine
from audience_manager.planning.planner import ActionPlanner

__all__ = ["ActionPlanner", "ChecksumEngine"]
