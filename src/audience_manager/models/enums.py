"""Enumerations for the audience manager."""

from enum import Enum


class JobStatus(str, Enum):
    """Status of a job within a batch."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed from this status."""
        return self in (JobStatus.COMPLETE, JobStatus.ERROR)


class JobType(str, Enum):
    """Discriminator of the job variants."""

    GENERIC = "GENERIC"
    AUDIENCE_LOAD = "AUDIENCE_LOAD"
    AUDIENCE_PROCESS = "AUDIENCE_PROCESS"


class JobName(str, Enum):
    """Operation names that can be invoked across the job boundary."""

    CLEAR_LOGS = "clear_logs"
    WRITE_LOGS = "write_logs"
    LOAD_AUDIENCES = "load_audiences"
    LOAD_AUDIENCE = "load_audience"
    PROCESS_AUDIENCES = "process_audiences"
    PROCESS_AUDIENCE = "process_audience"
    EXTRACT_RULES = "extract_rules"
    REFRESH_REFERENCE_DATA = "refresh_reference_data"


class Action(str, Enum):
    """Remote mutations an audience may need."""

    CREATE = "CREATE_AUDIENCE"
    UPDATE = "UPDATE_AUDIENCE"
    UPDATE_SHARES = "UPDATE_SHARES"

    @classmethod
    def ordered(cls, actions) -> list["Action"]:
        """Return actions in declaration order.

        Args:
            actions: Iterable of actions.

        Returns:
            Actions sorted as CREATE, UPDATE, UPDATE_SHARES.
        """
        order = list(cls)
        return sorted(set(actions), key=order.index)
