"""Job data models.

A job is the unit of work sent across the invocation boundary. The variants
form a closed tagged union over :class:`JobType`; the tag is fixed when the
job is constructed and :mod:`audience_manager.jobs.codec` switches on it when
decoding.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_serializer

from audience_manager.exceptions import JobStateError
from audience_manager.models.audience import Audience
from audience_manager.models.enums import Action, JobStatus, JobType
from audience_manager.utils.timestamps import utc_now

_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset(
        {JobStatus.RUNNING, JobStatus.COMPLETE, JobStatus.ERROR}
    ),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETE, JobStatus.ERROR}),
    JobStatus.COMPLETE: frozenset(),
    JobStatus.ERROR: frozenset(),
}


class JobLog(BaseModel):
    """A timestamped log message attached to a job."""

    date: datetime
    message: str


class Job(BaseModel):
    """A generic job, also used as a container for child jobs."""

    type: Literal[JobType.GENERIC] = Field(default=JobType.GENERIC, frozen=True)

    # Assigned by the runner per batch, not durable
    id: int = 0
    # Stable position, e.g. the source row offset
    index: int = 0

    status: JobStatus = JobStatus.PENDING
    logs: list[JobLog] = Field(default_factory=list)
    jobs: list["Job"] = Field(default_factory=list, description="Child jobs")
    offset: int = Field(default=0, description="Output positions already written")
    error: str = ""

    @property
    def job_type(self) -> JobType:
        """The variant tag of this job."""
        return self.type

    @property
    def is_terminal(self) -> bool:
        """Check if job is in a terminal state."""
        return self.status.is_terminal

    def is_pending(self) -> bool:
        return self.status == JobStatus.PENDING

    def is_running(self) -> bool:
        return self.status == JobStatus.RUNNING

    def is_complete(self) -> bool:
        return self.status == JobStatus.COMPLETE

    def is_error(self) -> bool:
        return self.status == JobStatus.ERROR

    def run(self) -> None:
        """Mark the job as dispatched."""
        self._transition(JobStatus.RUNNING)

    def complete(self) -> None:
        """Mark the job as successfully finished."""
        self._transition(JobStatus.COMPLETE)

    def fail(self, error: str) -> None:
        """Mark the job as failed.

        Args:
            error: Human-readable error message.
        """
        self._transition(JobStatus.ERROR)
        self.error = error

    def log(self, *messages: str) -> None:
        """Append messages to the job's logs, sharing one timestamp.

        Args:
            *messages: Messages to append.
        """
        now = utc_now()
        self.logs.extend(JobLog(date=now, message=message) for message in messages)

    def clear_logs(self) -> None:
        """Drop all logs of this job."""
        self.logs = []

    def _transition(self, status: JobStatus) -> None:
        if status == self.status:
            return
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise JobStateError(
                f"Job {self.id} (index {self.index}) cannot move from "
                f"{self.status.value} to {status.value}"
            )
        self.status = status


class AudienceLoadJob(Job):
    """Fetch and format one audience for display."""

    type: Literal[JobType.AUDIENCE_LOAD] = Field(
        default=JobType.AUDIENCE_LOAD, frozen=True
    )
    audience: Audience


class AudienceProcessJob(Job):
    """Apply one or more remote mutations to one audience."""

    type: Literal[JobType.AUDIENCE_PROCESS] = Field(
        default=JobType.AUDIENCE_PROCESS, frozen=True
    )
    audience: Audience
    actions: set[Action] = Field(default_factory=set)

    @field_serializer("actions")
    def _serialize_actions(self, actions: set[Action]) -> list[str]:
        return [action.value for action in Action.ordered(actions)]

    def has_action(self, action: Action) -> bool:
        """Check whether the given action is planned for this audience."""
        return action in self.actions
