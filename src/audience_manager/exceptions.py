"""Exception types raised by the audience manager."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from audience_manager.jobs.models import Job


class AudienceManagerError(Exception):
    """Base class for all audience manager errors."""


class ConfigError(AudienceManagerError):
    """Raised when the configuration is incomplete or invalid."""


class JobStateError(AudienceManagerError):
    """Raised when a job is moved out of a terminal status."""


class JobDecodeError(AudienceManagerError):
    """Raised when a serialized job cannot be decoded."""


class JobInvocationError(AudienceManagerError):
    """Raised by the job dispatcher when an invoked operation fails.

    The message is the serialized (partially updated) job, so the caller
    can recover the job state from the failure path.
    """

    def __init__(self, payload: str):
        """Initialize the error.

        Args:
            payload: JSON string of the failed job.
        """
        self.payload = payload
        super().__init__(payload)


class RunnerBusyError(AudienceManagerError):
    """Raised when a batch is started while another one is in flight."""


class BatchError(AudienceManagerError):
    """Aggregate error for a batch that finished with failed jobs."""

    def __init__(self, operation: str, jobs: list["Job"]):
        """Initialize the error.

        Args:
            operation: Operation name of the batch.
            jobs: Jobs that ended in ERROR status.
        """
        self.operation = operation
        self.jobs = jobs
        super().__init__(
            f"{len(jobs)} job(s) failed during '{operation}': "
            + "; ".join(job.error for job in jobs if job.error)
        )


class ApiError(AudienceManagerError):
    """Raised when a remote API request fails permanently."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize the error.

        Args:
            message: Error description.
            status_code: HTTP status code, if a response was received.
        """
        self.status_code = status_code
        super().__init__(message)


class ProfileNotFoundError(ApiError):
    """Raised when no user profile exists for the configured network."""
