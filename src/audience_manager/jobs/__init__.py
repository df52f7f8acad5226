"""Job model, codec and dispatcher for batch processing."""

from audience_manager.jobs.codec import JobCodec
from audience_manager.jobs.dispatcher import Invoker, JobDispatcher, JobHandler
from audience_manager.jobs.models import AudienceLoadJob, AudienceProcessJob, Job, JobLog

__all__ = [
    "AudienceLoadJob",
    "AudienceProcessJob",
    "Invoker",
    "Job",
    "JobCodec",
    "JobDispatcher",
    "JobHandler",
    "JobLog",
]
