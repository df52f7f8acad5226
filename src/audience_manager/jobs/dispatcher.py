"""Worker side of the job invocation boundary.

The runner only ever talks to an ``invoke(operation, payload)`` coroutine
that accepts a serialized job and answers with a serialized job. The
dispatcher implements it in-process: it decodes the payload, hands the job
to the handler registered for the operation and encodes whatever the handler
returns. Failures are reported as :class:`JobInvocationError` carrying the
failed job, so the caller can still read its partial state.
"""

import inspect
import json
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from audience_manager.exceptions import JobInvocationError
from audience_manager.jobs.codec import JobCodec
from audience_manager.jobs.models import Job
from audience_manager.models.enums import JobStatus, JobType

logger = logging.getLogger("audience_manager.jobs.dispatcher")

JobHandler = Callable[[Job], Union[Job, Awaitable[Job]]]
Invoker = Callable[[str, str], Awaitable[str]]


def operation_name(operation) -> str:
    """Normalize an operation (plain string or enum member) to its name."""
    return operation.value if isinstance(operation, Enum) else str(operation)


class JobDispatcher:
    """Routes serialized jobs to registered operation handlers."""

    def __init__(self, codec: Optional[JobCodec] = None):
        """Initialize the dispatcher.

        Args:
            codec: Job codec (a default one is created if not provided).
        """
        self._codec = codec or JobCodec()
        self._handlers: dict[str, JobHandler] = {}

    @property
    def operations(self) -> list[str]:
        """Names of the registered operations."""
        return sorted(self._handlers)

    def register(self, operation: str, handler: JobHandler) -> None:
        """Register the handler of an operation.

        Args:
            operation: Operation name used by callers.
            handler: Callable receiving the decoded job and returning it
                (sync or async).
        """
        self._handlers[operation_name(operation)] = handler

    async def invoke(self, operation: str, payload: str) -> str:
        """Run an operation on a serialized job.

        Args:
            operation: Registered operation name.
            payload: JSON job produced by :class:`JobCodec`.

        Returns:
            JSON string of the job returned by the handler.

        Raises:
            JobInvocationError: If decoding, dispatch or the handler fails.
                Its message is the serialized failed job.
        """
        job: Optional[Job] = None

        try:
            job = self._codec.loads(payload)

            handler = self._handlers.get(operation_name(operation))
            if handler is None:
                raise LookupError(f"Unknown operation: {operation}")

            result = handler(job)
            if inspect.isawaitable(result):
                result = await result

            return self._codec.dumps(result if result is not None else job)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Operation '{operation}' failed: {message}")
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Full exception for '{operation}'", exc_info=True)

            if job is None:
                raise JobInvocationError(
                    json.dumps(
                        {
                            "type": JobType.GENERIC.value,
                            "status": JobStatus.ERROR.value,
                            "error": message,
                        }
                    )
                ) from e

            if not job.is_terminal:
                job.fail(message)
            raise JobInvocationError(self._codec.dumps(job)) from e
