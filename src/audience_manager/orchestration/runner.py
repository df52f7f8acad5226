"""Bounded-concurrency job runner.

The runner drains a batch of jobs onto at most ``max_concurrency``
outstanding remote invocations. Every invocation is an asyncio task whose
completion callback runs on the event loop thread, so the id-keyed job map
and the running count are only ever touched from one place: the drain loop
and the completion handler.
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Callable, Optional

from audience_manager.config.defaults import DEFAULT_MAX_CONCURRENCY
from audience_manager.exceptions import (
    JobDecodeError,
    JobInvocationError,
    RunnerBusyError,
)
from audience_manager.jobs.codec import JobCodec
from audience_manager.jobs.dispatcher import Invoker, operation_name
from audience_manager.jobs.models import Job
from audience_manager.models.enums import JobStatus

logger = logging.getLogger("audience_manager.orchestration.runner")

CompletionCallback = Callable[[Job], None]


class RunnerState(str, Enum):
    """State of the runner itself (not of its jobs)."""

    IDLE = "idle"
    RUNNING = "running"


class JobRunner:
    """Runs one batch of jobs at a time across the invocation boundary."""

    def __init__(
        self,
        invoker: Invoker,
        codec: Optional[JobCodec] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        """Initialize the runner.

        Args:
            invoker: Coroutine function ``(operation, payload) -> payload``.
            codec: Job codec (a default one is created if not provided).
            max_concurrency: Maximum number of in-flight invocations.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._invoker = invoker
        self._codec = codec or JobCodec()
        self._max_concurrency = max_concurrency

        self._state = RunnerState.IDLE
        self._jobs: dict[int, Job] = {}
        self._operation: Optional[str] = None
        self._future: Optional[asyncio.Future] = None
        self._on_complete: Optional[CompletionCallback] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> RunnerState:
        """Current runner state."""
        return self._state

    @property
    def max_concurrency(self) -> int:
        """Maximum number of in-flight invocations."""
        return self._max_concurrency

    @property
    def running_count(self) -> int:
        """Number of jobs of the current batch in RUNNING status."""
        return sum(1 for job in self._jobs.values() if job.is_running())

    def run(
        self,
        operation: str,
        jobs: list[Job],
        on_complete: Optional[CompletionCallback] = None,
    ) -> "asyncio.Future[list[Job]]":
        """Start a batch.

        Must be called from within a running event loop.

        Args:
            operation: Operation name passed to the invoker for every job.
            jobs: Jobs to run. Their ``id`` is reassigned 0..n-1.
            on_complete: Optional callback invoked with each finished job.

        Returns:
            Future resolving to all jobs, in input order, once none is
            pending or running. If a batch is already in flight the future
            is failed with :class:`RunnerBusyError`.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        if self._state == RunnerState.RUNNING:
            logger.warning(
                f"Rejected '{operation}': batch '{self._operation}' is still running"
            )
            future.set_exception(
                RunnerBusyError(
                    f"Cannot start '{operation}' while '{self._operation}' is running"
                )
            )
            return future

        if not jobs:
            future.set_result([])
            return future

        for job_id, job in enumerate(jobs):
            job.id = job_id

        self._jobs = {job.id: job for job in jobs}
        self._operation = operation_name(operation)
        self._future = future
        self._on_complete = on_complete
        self._state = RunnerState.RUNNING

        logger.info(
            f"Running '{self._operation}' for {len(jobs)} job(s) "
            f"(max {self._max_concurrency} concurrent)"
        )
        self._run_jobs()

        return future

    def _run_jobs(self) -> None:
        """Dispatch pending jobs into free slots, then check for completion."""
        pending = [job for job in self._jobs.values() if job.is_pending()]
        running = self.running_count

        while pending and running < self._max_concurrency:
            self._dispatch(pending.pop(0))
            running += 1

        self._check_completion()

    def _dispatch(self, job: Job) -> None:
        job.run()
        payload = self._codec.dumps(job)
        logger.debug(f"Dispatching job {job.id} (index {job.index}) to '{self._operation}'")

        task = asyncio.ensure_future(self._invoke(self._operation, payload))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_invocation_done, job.id))

    async def _invoke(self, operation: str, payload: str) -> str:
        return await self._invoker(operation, payload)

    def _on_invocation_done(self, job_id: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            job = self._jobs[job_id]
            job.fail("Invocation was cancelled")
        elif task.exception() is not None:
            job = self._decode_failure(job_id, task.exception())
        else:
            job = self._decode_result(job_id, task.result())

        self._handler(job_id, job)

    def _decode_result(self, job_id: int, payload: str) -> Job:
        try:
            job = self._codec.loads(payload)
        except JobDecodeError as e:
            job = self._jobs[job_id]
            job.fail(f"Malformed result: {e}")
            return job

        if job.error:
            # An error message always means failure, whatever the status says
            if not job.is_terminal:
                job.fail(job.error)
            elif job.is_complete():
                job = job.model_copy(update={"status": JobStatus.ERROR})
        elif not job.is_terminal:
            # Returned without raising: successful even if the status is stale
            job.complete()
        elif job.is_error():
            job.error = "Job failed without an error message"

        return job

    def _decode_failure(self, job_id: int, exc: BaseException) -> Job:
        payload = exc.payload if isinstance(exc, JobInvocationError) else str(exc)

        try:
            job = self._codec.loads(payload)
        except JobDecodeError:
            job = self._jobs[job_id]
            job.fail(str(exc) or type(exc).__name__)
            return job

        if not job.is_error():
            message = job.error or "Job invocation failed"
            if job.is_terminal:
                job = job.model_copy(update={"status": JobStatus.ERROR, "error": message})
            else:
                job.fail(message)

        return job

    def _handler(self, job_id: int, job: Job) -> None:
        """Reconcile one finished invocation into the batch."""
        job.id = job_id
        self._jobs[job_id] = job

        if job.is_error():
            logger.warning(f"Job {job_id} (index {job.index}) failed: {job.error}")
        else:
            logger.debug(f"Job {job_id} (index {job.index}) complete")

        if self._on_complete is not None:
            try:
                self._on_complete(job)
            except Exception:
                logger.exception(f"Completion callback failed for job {job_id}")

        self._run_jobs()

    def _check_completion(self) -> None:
        if not self._jobs:
            return
        if any(job.is_pending() or job.is_running() for job in self._jobs.values()):
            return

        results = [self._jobs[job_id] for job_id in sorted(self._jobs)]
        future = self._future
        errors = sum(1 for job in results if job.is_error())

        logger.info(
            f"Finished '{self._operation}': {len(results) - errors} complete, "
            f"{errors} failed"
        )

        self._state = RunnerState.IDLE
        self._jobs = {}
        self._operation = None
        self._future = None
        self._on_complete = None

        if future is not None and not future.done():
            future.set_result(results)
