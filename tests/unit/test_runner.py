"""Tests for the bounded-concurrency job runner."""

import asyncio
import json

import pytest

from audience_manager.exceptions import JobInvocationError, RunnerBusyError
from audience_manager.jobs.codec import JobCodec
from audience_manager.jobs.dispatcher import JobDispatcher
from audience_manager.jobs.models import Job
from audience_manager.models.enums import JobName, JobStatus
from audience_manager.orchestration.runner import JobRunner, RunnerState


class RecordingInvoker:
    """Invoker completing each job after a per-index delay."""

    def __init__(self, delays=None, fail_indexes=()):
        self.codec = JobCodec()
        self.delays = delays or {}
        self.fail_indexes = set(fail_indexes)
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[tuple[str, int]] = []

    async def __call__(self, operation: str, payload: str) -> str:
        job = self.codec.loads(payload)
        self.calls.append((operation, job.index))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(job.index, 0))
        finally:
            self.in_flight -= 1

        if job.index in self.fail_indexes:
            job.fail(f"failed {job.index}")
            raise JobInvocationError(self.codec.dumps(job))

        job.log(f"done {job.index}")
        return self.codec.dumps(job)


class TestJobRunner:
    """Tests for JobRunner."""

    def test_rejects_invalid_cap(self):
        """Test the concurrency cap must be positive."""
        with pytest.raises(ValueError):
            JobRunner(RecordingInvoker(), max_concurrency=0)

    @pytest.mark.asyncio
    async def test_respects_concurrency_cap(self):
        """Test no more than the cap is ever in flight."""
        invoker = RecordingInvoker(delays={0: 0.05, 1: 0.01, 2: 0.03, 3: 0.0, 4: 0.02})
        runner = JobRunner(invoker, max_concurrency=2)

        results = await runner.run("op", [Job(index=i) for i in range(5)])

        assert invoker.max_in_flight == 2
        assert len(results) == 5
        assert all(job.is_complete() for job in results)
        assert runner.state == RunnerState.IDLE

    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        """Test out-of-order completion still yields input order."""
        invoker = RecordingInvoker(delays={0: 0.05, 1: 0.0, 2: 0.02})
        runner = JobRunner(invoker, max_concurrency=3)
        completed: list[int] = []

        results = await runner.run(
            "op",
            [Job(index=10), Job(index=11), Job(index=12)],
            on_complete=lambda job: completed.append(job.index),
        )

        assert [job.id for job in results] == [0, 1, 2]
        assert [job.index for job in results] == [10, 11, 12]
        assert completed[0] != 10
        assert sorted(completed) == [10, 11, 12]
        assert results[0].logs[0].message == "done 10"

    @pytest.mark.asyncio
    async def test_dispatches_fifo(self):
        """Test pending jobs are started in input order."""
        invoker = RecordingInvoker()
        runner = JobRunner(invoker, max_concurrency=1)

        await runner.run(JobName.LOAD_AUDIENCE, [Job(index=i) for i in range(4)])

        assert invoker.calls == [("load_audience", i) for i in range(4)]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        """Test an empty batch resolves immediately."""
        runner = JobRunner(RecordingInvoker())
        assert await runner.run("op", []) == []
        assert runner.state == RunnerState.IDLE

    @pytest.mark.asyncio
    async def test_busy_runner_rejects_second_batch(self):
        """Test a second batch fails while the first is in flight."""
        invoker = RecordingInvoker(delays={0: 0.02})
        runner = JobRunner(invoker)

        first = runner.run("op", [Job()])
        assert runner.state == RunnerState.RUNNING

        with pytest.raises(RunnerBusyError):
            await runner.run("other", [Job()])

        results = await first
        assert results[0].is_complete()

        # Idle again, a new batch is accepted
        assert len(await runner.run("op", [Job()])) == 1

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_batch(self):
        """Test failed jobs are reported and the rest still runs."""
        invoker = RecordingInvoker(fail_indexes={1, 3})
        runner = JobRunner(invoker, max_concurrency=2)

        results = await runner.run("op", [Job(index=i) for i in range(5)])

        assert [job.status for job in results] == [
            JobStatus.COMPLETE,
            JobStatus.ERROR,
            JobStatus.COMPLETE,
            JobStatus.ERROR,
            JobStatus.COMPLETE,
        ]
        assert results[1].error == "failed 1"

    @pytest.mark.asyncio
    async def test_plain_exception_fails_job(self):
        """Test an invoker error without a job payload fails the placeholder."""

        async def invoker(operation, payload):
            raise ConnectionError("network down")

        runner = JobRunner(invoker)
        results = await runner.run("op", [Job(index=9)])

        assert results[0].is_error()
        assert results[0].error == "network down"
        assert results[0].index == 9

    @pytest.mark.asyncio
    async def test_malformed_result_fails_job(self):
        """Test an undecodable result fails the job."""

        async def invoker(operation, payload):
            return "not a job"

        runner = JobRunner(invoker)
        results = await runner.run("op", [Job()])

        assert results[0].is_error()
        assert results[0].error.startswith("Malformed result")

    @pytest.mark.asyncio
    async def test_returned_running_job_is_completed(self):
        """Test a result still marked RUNNING counts as success."""
        codec = JobCodec()

        async def invoker(operation, payload):
            return payload

        results = await JobRunner(invoker, codec).run("op", [Job()])
        assert results[0].is_complete()

    @pytest.mark.asyncio
    async def test_returned_error_message_fails_job(self):
        """Test a result carrying an error message is a failure."""

        async def invoker(operation, payload):
            data = json.loads(payload)
            data["error"] = "soft failure"
            return json.dumps(data)

        results = await JobRunner(invoker).run("op", [Job()])
        assert results[0].is_error()
        assert results[0].error == "soft failure"

    @pytest.mark.asyncio
    async def test_complete_result_with_error_message_fails_job(self):
        """Test a result marked COMPLETE but carrying an error is a failure."""

        async def invoker(operation, payload):
            data = json.loads(payload)
            data["status"] = JobStatus.COMPLETE.value
            data["error"] = "partial write"
            return json.dumps(data)

        results = await JobRunner(invoker).run("op", [Job()])
        assert results[0].status == JobStatus.ERROR
        assert results[0].error == "partial write"

    @pytest.mark.asyncio
    async def test_failure_payload_marked_complete_becomes_error(self):
        """Test a failure path payload is never reported as complete."""
        codec = JobCodec()

        async def invoker(operation, payload):
            job = codec.loads(payload)
            job.complete()
            raise JobInvocationError(codec.dumps(job))

        results = await JobRunner(invoker, codec).run("op", [Job()])
        assert results[0].is_error()
        assert results[0].error == "Job invocation failed"

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self):
        """Test a raising completion callback does not break the batch."""

        def callback(job):
            raise RuntimeError("display broke")

        results = await JobRunner(RecordingInvoker()).run(
            "op", [Job(), Job()], on_complete=callback
        )
        assert all(job.is_complete() for job in results)

    @pytest.mark.asyncio
    async def test_with_dispatcher(self):
        """Test the runner drives handlers through the dispatcher."""
        codec = JobCodec()
        dispatcher = JobDispatcher(codec)

        async def handler(job):
            await asyncio.sleep(0)
            if job.index == 2:
                raise ValueError("row 2 is invalid")
            job.offset = job.index * 10
            return job

        dispatcher.register("op", handler)
        runner = JobRunner(dispatcher.invoke, codec, max_concurrency=2)

        results = await runner.run("op", [Job(index=i) for i in range(4)])

        assert [job.offset for job in results if job.is_complete()] == [0, 10, 30]
        assert results[2].is_error()
        assert results[2].error == "row 2 is invalid"
        assert runner.running_count == 0

    @pytest.mark.asyncio
    async def test_running_status_never_exceeds_cap(self):
        """Test the number of RUNNING jobs observed by the invoker stays capped."""
        observed = []
        codec = JobCodec()
        runner = None

        async def invoker(operation, payload):
            observed.append(runner.running_count)
            job = codec.loads(payload)
            await asyncio.sleep(0.01 * (5 - job.index))
            observed.append(runner.running_count)
            return payload

        runner = JobRunner(invoker, codec, max_concurrency=2)
        results = await runner.run("op", [Job(index=i) for i in range(5)])

        assert max(observed) == 2
        assert len(results) == 5

    @pytest.mark.asyncio
    async def test_terminal_jobs_are_not_dispatched(self):
        """Test already finished jobs are returned without an invocation."""
        invoker = RecordingInvoker()
        done = Job(index=0)
        done.complete()
        failed = Job(index=1)
        failed.fail("earlier")

        results = await JobRunner(invoker).run("op", [done, failed, Job(index=2)])

        assert invoker.calls == [("op", 2)]
        assert [job.status for job in results] == [
            JobStatus.COMPLETE,
            JobStatus.ERROR,
            JobStatus.COMPLETE,
        ]
