"""Client-side sequencing of job batches.

Every user-facing operation is a short chain of runner batches: a container
job is sent to a fan-out operation, its children are run through the per-item
operation, and the collected logs are written through ``write_logs``. Failed
jobs are gathered and surfaced as one :class:`BatchError` once the logs are
written. Nothing is retried.
"""

import logging
from typing import Optional

from audience_manager.api.protocol import CampaignManager
from audience_manager.config.models import AudienceManagerConfig
from audience_manager.controllers.audiences import AudiencesController
from audience_manager.controllers.logs import JobLogWriter
from audience_manager.controllers.process import AudienceProcessController
from audience_manager.exceptions import BatchError, ConfigError
from audience_manager.jobs.codec import JobCodec
from audience_manager.jobs.dispatcher import JobDispatcher
from audience_manager.jobs.models import Job
from audience_manager.models.enums import JobName
from audience_manager.orchestration.progress import ProgressTracker
from audience_manager.orchestration.runner import JobRunner
from audience_manager.planning.checksum import ChecksumEngine
from audience_manager.planning.planner import ActionPlanner
from audience_manager.rules.codec import RuleCodec
from audience_manager.sheets.protocol import TableStore

logger = logging.getLogger("audience_manager.orchestration.workflows")


class AudienceWorkflow:
    """Runs the load, process, rule extraction and refresh operations."""

    def __init__(self, runner: JobRunner, progress: Optional[ProgressTracker] = None):
        """Initialize the workflow.

        Args:
            runner: Job runner bound to an invoker.
            progress: Optional progress display fed by fan-out batches.
        """
        self._runner = runner
        self._progress = progress

    async def load_audiences(self) -> Job:
        """Replace the Audiences sheet with the lists defined in CM360."""
        return await self._fan_out(
            JobName.LOAD_AUDIENCES, JobName.LOAD_AUDIENCE, "Loading audiences"
        )

    async def process_audiences(self) -> Job:
        """Push every changed audience row to CM360."""
        return await self._fan_out(
            JobName.PROCESS_AUDIENCES, JobName.PROCESS_AUDIENCE, "Processing audiences"
        )

    async def extract_rules(self) -> Job:
        """Rewrite the Rules sheet from the audience snapshots."""
        return await self._single(JobName.EXTRACT_RULES)

    async def refresh_reference_data(self) -> Job:
        """Refresh custom variables, floodlights and advertisers."""
        return await self._single(JobName.REFRESH_REFERENCE_DATA)

    async def _single(self, operation: JobName) -> Job:
        await self._run_one(JobName.CLEAR_LOGS, Job())

        job = await self._run_one(operation, Job())
        failed = [job] if job.is_error() else []

        await self._write_logs(job)
        self._raise_for_failures(operation, failed)
        return job

    async def _fan_out(
        self, operation: JobName, item_operation: JobName, description: str
    ) -> Job:
        await self._run_one(JobName.CLEAR_LOGS, Job())

        container = await self._run_one(operation, Job())
        if container.is_error():
            await self._write_logs(container)
            self._raise_for_failures(operation, [container])

        children = container.jobs
        logger.info(f"{description}: {len(children)} job(s)")

        if children:
            if self._progress is not None:
                self._progress.start(description, len(children))
                # Rows rejected while planning are never dispatched
                for child in children:
                    if child.is_terminal:
                        self._progress.on_job_complete(child)
            try:
                container.jobs = await self._runner.run(
                    item_operation,
                    children,
                    on_complete=self._progress.on_job_complete if self._progress else None,
                )
            finally:
                if self._progress is not None:
                    self._progress.finish()

        failed = [job for job in container.jobs if job.is_error()]
        container = await self._write_logs(container)
        self._raise_for_failures(item_operation, failed)
        return container

    async def _run_one(self, operation: JobName, job: Job) -> Job:
        results = await self._runner.run(operation, [job])
        return results[0]

    async def _write_logs(self, job: Job) -> Job:
        """Write the logs of a job tree and advance its log offset.

        Finished jobs are never dispatched again, so the tree travels in a
        fresh pending carrier.
        """
        carrier = Job(index=job.index, offset=job.offset, logs=job.logs, jobs=job.jobs)
        written = await self._run_one(JobName.WRITE_LOGS, carrier)
        if written.is_error():
            logger.error(f"Could not write job logs: {written.error}")
            return job

        job.offset = written.offset
        job.clear_logs()
        for child in job.jobs:
            child.clear_logs()
        return job

    @staticmethod
    def _raise_for_failures(operation: JobName, failed: list[Job]) -> None:
        if failed:
            raise BatchError(operation.value, failed)


def resolve_account(config: AudienceManagerConfig, store: TableStore) -> tuple[str, str]:
    """Network and advertiser IDs from the config, else from the account sheet.

    Raises:
        ConfigError: If either ID is missing in both places.
    """
    account = config.account
    network_id = account.network_id
    advertiser_id = account.advertiser_id

    if not network_id:
        cell = account.network_id_cell
        network_id = str(store.get_cell_value(account.sheet_name, cell.row, cell.col) or "")
    if not advertiser_id:
        cell = account.advertiser_id_cell
        advertiser_id = str(
            store.get_cell_value(account.sheet_name, cell.row, cell.col) or ""
        )

    if not network_id or not advertiser_id:
        raise ConfigError(
            "CM360 network and advertiser IDs are required. Set them in the config "
            f"file, the environment or the '{account.sheet_name}' sheet."
        )
    return network_id.strip(), advertiser_id.strip()


def build_dispatcher(
    config: AudienceManagerConfig,
    store: TableStore,
    campaign_manager: Optional[CampaignManager] = None,
    codec: Optional[JobCodec] = None,
) -> JobDispatcher:
    """Wire the controllers behind an in-process dispatcher.

    Without a campaign manager only the workbook-only operations (logs and
    rule extraction) are registered.
    """
    rule_codec = RuleCodec(separator=config.rules.separator, term_type=config.rules.term_type)
    checksums = ChecksumEngine()

    audiences = AudiencesController(
        store, campaign_manager, config, rule_codec=rule_codec, checksums=checksums
    )
    log_writer = JobLogWriter(store, config.logging)

    dispatcher = JobDispatcher(codec)
    dispatcher.register(JobName.CLEAR_LOGS, log_writer.clear_logs)
    dispatcher.register(JobName.WRITE_LOGS, log_writer.write_logs)
    dispatcher.register(JobName.EXTRACT_RULES, audiences.extract_rules)

    if campaign_manager is None:
        return dispatcher

    process = AudienceProcessController(
        store,
        campaign_manager,
        config,
        planner=ActionPlanner(checksums),
        rule_codec=rule_codec,
    )
    dispatcher.register(JobName.LOAD_AUDIENCES, audiences.load_audiences)
    dispatcher.register(JobName.LOAD_AUDIENCE, audiences.load_audience)
    dispatcher.register(JobName.REFRESH_REFERENCE_DATA, audiences.refresh_reference_data)
    dispatcher.register(JobName.PROCESS_AUDIENCES, process.process_audiences)
    dispatcher.register(JobName.PROCESS_AUDIENCE, process.process_audience)
    return dispatcher


def build_workflow(
    config: AudienceManagerConfig,
    store: TableStore,
    campaign_manager: Optional[CampaignManager] = None,
    progress: Optional[ProgressTracker] = None,
) -> AudienceWorkflow:
    """Build a workflow whose runner invokes the controllers in-process.

    Everything is constructed per call, nothing is shared between workflows.
    """
    codec = JobCodec()
    dispatcher = build_dispatcher(config, store, campaign_manager, codec)
    runner = JobRunner(
        dispatcher.invoke,
        codec=codec,
        max_concurrency=config.runner.max_concurrency,
    )
    return AudienceWorkflow(runner, progress=progress)
