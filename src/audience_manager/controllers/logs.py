"""Sink writing job logs to the log sheet."""

import logging

from audience_manager.config.models import LogSheetConfig
from audience_manager.jobs.models import Job
from audience_manager.sheets.protocol import Rows, TableStore
from audience_manager.utils.timestamps import current_date_string

logger = logging.getLogger("audience_manager.controllers.logs")


class JobLogWriter:
    """Drains job logs into the log sheet.

    ``job.offset`` counts the rows already written, so a container job can be
    sent through :meth:`write_logs` repeatedly and each call appends below
    the previous one.
    """

    def __init__(self, store: TableStore, config: LogSheetConfig):
        self._store = store
        self._config = config

    def clear_logs(self, job: Job) -> Job:
        """Blank the log sheet."""
        self._store.clear_defined_range(
            self._config.sheet_name, self._config.row, self._config.col
        )
        return job

    def write_logs(self, job: Job) -> Job:
        """Write and clear the logs of a job and its children."""
        output: Rows = self._drain(job)
        for child in job.jobs:
            output.extend(self._drain(child))

        if output:
            self._store.set_values_in_defined_range(
                self._config.sheet_name,
                self._config.row + job.offset,
                self._config.col,
                output,
            )
            job.offset += len(output)
            logger.debug(f"Wrote {len(output)} log row(s), offset now {job.offset}")

        return job

    @staticmethod
    def _drain(job: Job) -> Rows:
        rows = [[current_date_string(log.date), log.message] for log in job.logs]
        job.clear_logs()
        return rows
