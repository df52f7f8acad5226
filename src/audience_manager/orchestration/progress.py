"""Progress tracking with Rich console output."""

import logging
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from audience_manager.jobs.models import Job

logger = logging.getLogger("audience_manager.orchestration.progress")


def _job_label(job: Job) -> str:
    audience = getattr(job, "audience", None)
    if audience is not None:
        return audience.name
    return f"job {job.index}"


class ProgressTracker:
    """Tracks and displays batch progress using Rich.

    :meth:`on_job_complete` matches the runner's per-completion callback.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        show_progress: bool = True,
    ):
        """Initialize the progress tracker.

        Args:
            console: Rich console for output (created if not provided).
            show_progress: Whether to show progress bar.
        """
        self._console = console or Console()
        self._show_progress = show_progress
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None
        self._description = ""
        self._total = 0
        self._completed = 0
        self._errors = 0

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def errors(self) -> int:
        return self._errors

    def start(self, description: str, total: int) -> None:
        """Start tracking a batch.

        Args:
            description: Label shown next to the bar.
            total: Number of jobs in the batch.
        """
        self._description = description
        self._total = total
        self._completed = 0
        self._errors = 0

        if self._show_progress and total > 0:
            self._create_progress_bar()

    def _create_progress_bar(self) -> None:
        """Create and start the progress bar."""
        if self._progress is not None:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("•"),
            TimeElapsedColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(self._description, total=self._total)

    def on_job_complete(self, job: Job) -> None:
        """Record one finished job.

        Args:
            job: Job reported by the runner.
        """
        self._completed += 1
        if job.is_error():
            self._errors += 1

        if self._progress and self._task_id is not None:
            label = _job_label(job)
            # Truncate long names
            if len(label) > 40:
                label = label[:37] + "..."
            self._progress.update(
                self._task_id,
                completed=self._completed,
                description=f"{self._description}: {label}",
            )

    def finish(self) -> None:
        """Stop the bar and print totals."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task_id = None

        if self._total == 0:
            return

        self._console.print(
            f"[bold green]✓ Completed:[/] {self._completed - self._errors} job(s)"
        )
        if self._errors > 0:
            self._console.print(f"[bold red]✗ Errors:[/] {self._errors} job(s)")

    def display_failures(self, jobs: list[Job]) -> None:
        """Display a table of failed jobs.

        Args:
            jobs: Jobs that ended in ERROR.
        """
        if not jobs:
            return

        table = Table(title="Failed Jobs")
        table.add_column("Row", justify="right", style="cyan")
        table.add_column("Audience", max_width=40)
        table.add_column("Error", style="red")

        for job in jobs:
            table.add_row(str(job.index), _job_label(job), job.error)

        self._console.print(table)

    def print_error(self, message: str) -> None:
        """Print an error message.

        Args:
            message: Error message.
        """
        self._console.print(f"[bold red]Error:[/] {message}")

    def print_success(self, message: str) -> None:
        """Print a success message.

        Args:
            message: Success message.
        """
        self._console.print(f"[bold green]✓[/] {message}")
