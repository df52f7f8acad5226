"""Main CLI entry point for audience-manager."""

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from audience_manager import __version__
from audience_manager.api import (
    CampaignManagerApi,
    CampaignManagerFacade,
    EnvTokenProvider,
    StaticTokenProvider,
)
from audience_manager.config import AudienceManagerConfig, load_config
from audience_manager.exceptions import AudienceManagerError, BatchError
from audience_manager.jobs.models import Job
from audience_manager.orchestration import ProgressTracker, build_workflow, resolve_account
from audience_manager.sheets import CsvWorkbook
from audience_manager.utils.logging import setup_logging

# Create the main Typer app
app = typer.Typer(
    name="audience-manager",
    help="Manage CM360 remarketing lists from a workbook.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Console for rich output
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"audience-manager version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """CM360 Audience Manager.

    Load remarketing lists into a workbook, edit them, and push the changes back.
    """
    pass


# Common options used across commands
WorkbookOption = Annotated[
    Path,
    typer.Option(
        "--workbook",
        "-w",
        help="Directory holding the workbook sheets as CSV files.",
        file_okay=False,
        dir_okay=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        help="Verbosity level (0=quiet, 1=normal, 2=verbose, 3=debug).",
        min=0,
        max=3,
        count=True,
    ),
]

ConcurrencyOption = Annotated[
    Optional[int],
    typer.Option(
        "--concurrency",
        help="Maximum concurrent job invocations.",
        min=1,
        max=30,
    ),
]

TokenOption = Annotated[
    Optional[str],
    typer.Option(
        "--token",
        help="OAuth2 access token (defaults to $CM360_ACCESS_TOKEN).",
    ),
]

NetworkOption = Annotated[
    Optional[str],
    typer.Option("--network-id", help="CM360 network (account) ID."),
]

AdvertiserOption = Annotated[
    Optional[str],
    typer.Option("--advertiser-id", help="CM360 advertiser ID."),
]


async def _execute(
    operation: str,
    cfg: AudienceManagerConfig,
    workbook: CsvWorkbook,
    token: Optional[str],
    progress: ProgressTracker,
    remote: bool = True,
) -> Job:
    """Build the per-invocation object graph and run one workflow operation.

    Workbook-only operations (``remote=False``) need neither the account IDs
    nor a token, so no API client is built for them.
    """
    if not remote:
        workflow = build_workflow(cfg, workbook, progress=progress)
        return await getattr(workflow, operation)()

    network_id, advertiser_id = resolve_account(cfg, workbook)
    token_provider = StaticTokenProvider(token) if token else EnvTokenProvider()

    api = CampaignManagerApi(
        advertiser_id,
        token_provider,
        base_url=cfg.api.base_url,
        api_scope=cfg.api.scope,
        api_version=cfg.api.version,
        max_retries=cfg.api.retry_attempts,
        retry_delay=cfg.api.retry_delay_seconds,
        timeout=cfg.api.timeout_seconds,
    )
    try:
        facade = CampaignManagerFacade(
            api, network_id, advertiser_id, cfg.account.advertisers_filter
        )
        workflow = build_workflow(cfg, workbook, facade, progress=progress)
        return await getattr(workflow, operation)()
    finally:
        await api.aclose()


def _run(
    operation: str,
    title: str,
    workbook_dir: Path,
    config: Optional[Path],
    verbose: int,
    concurrency: Optional[int],
    token: Optional[str],
    network_id: Optional[str],
    advertiser_id: Optional[str],
    remote: bool = True,
) -> None:
    setup_logging(verbosity=verbose)

    try:
        cfg = load_config(
            config_path=config,
            network_id=network_id,
            advertiser_id=advertiser_id,
            concurrency=concurrency,
        )
    except (AudienceManagerError, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {e}")
        sys.exit(1)

    console.print(f"[bold green]{title}[/bold green]")
    console.print(f"  Workbook: {workbook_dir}")
    console.print(f"  Concurrency: {cfg.runner.max_concurrency}")
    console.print()

    workbook = CsvWorkbook(workbook_dir)
    progress = ProgressTracker(console=console)

    try:
        job = asyncio.run(
            _execute(operation, cfg, workbook, token, progress, remote=remote)
        )
        progress.print_success(f"{title} finished ({len(job.jobs)} job(s))")
    except BatchError as e:
        progress.display_failures(e.jobs)
        console.print(f"\n[bold red]Error:[/bold red] {len(e.jobs)} job(s) failed")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except AudienceManagerError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose >= 2:
            console.print_exception()
        sys.exit(1)
    finally:
        workbook.save()


@app.command()
def load(
    workbook: WorkbookOption = Path("./workbook"),
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    concurrency: ConcurrencyOption = None,
    token: TokenOption = None,
    network_id: NetworkOption = None,
    advertiser_id: AdvertiserOption = None,
) -> None:
    """Replace the Audiences sheet with the remarketing lists of the advertiser.

    Example:
        audience-manager load --workbook ./workbook
    """
    _run(
        "load_audiences", "Loading audiences", workbook, config, verbose,
        concurrency, token, network_id, advertiser_id,
    )


@app.command()
def process(
    workbook: WorkbookOption = Path("./workbook"),
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    concurrency: ConcurrencyOption = None,
    token: TokenOption = None,
    network_id: NetworkOption = None,
    advertiser_id: AdvertiserOption = None,
) -> None:
    """Create or update every audience row changed since the last run.

    Example:
        audience-manager process --workbook ./workbook --concurrency 5
    """
    _run(
        "process_audiences", "Processing audiences", workbook, config, verbose,
        concurrency, token, network_id, advertiser_id,
    )


@app.command("extract-rules")
def extract_rules(
    workbook: WorkbookOption = Path("./workbook"),
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
) -> None:
    """Rewrite the Rules sheet from the audience snapshots.

    Works offline: no CM360 account or token is needed.
    """
    _run(
        "extract_rules", "Extracting rules", workbook, config, verbose,
        None, None, None, None, remote=False,
    )


@app.command()
def refresh(
    workbook: WorkbookOption = Path("./workbook"),
    config: ConfigOption = None,
    verbose: VerboseOption = 1,
    token: TokenOption = None,
    network_id: NetworkOption = None,
    advertiser_id: AdvertiserOption = None,
) -> None:
    """Refresh custom variables, floodlight activities and advertisers."""
    _run(
        "refresh_reference_data", "Refreshing reference data", workbook, config,
        verbose, None, token, network_id, advertiser_id,
    )


if __name__ == "__main__":
    app()
