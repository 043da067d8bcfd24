"""
branchsync CLI - sync, status and branches commands.

Provides the CLI interface to the SyncController for mirroring the newest
upstream revision branch onto the target branch.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from branchsync.cli.errors import ExitCode, report_sync_error
from branchsync.core.config import SyncConfig
from branchsync.core.errors import BranchSyncError
from branchsync.core.sync import SyncController, SyncOutcome, SyncResult
from branchsync.core.sync.revision import select_latest
from branchsync.core.vcs import GitBackend

console = Console()


def build_controller(config: SyncConfig, project_dir: Path) -> SyncController:
    """Create a controller bound to the git repository containing project_dir."""
    backend = GitBackend(project_dir, timeout=config.git_timeout)
    return SyncController(config, backend)


def _context(ctx: typer.Context) -> tuple[SyncConfig, Path]:
    obj = ctx.obj or {}
    return obj["config"], obj["project_dir"]


def print_result(result: SyncResult) -> None:
    """Print a sync result with the same wording for every outcome."""
    current = result.current_revision or "none"
    console.print(f"Current version: [bold]{current}[/bold]")
    console.print(f"Latest upstream: [bold]{result.latest_revision}[/bold]")

    if result.outcome == SyncOutcome.UP_TO_DATE:
        console.print("[green]✓[/green] Repository already on newest version, nothing to do")
    elif result.outcome == SyncOutcome.UPDATE_AVAILABLE:
        console.print(
            f"[yellow]↑[/yellow] Update available: {current} → {result.latest_revision}"
        )
    elif result.outcome == SyncOutcome.NO_CHANGES:
        console.print("[blue]ℹ[/blue] No visible changes after sync, nothing committed")
    else:
        if result.reconcile is not None:
            console.print(
                f"[dim]{len(result.reconcile.added)} added, "
                f"{len(result.reconcile.updated)} updated, "
                f"{len(result.reconcile.deleted)} deleted[/dim]"
            )
        sha = (result.commit_sha or "")[:8]
        console.print(f"[green]✓[/green] Committed {sha}: sync to {result.latest_revision}")
        if result.published:
            console.print("[green]✓[/green] Pushed to remote")
        else:
            console.print("[dim]Push skipped (--no-push)[/dim]")


def run_sync(ctx: typer.Context, *, dry_run: bool, publish: bool) -> None:
    """Run the full sync and exit with the mapped exit code on failure."""
    config, project_dir = _context(ctx)

    console.print(f"[blue]Syncing {config.target_branch} from {config.source_url}[/blue]")
    console.print(f"[dim]Branch prefix: {config.branch_prefix}[/dim]")

    try:
        controller = build_controller(config, project_dir)
        result = controller.sync(dry_run=dry_run, publish=publish)
    except BranchSyncError as e:
        raise typer.Exit(report_sync_error(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    print_result(result)


def status(ctx: typer.Context) -> None:
    """
    Show the synced revision and the newest upstream revision.

    Fetches both remotes but never modifies the work tree.

    Examples:
        branchsync status
    """
    config, project_dir = _context(ctx)

    try:
        controller = build_controller(config, project_dir)
        controller.prepare_remotes()
        latest = controller.resolve_latest_source_revision()
        current = controller.resolve_current_target_revision()
    except BranchSyncError as e:
        raise typer.Exit(report_sync_error(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    table = Table(title="Sync Status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Upstream", config.source_url)
    table.add_row("Target branch", f"{config.target_remote}/{config.target_branch}")
    table.add_row("Current version", current.label if current else "none")
    table.add_row("Latest upstream", latest.label)
    console.print(table)

    if current is not None and current.label == latest.label:
        console.print("[green]✓[/green] Up to date")
    else:
        console.print("[yellow]↑[/yellow] Update needed")
        console.print("\n[dim]→ Run [bold]branchsync[/bold] to sync[/dim]")


def branches(ctx: typer.Context) -> None:
    """
    List upstream revision branches in ascending order.

    The branch that would be synced is marked.

    Examples:
        branchsync branches
        branchsync --branch-prefix de- branches
    """
    config, project_dir = _context(ctx)

    try:
        controller = build_controller(config, project_dir)
        controller.prepare_remotes()
        revisions = controller.available_revisions()
    except BranchSyncError as e:
        raise typer.Exit(report_sync_error(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    if not revisions:
        console.print(f"[yellow]No {config.branch_prefix}<number> branches found upstream[/yellow]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        latest = select_latest((rev.label for rev in revisions), config.branch_prefix)
    except BranchSyncError as e:
        latest = None
        report_sync_error(e)

    table = Table(title=f"Upstream {config.branch_pattern} branches")
    table.add_column("Branch", style="cyan")
    table.add_column("Revision", justify="right")
    table.add_column("")
    for rev in revisions:
        marker = "[green]latest[/green]" if latest is not None and rev == latest else ""
        table.add_row(rev.label, str(rev.number), marker)
    console.print(table)

    if latest is None:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
