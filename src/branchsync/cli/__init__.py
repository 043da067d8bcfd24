"""
branchsync CLI - Main application entry point.

This module sets up the Typer CLI application. Running ``branchsync`` with
no subcommand performs a full sync.
"""

import logging
import sys
from pathlib import Path

import typer
from pydantic import ValidationError

from branchsync import __version__
from branchsync.cli import sync
from branchsync.cli.errors import ExitCode, print_config_error
from branchsync.core.config import SyncConfig, load_config, load_layered_env
from branchsync.core.vcs import discover_work_tree

app = typer.Typer(
    name="branchsync",
    help="Mirror the newest upstream revision branch onto the target branch",
    no_args_is_help=False,
    invoke_without_command=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"branchsync {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        help="Directory inside the target repository",
        file_okay=False,
        resolve_path=True,
    ),
    upstream_url: str | None = typer.Option(
        None,
        "--upstream-url",
        help="Upstream repository URL (overrides UPSTREAM_URL)",
    ),
    branch_prefix: str | None = typer.Option(
        None,
        "--branch-prefix",
        help="Revision branch prefix (overrides BRANCH_PREFIX)",
    ),
    target_branch: str | None = typer.Option(
        None,
        "--target-branch",
        help="Branch that receives the mirrored tree",
    ),
    preserve: list[str] | None = typer.Option(
        None,
        "--preserve",
        "-p",
        help="Path prefix to keep untouched (repeatable, replaces configured list)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Only report whether an update is available",
    ),
    no_push: bool = typer.Option(
        False,
        "--no-push",
        help="Commit locally but do not push",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Mirror the newest upstream revision branch.

    Finds the highest-numbered <prefix><number> branch upstream, compares it
    with the revision recorded in the target branch's last commit message,
    and if they differ replaces the target tree (except preserved paths)
    with the upstream tree in a single commit.

    Examples:
        branchsync                          # Full sync and push
        branchsync --dry-run                # Report whether an update is available
        branchsync --no-push                # Commit locally only
        branchsync --branch-prefix de-      # Track de-<number> branches
        branchsync status                   # Show current vs latest
        branchsync branches                 # List upstream revision branches
    """
    # Project files live at the repository root, even when run from a subdirectory
    project_dir = discover_work_tree(project_dir) or project_dir

    # Precedence: OS env > project .env > user .env
    load_layered_env(project_dir=project_dir)
    setup_logging(debug)

    overrides: dict[str, object] = {}
    if upstream_url:
        overrides["source_url"] = upstream_url
    if branch_prefix:
        overrides["branch_prefix"] = branch_prefix
    if target_branch:
        overrides["target_branch"] = target_branch
    if preserve:
        overrides["preserved_paths"] = list(preserve)

    try:
        config = load_config(project_dir, use_cache=False)
        if overrides:
            config = SyncConfig(**{**config.model_dump(), **overrides})
    except ValidationError as e:
        print_config_error(e)
        raise typer.Exit(ExitCode.USER_ERROR)

    ctx.obj = {"debug": debug, "config": config, "project_dir": project_dir}

    if ctx.invoked_subcommand is not None:
        return

    sync.run_sync(ctx, dry_run=dry_run, publish=not no_push)


app.command(name="status")(sync.status)
app.command(name="branches")(sync.branches)


def cli_main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    cli_main()
