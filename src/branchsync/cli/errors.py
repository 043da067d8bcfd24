"""
Standardized error handling and exit codes for the branchsync CLI.

Failures are printed with a reason and a suggested fix. Each exception
type maps to one exit code.
"""

from enum import IntEnum

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from branchsync.core.errors import (
    AmbiguousRevision,
    BranchSyncError,
    GitError,
    NoCandidateFound,
    NotAGitRepositoryError,
    PublishRejected,
    UnsafeCleanupPath,
)

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for branchsync."""

    SUCCESS = 0
    """Sync completed, or there was nothing to do."""

    GENERAL_ERROR = 1
    """Sync aborted (no candidates, ambiguous revision, rejected push, git failure)."""

    USER_ERROR = 2
    """Configuration or environment error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print an error with optional reason and next step.

    Args:
        problem: One-line statement of the failure
        reason: Background shown dimmed under the problem
        solution: Command or action that resolves it

    Example:
        >>> print_error(
        ...     "Push rejected",
        ...     reason="origin/main moved while syncing",
        ...     solution="branchsync  # re-run to sync on top of the new tip",
        ... )
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def print_not_git_repo_error(problem: str) -> None:
    """Print error when the project directory is not a git repository."""
    print_error(
        problem,
        reason="branchsync commits into the target repository and needs a git work tree",
        solution="cd to the repository root, or pass --project-dir",
    )


def print_config_error(error: ValidationError) -> None:
    """Print error when the merged configuration is invalid."""
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
    )
    print_error(
        "Invalid configuration",
        reason=details,
        solution="check .github/branchsync.json, ~/.config/branchsync/config.json "
        "and the UPSTREAM_URL / BRANCH_PREFIX / BRANCHSYNC_* variables",
    )


def report_sync_error(error: BranchSyncError) -> ExitCode:
    """
    Print a sync failure and return the exit code it maps to.

    Args:
        error: The exception raised by the sync controller or git backend

    Returns:
        ExitCode to terminate with
    """
    if isinstance(error, NotAGitRepositoryError):
        print_not_git_repo_error(str(error))
        return ExitCode.USER_ERROR

    if isinstance(error, NoCandidateFound):
        print_error(
            str(error),
            reason="The upstream repository has no branches matching the configured prefix",
            solution="check UPSTREAM_URL and BRANCH_PREFIX",
        )
    elif isinstance(error, AmbiguousRevision):
        print_error(
            str(error),
            reason="The newest revision number must map to exactly one branch",
            solution="remove or rename the duplicate upstream branch",
        )
    elif isinstance(error, PublishRejected):
        print_error(
            str(error),
            reason=error.stderr or None,
            solution="re-run branchsync to sync on top of the new remote tip",
        )
    elif isinstance(error, UnsafeCleanupPath):
        print_error(
            str(error),
            reason="The snapshot directory was left in place to avoid deleting the repository",
            solution="set TMPDIR to a directory outside the work tree",
        )
    elif isinstance(error, GitError):
        print_error(str(error), reason=error.stderr or None)
    else:
        print_error(str(error))

    return ExitCode.GENERAL_ERROR
