"""
Version control protocol.

This module defines the VersionControl protocol that the sync controller
talks to, so the controller never shells out to a specific tool directly.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class VersionControl(Protocol):
    """
    Protocol for version control backends.

    Backends are responsible for:
    - Managing the source remote and fetching refs from both remotes
    - Listing source branches and resolving them to commits
    - Materializing a commit's tree into a directory
    - Reading the target branch tip and checking it out
    - Staging, committing and publishing the result
    """

    @property
    def work_tree(self) -> Path:
        """Root of the repository work tree."""
        ...

    def ensure_remote(self, name: str, url: str) -> None:
        """Add the remote, or update its URL if it already exists with another one."""
        ...

    def fetch(self, remote: str) -> None:
        """Fetch all branches from a remote."""
        ...

    def fetch_branches(self, remote: str, patterns: Iterable[str]) -> None:
        """
        Fetch branches matching glob patterns into remote-tracking refs.

        Args:
            remote: Remote name
            patterns: Branch name globs such as ``w1-*``
        """
        ...

    def list_branches(self, remote: str) -> set[str]:
        """
        List the branch names fetched from a remote.

        Returns:
            Short branch names without the remote prefix
        """
        ...

    def resolve_revision(self, remote: str, branch: str) -> str:
        """Resolve a remote-tracking branch to its commit SHA."""
        ...

    def get_tree_snapshot(self, revision: str, dest: Path) -> None:
        """Extract the full file tree of ``revision`` into ``dest``."""
        ...

    def branch_exists(self, branch: str, remote: str | None = None) -> bool:
        """Check for a local branch, or a remote-tracking branch when ``remote`` is given."""
        ...

    def get_tip_commit_message(self, branch: str, remote: str | None = None) -> str | None:
        """
        Get the full message of a branch's tip commit.

        Returns:
            The message, or None if the branch does not exist
        """
        ...

    def checkout(self, branch: str, remote: str | None = None) -> None:
        """
        Check out a branch, based on the remote tip when the remote has it.

        An existing local branch is reset to the remote tip, dropping any
        unpublished commits. Without a remote branch the local branch is used,
        or created as an orphan.
        """
        ...

    def stage_all(self) -> None:
        """Stage every change in the work tree, including deletions."""
        ...

    def diff_cached_is_empty(self) -> bool:
        """True if the index matches the current HEAD tree."""
        ...

    def diff_cached_name_status(self) -> list[str]:
        """Name-status lines for staged changes."""
        ...

    def commit(self, message: str) -> str:
        """
        Commit the index.

        Returns:
            SHA of the new commit
        """
        ...

    def push(self, remote: str, branch: str) -> None:
        """
        Publish a branch without forcing.

        Raises:
            PublishRejected: If the remote tip moved (non-fast-forward)
        """
        ...
