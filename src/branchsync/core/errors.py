"""
Exception hierarchy for branchsync.

Every failure that should abort a sync derives from BranchSyncError so the
CLI can map it to an exit code in one place.
"""

from __future__ import annotations

from pathlib import Path


class BranchSyncError(Exception):
    """Base exception for sync failures."""

    pass


class NoCandidateFound(BranchSyncError):
    """Raised when no source branch matches the revision prefix."""

    def __init__(self, prefix: str, remote: str | None = None):
        location = f" on remote '{remote}'" if remote else ""
        super().__init__(f"No '{prefix}<number>' branches found{location}")
        self.prefix = prefix
        self.remote = remote


class AmbiguousRevision(BranchSyncError):
    """Raised when several branch names share the highest revision number."""

    def __init__(self, number: int, labels: list[str]):
        joined = ", ".join(sorted(labels))
        super().__init__(f"Multiple branches resolve to revision {number}: {joined}")
        self.number = number
        self.labels = labels


class PublishRejected(BranchSyncError):
    """Raised when the remote refuses the push because its tip has moved."""

    def __init__(self, remote: str, branch: str, stderr: str = ""):
        super().__init__(f"Push to {remote}/{branch} was rejected (remote tip moved)")
        self.remote = remote
        self.branch = branch
        self.stderr = stderr


class UnsafeCleanupPath(BranchSyncError):
    """Raised when a snapshot directory cannot be proven safe to delete."""

    def __init__(self, path: Path | str, reason: str):
        super().__init__(f"Refusing to delete snapshot directory {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class GitError(BranchSyncError):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class NotAGitRepositoryError(BranchSyncError):
    """Raised when the project directory is not inside a git repository."""

    pass
