"""
Data models for the sync controller.

Defines Pydantic models for reconciliation summaries and sync results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SyncOutcome(str, Enum):
    """How a sync run ended."""

    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    NO_CHANGES = "no_changes"
    SYNCED = "synced"


class ReconcileSummary(BaseModel):
    """
    Paths touched while reconciling the work tree against a snapshot.

    All paths are relative POSIX paths from the work tree root.
    """

    added: list[str] = Field(default_factory=list, description="Paths only in the snapshot")
    updated: list[str] = Field(
        default_factory=list,
        description="Paths present in both but with different content or type",
    )
    deleted: list[str] = Field(
        default_factory=list,
        description="Paths removed because the snapshot no longer has them",
    )

    @property
    def total(self) -> int:
        return len(self.added) + len(self.updated) + len(self.deleted)

    def is_empty(self) -> bool:
        return self.total == 0


class SyncResult(BaseModel):
    """
    Result of a sync run.

    Provides detailed feedback about what happened during the sync.
    """

    outcome: SyncOutcome = Field(description="How the run ended")

    latest_revision: str = Field(description="Highest-numbered source revision")

    current_revision: str | None = Field(
        default=None,
        description="Revision recorded on the target branch before the run (None if never synced)",
    )

    source_commit_sha: str | None = Field(
        default=None,
        description="Commit SHA the snapshot was taken from",
    )

    commit_sha: str | None = Field(
        default=None,
        description="SHA of the sync commit (if one was created)",
    )

    published: bool = Field(
        default=False,
        description="Whether the sync commit was pushed to the target remote",
    )

    reconcile: ReconcileSummary | None = Field(
        default=None,
        description="Work tree changes applied from the snapshot",
    )

    staged_changes: list[str] = Field(
        default_factory=list,
        description="Name-status lines of the staged diff",
    )

    # Timing
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate run duration in seconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds()
        return None

    @property
    def changed(self) -> bool:
        return self.outcome == SyncOutcome.SYNCED

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        current = self.current_revision or "none"

        if self.outcome == SyncOutcome.UP_TO_DATE:
            return f"Already on newest version {self.latest_revision}, nothing to do"

        if self.outcome == SyncOutcome.UPDATE_AVAILABLE:
            return f"Update available: {current} -> {self.latest_revision}"

        if self.outcome == SyncOutcome.NO_CHANGES:
            return f"No visible changes after syncing {self.latest_revision}, nothing committed"

        parts = [f"Synced {current} -> {self.latest_revision}"]
        if self.commit_sha:
            parts.append(f"commit {self.commit_sha[:8]}")
        if self.reconcile is not None:
            parts.append(
                f"{len(self.reconcile.added)} added, "
                f"{len(self.reconcile.updated)} updated, "
                f"{len(self.reconcile.deleted)} deleted"
            )
        parts.append("pushed" if self.published else "not pushed")
        return ", ".join(parts)
