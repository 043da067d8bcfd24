"""
Sync controller.

Mirrors the highest-numbered upstream revision branch onto the target
branch as a single commit. The only persistent state is the revision label
embedded in the target branch's tip commit message, so every run derives
"what is synced" and "what is newest" from scratch.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from branchsync.core.config.models import SyncConfig
from branchsync.core.sync.models import SyncOutcome, SyncResult
from branchsync.core.sync.reconcile import reconcile_tree
from branchsync.core.sync.revision import RevisionId, select_latest, sorted_revisions
from branchsync.core.sync.snapshot import snapshot_directory
from branchsync.core.vcs.base import VersionControl

logger = logging.getLogger(__name__)


class SyncController:
    """
    Keeps the target branch aligned with the newest upstream revision.

    Example:
        >>> controller = SyncController(SyncConfig(), GitBackend(Path(".")))
        >>> result = controller.sync()
        >>> print(result.summary())
        Synced w1-24 -> w1-26, commit 1a2b3c4d, 3 added, 1 updated, 0 deleted, pushed
    """

    def __init__(
        self,
        config: SyncConfig,
        vcs: VersionControl,
        work_tree: Path | None = None,
        snapshot_base: Path | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            config: Sync settings (source URL, prefix, branches, preserved paths)
            vcs: Version control backend operating on the target repository
            work_tree: Root of the target work tree (defaults to vcs.work_tree)
            snapshot_base: Parent directory for snapshot dirs (defaults to system temp)
        """
        self.config = config
        self.vcs = vcs
        self.work_tree = (work_tree or vcs.work_tree).resolve()
        self.snapshot_base = snapshot_base

    def prepare_remotes(self) -> None:
        """Point the source remote at the configured URL and fetch both remotes."""
        cfg = self.config
        self.vcs.ensure_remote(cfg.source_remote, cfg.source_url)
        self.vcs.fetch(cfg.target_remote)
        self.vcs.fetch_branches(cfg.source_remote, [cfg.branch_pattern])

    def available_revisions(self) -> list[RevisionId]:
        """Source revisions in ascending order."""
        branches = self.vcs.list_branches(self.config.source_remote)
        return sorted_revisions(branches, self.config.branch_prefix)

    def resolve_latest_source_revision(self) -> RevisionId:
        """
        Find the highest-numbered revision branch on the source remote.

        Raises:
            NoCandidateFound: If no branch matches the prefix
            AmbiguousRevision: If two branches share the highest number
        """
        branches = self.vcs.list_branches(self.config.source_remote)
        latest = select_latest(
            branches,
            self.config.branch_prefix,
            remote=self.config.source_remote,
        )
        logger.info("Newest upstream branch is %s", latest)
        return latest

    def resolve_current_target_revision(self) -> RevisionId | None:
        """
        Read the revision recorded in the target branch's tip commit message.

        The freshly fetched remote tracking branch is authoritative; the
        local branch is only consulted when the remote has no such branch
        yet. Unpublished local commits therefore never count as synced.

        Returns:
            The recorded revision, or None if the branch is missing or the
            message carries no revision.
        """
        cfg = self.config
        message = self.vcs.get_tip_commit_message(cfg.target_branch, cfg.target_remote)
        if message is None:
            message = self.vcs.get_tip_commit_message(cfg.target_branch)

        if message is None:
            logger.info("Target branch %s does not exist yet", cfg.target_branch)
            return None

        current = RevisionId.search(message, cfg.branch_prefix)
        if current is None:
            logger.warning(
                "No %s<number> found in tip commit of %s", cfg.branch_prefix, cfg.target_branch
            )
        else:
            logger.info("Current version on %s: %s", cfg.target_branch, current)
        return current

    def sync(self, *, dry_run: bool = False, publish: bool = True) -> SyncResult:
        """
        Run the full sync procedure.

        Args:
            dry_run: Stop after comparing revisions, without touching the work tree
            publish: Push the sync commit to the target remote

        Returns:
            SyncResult describing what happened

        Raises:
            NoCandidateFound: If the source has no revision branches
            AmbiguousRevision: If the newest revision number is not unique
            UnsafeCleanupPath: If the snapshot directory fails its safety check
            PublishRejected: If the remote target branch moved concurrently
            GitError: If any other git operation fails
        """
        started_at = datetime.now()
        cfg = self.config

        self.prepare_remotes()
        latest = self.resolve_latest_source_revision()
        current = self.resolve_current_target_revision()

        result = SyncResult(
            outcome=SyncOutcome.UP_TO_DATE,
            latest_revision=latest.label,
            current_revision=current.label if current else None,
            started_at=started_at,
        )

        if current is not None and current.label == latest.label:
            logger.info("Repository already on newest version %s", latest)
            result.completed_at = datetime.now()
            return result

        logger.info("Update needed: %s -> %s", current or "none", latest)

        if dry_run:
            result.outcome = SyncOutcome.UPDATE_AVAILABLE
            result.completed_at = datetime.now()
            return result

        self.vcs.checkout(cfg.target_branch, cfg.target_remote)

        # Pin the revision to one commit so the snapshot is consistent
        source_sha = self.vcs.resolve_revision(cfg.source_remote, latest.label)
        result.source_commit_sha = source_sha

        with snapshot_directory(self.work_tree, base_dir=self.snapshot_base) as snapshot:
            self.vcs.get_tree_snapshot(source_sha, snapshot)
            result.reconcile = reconcile_tree(snapshot, self.work_tree, cfg.preserved_paths)

        self.vcs.stage_all()
        if self.vcs.diff_cached_is_empty():
            logger.info("No visible changes after reconciling %s", latest)
            result.outcome = SyncOutcome.NO_CHANGES
            result.completed_at = datetime.now()
            return result

        result.staged_changes = self.vcs.diff_cached_name_status()
        logger.debug("Staged %d changed paths", len(result.staged_changes))

        result.commit_sha = self.vcs.commit(cfg.commit_message(latest.label))
        result.outcome = SyncOutcome.SYNCED

        if publish:
            self.vcs.push(cfg.target_remote, cfg.target_branch)
            result.published = True
        else:
            logger.info("Skipping push of %s", cfg.target_branch)

        result.completed_at = datetime.now()
        return result
