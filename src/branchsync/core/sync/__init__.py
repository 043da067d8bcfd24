"""
Upstream revision mirroring.

Resolves the newest ``<prefix><number>`` branch of the source remote,
compares it with the revision recorded on the target branch and, when they
differ, mirrors the source tree into the work tree as a single commit.

Example:
    >>> from branchsync.core.sync import SyncController
    >>> controller = SyncController(SyncConfig(), GitBackend(Path(".")))
    >>> result = controller.sync()
    >>> print(result.summary())
"""

from branchsync.core.sync.controller import SyncController
from branchsync.core.sync.models import ReconcileSummary, SyncOutcome, SyncResult
from branchsync.core.sync.reconcile import reconcile_tree
from branchsync.core.sync.revision import RevisionId, select_latest
from branchsync.core.sync.snapshot import snapshot_directory

__all__ = [
    "SyncController",
    "SyncResult",
    "SyncOutcome",
    "ReconcileSummary",
    "RevisionId",
    "reconcile_tree",
    "select_latest",
    "snapshot_directory",
]
