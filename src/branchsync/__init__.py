"""
branchsync - Upstream revision branch mirroring

Keeps a target branch aligned with the highest-numbered <prefix><number>
branch of an upstream repository, one commit per sync.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from branchsync.core.config.models import SyncConfig
from branchsync.core.sync.models import SyncOutcome, SyncResult

__all__ = ["SyncConfig", "SyncOutcome", "SyncResult", "__version__"]
