"""
Version control access for branchsync.

Example:
    >>> from branchsync.core.vcs import GitBackend
    >>> backend = GitBackend(Path("."))
    >>> backend.list_branches("upstream")
"""

from .base import VersionControl
from .git import GitBackend, discover_work_tree

__all__ = [
    "GitBackend",
    "VersionControl",
    "discover_work_tree",
]
