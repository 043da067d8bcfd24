"""
Scoped snapshot directories.

The upstream tree is materialized into a fresh temporary directory before it
is reconciled into the work tree. The directory is always released when the
scope ends, but only after it has been proven not to be the work tree, the
current directory, the filesystem root, or an ancestor of any of them.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from branchsync.core.errors import UnsafeCleanupPath

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "branchsync-snapshot-"


def ensure_safe_to_remove(
    path: Path | str,
    *,
    created: Path,
    work_tree: Path,
    cwd: Path | None = None,
) -> Path:
    """
    Verify that a snapshot directory can be deleted without collateral damage.

    Args:
        path: Directory about to be removed.
        created: The directory originally returned by mkdtemp.
        work_tree: Root of the repository work tree.
        cwd: Current working directory (defaults to Path.cwd()).

    Returns:
        The resolved path.

    Raises:
        UnsafeCleanupPath: If any check fails.
    """
    raw = str(path).strip()
    if raw in ("", ".", "/"):
        raise UnsafeCleanupPath(raw or "<empty>", "path is empty, '.' or '/'")

    resolved = Path(raw).resolve()
    work_tree = work_tree.resolve()
    cwd = (cwd or Path.cwd()).resolve()

    if resolved != created.resolve():
        raise UnsafeCleanupPath(resolved, "path is not the directory created for this snapshot")

    if resolved == resolved.parent:
        raise UnsafeCleanupPath(resolved, "path is a filesystem root")

    for protected, label in ((cwd, "current directory"), (work_tree, "work tree")):
        if protected == resolved or protected.is_relative_to(resolved):
            raise UnsafeCleanupPath(resolved, f"path is the {label} or one of its ancestors")

    if resolved.is_relative_to(work_tree):
        raise UnsafeCleanupPath(resolved, "path lies inside the work tree")

    return resolved


@contextmanager
def snapshot_directory(work_tree: Path, *, base_dir: Path | None = None) -> Iterator[Path]:
    """
    Acquire a uniquely named snapshot directory for the duration of a block.

    The directory is removed on every exit path, including errors. Removal
    is refused with UnsafeCleanupPath when the safety checks fail; if the
    block itself raised, that error propagates and the refusal is only logged.

    Example:
        >>> with snapshot_directory(Path(".")) as snap:
        ...     backend.get_tree_snapshot("abc123", snap)
    """
    created = Path(tempfile.mkdtemp(prefix=SNAPSHOT_PREFIX, dir=base_dir))
    logger.debug("Created snapshot directory: %s", created)

    try:
        # Refuse to hand out a location that reconciliation or cleanup could clobber
        ensure_safe_to_remove(created, created=created, work_tree=work_tree)
    except UnsafeCleanupPath:
        logger.error("Snapshot directory %s overlaps the work tree, leaving it in place", created)
        raise

    try:
        yield created
    except BaseException:
        # The block's own error takes precedence over a refused cleanup
        try:
            _release(created, work_tree)
        except UnsafeCleanupPath as cleanup_error:
            logger.error("%s", cleanup_error)
        raise

    _release(created, work_tree)


def _release(created: Path, work_tree: Path) -> None:
    safe = ensure_safe_to_remove(created, created=created, work_tree=work_tree)
    if safe.exists():
        shutil.rmtree(safe)
        logger.debug("Removed snapshot directory: %s", safe)
