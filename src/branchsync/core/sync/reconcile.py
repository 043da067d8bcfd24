"""
Work tree reconciliation against an upstream snapshot.

Mirrors the snapshot into the work tree with ``rsync --delete`` semantics.
Preserved path prefixes and ``.git`` are skipped on both sides: the work
tree keeps its own copy and the snapshot's copy is ignored.
"""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from branchsync.core.sync.models import ReconcileSummary

logger = logging.getLogger(__name__)

ALWAYS_PRESERVED = (".git",)


def normalize_preserved(paths: Iterable[str]) -> tuple[str, ...]:
    """Normalize preserved prefixes to relative POSIX paths and add ``.git``."""
    normalized: list[str] = []
    for raw in (*ALWAYS_PRESERVED, *paths):
        cleaned = str(PurePosixPath(raw.strip().strip("/")))
        if cleaned and cleaned != "." and cleaned not in normalized:
            normalized.append(cleaned)
    return tuple(normalized)


def is_preserved(rel_path: str, preserved: Iterable[str]) -> bool:
    """
    Check whether a relative path falls under a preserved prefix.

    Example:
        >>> is_preserved(".github/workflows/sync.yml", [".github"])
        True
        >>> is_preserved(".githubx/file", [".github"])
        False
    """
    return any(rel_path == prefix or rel_path.startswith(prefix + "/") for prefix in preserved)


def _holds_preserved(rel_path: str, preserved: Iterable[str]) -> bool:
    """True when a preserved prefix lives below ``rel_path``."""
    return any(prefix.startswith(rel_path + "/") for prefix in preserved)


def _rel(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _same_entry(src: Path, dst: Path) -> bool:
    """Compare two non-directory entries by type, link target, content and mode."""
    if src.is_symlink() or dst.is_symlink():
        return src.is_symlink() and dst.is_symlink() and os.readlink(src) == os.readlink(dst)
    if not dst.is_file():
        return False
    if not filecmp.cmp(src, dst, shallow=False):
        return False
    # Only the executable bit is tracked by git
    return bool(src.stat().st_mode & 0o111) == bool(dst.stat().st_mode & 0o111)


def _copy_entry(src: Path, dst: Path) -> None:
    if dst.exists() or dst.is_symlink():
        _remove(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy2(src, dst)


def reconcile_tree(
    snapshot: Path,
    work_tree: Path,
    preserved: Iterable[str] = (),
) -> ReconcileSummary:
    """
    Make ``work_tree`` match ``snapshot`` outside the preserved paths.

    Args:
        snapshot: Directory holding the extracted upstream tree.
        work_tree: Repository work tree to update in place.
        preserved: Relative path prefixes that must not be touched.

    Returns:
        ReconcileSummary listing added, updated and deleted paths.
    """
    keep = normalize_preserved(preserved)
    summary = ReconcileSummary()

    # Pass 1: copy new and changed entries from the snapshot
    for root, dirs, files in os.walk(snapshot):
        root_path = Path(root)

        for name in list(dirs):
            src = root_path / name
            rel = _rel(src, snapshot)
            if is_preserved(rel, keep):
                dirs.remove(name)
                continue
            if src.is_symlink():
                # os.walk does not descend into symlinked dirs; treat as a file entry
                dirs.remove(name)
                files.append(name)
                continue
            dst = work_tree / rel
            if dst.is_symlink() or (dst.exists() and not dst.is_dir()):
                _remove(dst)
                summary.updated.append(rel)
            dst.mkdir(parents=True, exist_ok=True)

        for name in files:
            src = root_path / name
            rel = _rel(src, snapshot)
            if is_preserved(rel, keep) or _holds_preserved(rel, keep):
                continue
            dst = work_tree / rel
            if not dst.exists() and not dst.is_symlink():
                _copy_entry(src, dst)
                summary.added.append(rel)
            elif not _same_entry(src, dst):
                _copy_entry(src, dst)
                summary.updated.append(rel)

    # Pass 2: delete entries the snapshot no longer has
    for root, dirs, files in os.walk(work_tree):
        root_path = Path(root)

        for name in list(dirs):
            path = root_path / name
            rel = _rel(path, work_tree)
            if is_preserved(rel, keep):
                dirs.remove(name)
                continue
            if _holds_preserved(rel, keep):
                continue
            counterpart = snapshot / rel
            if not counterpart.exists() and not counterpart.is_symlink():
                _remove(path)
                dirs.remove(name)
                summary.deleted.append(rel)
            elif path.is_symlink():
                dirs.remove(name)

        for name in files:
            path = root_path / name
            rel = _rel(path, work_tree)
            if is_preserved(rel, keep):
                continue
            counterpart = snapshot / rel
            if not counterpart.exists() and not counterpart.is_symlink():
                path.unlink()
                summary.deleted.append(rel)

    logger.info(
        "Reconciled work tree: %d added, %d updated, %d deleted",
        len(summary.added),
        len(summary.updated),
        len(summary.deleted),
    )
    return summary
