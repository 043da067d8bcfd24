"""
.env file support.

Variables such as UPSTREAM_URL and BRANCH_PREFIX can be kept in dotenv
files instead of the CI job definition:

    ~/.config/branchsync/.env      user defaults
    .github/branchsync.env         project values, override the user file

Neither file overrides a variable already exported in the process
environment, so a CI runner always has the final word.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

PROJECT_ENV_FILE = Path(".github") / "branchsync.env"


def default_env_files(project_dir: Path | None = None) -> tuple[list[Path], list[Path]]:
    """Return the (user, project) dotenv paths, lowest precedence first."""
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    base = project_dir if project_dir is not None else Path.cwd()
    return [xdg_home / "branchsync" / ".env"], [base / PROJECT_ENV_FILE]


def read_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Merge dotenv files in order; later files win. Missing files are skipped."""
    merged: dict[str, str] = {}
    for path in paths:
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is not None:
                merged[key] = value
        logger.debug("Read environment file %s", path)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export variables from the user and project dotenv files.

    Args:
        project_dir: Directory holding .github/branchsync.env (defaults to cwd)
        user_env_paths: Override the user dotenv locations
        project_env_paths: Override the project dotenv locations

    Returns:
        The variables that were exported into os.environ.
    """
    default_user, default_project = default_env_files(project_dir)
    layers = [
        *(default_user if user_env_paths is None else user_env_paths),
        *(default_project if project_env_paths is None else project_env_paths),
    ]

    exported: dict[str, str] = {}
    for key, value in read_env_files(Path(p) for p in layers).items():
        if key in os.environ:
            continue
        os.environ[key] = value
        exported[key] = value
    return exported
