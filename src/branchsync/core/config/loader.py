"""
Layered configuration for branchsync.

Each layer is a partial dict of SyncConfig fields; later layers win:

    SyncConfig defaults
    user file      $XDG_CONFIG_HOME/branchsync/config.json
    project file   .github/branchsync.json
    environment    UPSTREAM_URL, BRANCH_PREFIX, BRANCHSYNC_*

The project file sits inside .github, which is preserved by default, so a
sync never deletes its own configuration. Command line flags are applied
on top of the result by the CLI.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from .models import SyncConfig

logger = logging.getLogger(__name__)

_cached: SyncConfig | None = None


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError(f"must be >= 1, got {value}")
    return value


# env var -> (SyncConfig field, converter)
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "UPSTREAM_URL": ("source_url", str),
    "BRANCH_PREFIX": ("branch_prefix", str),
    "BRANCHSYNC_SOURCE_REMOTE": ("source_remote", str),
    "BRANCHSYNC_TARGET_REMOTE": ("target_remote", str),
    "BRANCHSYNC_TARGET_BRANCH": ("target_branch", str),
    "BRANCHSYNC_PRESERVED_PATHS": ("preserved_paths", str.split),
    "BRANCHSYNC_GIT_TIMEOUT": ("git_timeout", _positive_int),
}


def get_xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "branchsync" / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    return (project_dir or Path.cwd()) / ".github" / "branchsync.json"


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge override into a copy of base, recursing into nested dicts.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 1}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 1, 'y': 2}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from path. Missing, unreadable or non-object files yield None."""
    try:
        text = path.read_text()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Cannot read config %s: %s", path, e)
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring malformed config %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return None
    return data


def apply_env_overrides(config_dict: Mapping[str, Any]) -> dict[str, Any]:
    """
    Overlay the ENV_OVERRIDES variables onto config_dict.

    Empty variables are ignored. A value that fails conversion is logged
    and skipped rather than aborting the run.
    """
    result = dict(config_dict)
    for env_name, (field, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        try:
            result[field] = convert(raw)
        except ValueError as e:
            logger.warning("Ignoring %s=%r: %s", env_name, raw, e)
    return result


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> SyncConfig:
    """
    Build the effective SyncConfig from all layers.

    Args:
        project_dir: Repository directory holding .github/branchsync.json (defaults to cwd)
        use_cache: Return the config from the previous call if there is one

    Raises:
        ValidationError: If the merged values fail SyncConfig validation
    """
    global _cached

    if use_cache and _cached is not None:
        return _cached

    layers = [
        load_json_file(get_user_config_path()),
        load_json_file(get_project_config_path(project_dir)),
    ]
    merged: dict[str, Any] = SyncConfig().model_dump()
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)

    _cached = SyncConfig(**apply_env_overrides(merged))
    return _cached


def clear_cache() -> None:
    """Forget the cached config so the next load_config re-reads every layer."""
    global _cached
    _cached = None
