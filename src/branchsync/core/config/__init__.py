"""
Configuration models and loading.

This module provides the Pydantic SyncConfig model with multi-layer
merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import DEFAULT_BRANCH_PREFIX, DEFAULT_UPSTREAM_URL, SyncConfig

__all__ = [
    # Models
    "DEFAULT_BRANCH_PREFIX",
    "DEFAULT_UPSTREAM_URL",
    "SyncConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
