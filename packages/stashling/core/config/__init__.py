"""Configuration for stashling."""

from stashling.core.config.loader import (
    configure,
    get_settings,
    load_config,
    load_settings,
    reset_settings,
)
from stashling.core.config.models import LoggingConfig, StashSettings
from stashling.core.config.paths import find_project_root, get_stash_dir

__all__ = [
    "LoggingConfig",
    "StashSettings",
    "configure",
    "find_project_root",
    "get_settings",
    "get_stash_dir",
    "load_config",
    "load_settings",
    "reset_settings",
]
