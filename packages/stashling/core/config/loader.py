"""Configuration loading with JSON and YAML support.

Settings come from an optional config file, then environment
variables override individual fields.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from stashling.core.config.models import StashSettings

logger = logging.getLogger(__name__)

# Default settings file (can be overridden)
_DEFAULT_CONFIG_PATH = Path("stashling.yaml")

# Environment variable → StashSettings field
ENV_OVERRIDES = {
    "STASHLING_DIR": "stash_dir",
    "STASHLING_USE_PROJECT_ROOT": "use_project_root",
    "STASHLING_FUNCTIONAL": "functional",
    "STASHLING_VERBOSE": "verbose",
}

_settings: StashSettings | None = None


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("stashling.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    # safe_load returns None for empty files
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config in {path} must be a mapping, got {type(content).__name__}")
    return content


def _env_overrides(environ: dict[str, str] | None = None) -> dict[str, str]:
    env = os.environ if environ is None else environ
    overrides = {}
    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is not None and value != "":
            logger.debug("Loaded %s from environment", var)
            overrides[field] = value
    return overrides


def load_settings(
    path: str | Path | None = None, environ: dict[str, str] | None = None
) -> StashSettings:
    """Load and validate settings.

    Args:
        path: Settings file (.json, .yaml, or .yml). Defaults to
              stashling.yaml, which is optional.
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated StashSettings

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValidationError: If settings are invalid (including env values)
    """
    raw: dict[str, Any] = {}
    if path is not None:
        raw = load_config(path)
    elif _DEFAULT_CONFIG_PATH.exists():
        raw = load_config(_DEFAULT_CONFIG_PATH)

    raw.update(_env_overrides(environ))
    # Lax mode coerces env strings such as "true"/"0"/"yes" to bool
    return StashSettings.model_validate(raw)


def get_settings() -> StashSettings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def configure(settings: StashSettings | None = None, **overrides: Any) -> StashSettings:
    """Install the process-wide settings (call once at startup).

    Args:
        settings: Settings to install; loaded from file/env when None
        **overrides: Field overrides applied on top

    Returns:
        The installed settings

    Example:
        >>> configure(functional=True, verbose=False)
    """
    global _settings
    base = settings if settings is not None else load_settings()
    if overrides:
        base = StashSettings.model_validate({**base.model_dump(), **overrides})
    _settings = base
    return _settings


def reset_settings() -> None:
    """Forget the installed settings (next get_settings() reloads)."""
    global _settings
    _settings = None
