"""Stash root resolution."""

from __future__ import annotations

import logging
from pathlib import Path

from stashling.core.config.models import StashSettings

logger = logging.getLogger(__name__)

PROJECT_ROOT_MARKERS = (".here", ".git", "pyproject.toml", "setup.py", "setup.cfg")


def find_project_root(start: Path | None = None) -> Path | None:
    """Nearest ancestor of ``start`` (inclusive) containing a root marker.

    Example:
        >>> find_project_root(Path("/repo/src/pkg"))  # /repo has .git
        PosixPath('/repo')
    """
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate
    return None


def get_stash_dir(settings: StashSettings, cwd: Path | None = None) -> Path:
    """Absolute stash root for the given settings.

    Args:
        settings: Stash settings
        cwd: Working directory (defaults to Path.cwd())

    Returns:
        Absolute path of the stash root (not created here)
    """
    base = (cwd or Path.cwd()).resolve()
    stash_dir = Path(settings.stash_dir).expanduser()
    if stash_dir.is_absolute():
        return stash_dir

    if settings.use_project_root:
        root = find_project_root(base)
        if root is None:
            logger.warning("No project root found above %s, using working directory", base)
        else:
            base = root

    return base / stash_dir
