"""Path type shared by the filesystem implementations and the stores."""

from pathlib import Path
from typing import NewType

AbsolutePath = NewType("AbsolutePath", Path)


def absolute_path(path: str | Path) -> AbsolutePath:
    """
    Resolve a path (relative to the working directory) into an AbsolutePath.

    Example:
        >>> str(absolute_path("/tmp/stash/../stash"))
        '/tmp/stash'
    """
    return AbsolutePath(Path(path).resolve())
