"""Filesystem abstraction for the stash stores.

Example:
    >>> from stashling.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> path = fs.join(absolute_path("/tmp"), "stash", "value.pkl")
    >>> fs.write_bytes(path, b"payload")
    7
"""

from .impl_fake import FakeFileSystem
from .impl_real import RealFileSystem
from .models import AbsolutePath, absolute_path
from .protocols import FileSystem

__all__ = [
    "AbsolutePath",
    "absolute_path",
    "FileSystem",
    "RealFileSystem",
    "FakeFileSystem",
]
