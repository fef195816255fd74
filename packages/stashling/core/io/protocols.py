"""Protocol for the filesystem operations the stash stores need."""

from typing import Protocol

from .models import AbsolutePath


class FileSystem(Protocol):
    """
    Blocking filesystem operations over flat artifact directories.

    Writes must be atomic: a reader never observes a partially written
    artifact.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """
        Join path components under base.

        Raises:
            ValueError: If the result escapes base
        """
        ...

    def is_file(self, path: AbsolutePath) -> bool: ...

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """
        Raises:
            FileNotFoundError: If the file doesn't exist
            OSError: On read failure
        """
        ...

    def write_bytes(self, path: AbsolutePath, content: bytes) -> int:
        """Atomically replace the file's content; returns bytes written."""
        ...

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """
        Create directory and all parents.

        Raises:
            FileExistsError: If it exists and exist_ok=False, or a file is in the way
            OSError: If the directory cannot be created
        """
        ...

    def listdir(self, path: AbsolutePath) -> list[str]:
        """
        Entry names in a directory, sorted.

        Raises:
            FileNotFoundError: If the directory doesn't exist
        """
        ...

    def remove(self, path: AbsolutePath) -> None:
        """
        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        ...
