"""In-memory filesystem for store and controller tests."""

from pathlib import Path

from .models import AbsolutePath


class FakeFileSystem:
    """
    Files held as bytes keyed by path string.

    Not thread-safe; use one instance per test.
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        return AbsolutePath(Path("/") / Path(base).joinpath(*parts))

    def is_file(self, path: AbsolutePath) -> bool:
        return str(Path(path)) in self._files

    def read_bytes(self, path: AbsolutePath) -> bytes:
        try:
            return self._files[str(Path(path))]
        except KeyError:
            raise FileNotFoundError(f"File not found: {path}") from None

    def write_bytes(self, path: AbsolutePath, content: bytes) -> int:
        target = Path(path)
        self._add_dirs(target.parent)
        self._files[str(target)] = bytes(content)
        return len(content)

    def _add_dirs(self, path: Path) -> None:
        for i in range(1, len(path.parts) + 1):
            self._dirs.add(str(Path(*path.parts[:i])))

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        path_str = str(Path(path))
        if path_str in self._files or (not exist_ok and path_str in self._dirs):
            raise FileExistsError(f"Path exists: {path}")
        self._add_dirs(Path(path))

    def listdir(self, path: AbsolutePath) -> list[str]:
        parent = Path(path)
        if str(parent) not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")
        names = {Path(p).name for p in self._files if Path(p).parent == parent}
        names.update(
            Path(d).name for d in self._dirs if d != str(parent) and Path(d).parent == parent
        )
        return sorted(names)

    def remove(self, path: AbsolutePath) -> None:
        try:
            del self._files[str(Path(path))]
        except KeyError:
            raise FileNotFoundError(f"File not found: {path}") from None
