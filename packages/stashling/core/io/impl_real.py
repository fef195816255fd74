"""On-disk filesystem with atomic artifact writes."""

import contextlib
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from .models import AbsolutePath


class RealFileSystem:
    """
    Filesystem backed by pathlib.

    Writes go to a temp file next to the target and are moved into
    place with os.replace(), which is atomic when both share a volume.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        result = Path(base).joinpath(*parts).resolve()
        try:
            result.relative_to(Path(base).resolve())
        except ValueError as e:
            raise ValueError(f"Path traversal detected: {result} escapes {base}") from e
        return AbsolutePath(result)

    def is_file(self, path: AbsolutePath) -> bool:
        return Path(path).is_file()

    def read_bytes(self, path: AbsolutePath) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: AbsolutePath, content: bytes) -> int:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        with NamedTemporaryFile(
            mode="wb", dir=target.parent, prefix=f".{target.name}.", delete=False
        ) as tmp:
            tmp_path = tmp.name
            try:
                tmp.write(content)
            except BaseException:
                tmp.close()
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise

        try:
            os.replace(tmp_path, target)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
        return len(content)

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        Path(path).mkdir(parents=True, exist_ok=exist_ok)

    def listdir(self, path: AbsolutePath) -> list[str]:
        return sorted(os.listdir(path))

    def remove(self, path: AbsolutePath) -> None:
        Path(path).unlink()
