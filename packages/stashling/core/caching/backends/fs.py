"""Filesystem-backed stash stores using core.io for all operations.

Each cache key maps to two artifacts under the stash root:
``<key>.fingerprint.json`` and ``<key>.value.pkl``.
"""

from __future__ import annotations

import logging
import pickle
from typing import Any

from pydantic import ValidationError

from stashling.core.caching.errors import (
    InvalidKeyError,
    NotFoundError,
    StashDirectoryError,
    StorageError,
)
from stashling.core.caching.models import StashEntryInfo, StashRecord
from stashling.core.caching.keys import is_cache_key
from stashling.core.io import AbsolutePath, FileSystem

logger = logging.getLogger(__name__)

FINGERPRINT_SUFFIX = ".fingerprint.json"
VALUE_SUFFIX = ".value.pkl"


class _FSArtifactStore:
    """Shared path handling and lazy root creation."""

    suffix: str = ""

    def __init__(self, fs: FileSystem, root: AbsolutePath) -> None:
        """
        Initialize store.

        Args:
            fs: Filesystem implementation
            root: Absolute path to stash root directory
        """
        self.fs = fs
        self.root = root
        self._initialized = False

    def initialize(self) -> None:
        """
        Ensure the stash root exists.

        Called automatically on first use. Safe to call multiple times.

        Raises:
            StashDirectoryError: If the root cannot be created
        """
        if self._initialized:
            return
        try:
            self.fs.mkdirs(self.root, exist_ok=True)
        except OSError as e:
            raise StashDirectoryError(self.root, cause=e) from e
        self._initialized = True

    def path(self, key: str) -> AbsolutePath:
        """Artifact path for key (no I/O)."""
        if not is_cache_key(key):
            raise InvalidKeyError(f"Not a stash key: {key!r}")
        return self.fs.join(self.root, f"{key}{self.suffix}")

    def exists(self, key: str) -> bool:
        self.initialize()
        return self.fs.is_file(self.path(key))

    def remove(self, key: str) -> bool:
        self.initialize()
        path = self.path(key)
        try:
            self.fs.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
        return True

    def _read_bytes(self, key: str) -> bytes:
        self.initialize()
        path = self.path(key)
        try:
            return self.fs.read_bytes(path)
        except FileNotFoundError as e:
            raise NotFoundError(f"No artifact at {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _write_bytes(self, key: str, content: bytes) -> int:
        self.initialize()
        path = self.path(key)
        try:
            return self.fs.write_bytes(path, content)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e


class FSFingerprintStore(_FSArtifactStore):
    """Fingerprint records stored as JSON."""

    suffix = FINGERPRINT_SUFFIX

    def read(self, key: str) -> StashRecord:
        raw = self._read_bytes(key)
        try:
            record = StashRecord.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            # Corrupted fingerprint → treat as missing
            logger.warning("Ignoring corrupt fingerprint for %r: %s", key, e)
            raise NotFoundError(f"Corrupt fingerprint for {key!r}") from e
        if record.key != key:
            logger.warning("Fingerprint for %r was written for %r", key, record.key)
            raise NotFoundError(f"Fingerprint key mismatch for {key!r}")
        return record

    def write(self, key: str, record: StashRecord) -> None:
        self._write_bytes(key, record.model_dump_json(indent=2).encode("utf-8"))


class FSValueStore(_FSArtifactStore):
    """Values stored as pickles."""

    suffix = VALUE_SUFFIX

    def read(self, key: str) -> Any:
        raw = self._read_bytes(key)
        try:
            return pickle.loads(raw)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError) as e:
            logger.warning("Ignoring unreadable value for %r: %s", key, e)
            raise NotFoundError(f"Unreadable value for {key!r}") from e

    @staticmethod
    def serialize(value: Any) -> bytes:
        """
        Pickle a value.

        Raises:
            StorageError: If the value cannot be pickled
        """
        try:
            return pickle.dumps(value, protocol=pickle.DEFAULT_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            raise StorageError(
                f"Cannot serialize value of type {type(value).__qualname__}: {e}"
            ) from e

    def write(self, key: str, value: Any) -> int:
        return self.write_serialized(key, self.serialize(value))

    def write_serialized(self, key: str, payload: bytes) -> int:
        return self._write_bytes(key, payload)


class FSStash:
    """
    Entry-level store combining fingerprint and value artifacts.

    The root directory is created lazily on first use.
    """

    def __init__(self, fs: FileSystem, root: AbsolutePath) -> None:
        self.fs = fs
        self.root = root
        self.fingerprints = FSFingerprintStore(fs, root)
        self.values = FSValueStore(fs, root)

    def initialize(self) -> None:
        self.fingerprints.initialize()
        self.values.initialize()

    def exists(self, key: str) -> bool:
        """True only if both fingerprint and value artifacts exist."""
        return self.fingerprints.exists(key) and self.values.exists(key)

    def read_record(self, key: str) -> StashRecord:
        return self.fingerprints.read(key)

    def read_value(self, key: str) -> Any:
        return self.values.read(key)

    def write(self, key: str, record: StashRecord, value: Any) -> StashRecord:
        """
        Write fingerprint first, then value.

        The value is serialized before anything is written, so a value
        that cannot be pickled leaves the entry untouched.

        Returns:
            The record as written (with value_bytes filled in)
        """
        payload = self.values.serialize(value)
        record = record.model_copy(update={"value_bytes": len(payload)})
        self.fingerprints.write(key, record)
        self.values.write_serialized(key, payload)
        logger.debug("Wrote stash entry %r (%d bytes)", key, len(payload))
        return record

    def discard_value(self, key: str) -> None:
        self.values.remove(key)

    def remove(self, key: str) -> bool:
        # Value first, so a partial removal never leaves a value without its fingerprint
        removed_value = self.values.remove(key)
        removed_fingerprint = self.fingerprints.remove(key)
        return removed_value or removed_fingerprint

    def keys(self) -> list[str]:
        """Keys that have a fingerprint artifact, sorted."""
        self.initialize()
        try:
            names = self.fs.listdir(self.root)
        except OSError as e:
            raise StorageError(f"Failed to list {self.root}: {e}") from e
        return sorted(
            name[: -len(FINGERPRINT_SUFFIX)] for name in names if name.endswith(FINGERPRINT_SUFFIX)
        )

    def entries(self) -> list[StashEntryInfo]:
        infos = []
        for key in self.keys():
            try:
                record: StashRecord | None = self.fingerprints.read(key)
            except (NotFoundError, InvalidKeyError):
                record = None
            try:
                complete = self.values.exists(key)
            except InvalidKeyError:
                complete = False
            infos.append(StashEntryInfo(key=key, complete=complete, record=record))
        return infos
