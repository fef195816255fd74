"""Protocols for stash storage backends."""

from typing import Any, Protocol

from .models import StashEntryInfo, StashRecord


class FingerprintStore(Protocol):
    """Persists one fingerprint record per cache key."""

    def exists(self, key: str) -> bool:
        """Check if the fingerprint artifact exists for key."""
        ...

    def read(self, key: str) -> StashRecord:
        """
        Read the fingerprint record.

        Raises:
            NotFoundError: If missing or unreadable
            StorageError: On other I/O failure
        """
        ...

    def write(self, key: str, record: StashRecord) -> None:
        """
        Write the fingerprint record (atomic per file).

        Raises:
            StorageError: On write failure
        """
        ...

    def remove(self, key: str) -> bool:
        """Delete the artifact; returns False if it was not there."""
        ...


class ValueStore(Protocol):
    """Persists one computed value per cache key."""

    def exists(self, key: str) -> bool:
        """Check if the value artifact exists for key."""
        ...

    def read(self, key: str) -> Any:
        """
        Read the stored value.

        Raises:
            NotFoundError: If missing or unreadable
            StorageError: On other I/O failure
        """
        ...

    def write(self, key: str, value: Any) -> int:
        """
        Write the value; returns the number of bytes written.

        Raises:
            StorageError: On serialization or write failure
        """
        ...

    def remove(self, key: str) -> bool:
        """Delete the artifact; returns False if it was not there."""
        ...


class StashStore(Protocol):
    """
    Combined fingerprint + value storage for whole entries.

    An entry exists only when both artifacts are present.
    """

    def exists(self, key: str) -> bool:
        """Check if both artifacts exist for key."""
        ...

    def read_record(self, key: str) -> StashRecord:
        """Read the fingerprint record (NotFoundError if missing/corrupt)."""
        ...

    def read_value(self, key: str) -> Any:
        """Read the value (NotFoundError if missing/corrupt)."""
        ...

    def write(self, key: str, record: StashRecord, value: Any) -> StashRecord:
        """Write fingerprint first, then value; returns the record as written."""
        ...

    def discard_value(self, key: str) -> None:
        """Remove the value artifact ahead of an overwrite."""
        ...

    def remove(self, key: str) -> bool:
        """Remove both artifacts; returns True if anything was removed."""
        ...

    def entries(self) -> list[StashEntryInfo]:
        """List entries that have at least a fingerprint artifact."""
        ...
