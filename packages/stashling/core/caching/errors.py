"""Exception hierarchy for the stash engine.

Validation errors (InvalidKeyError, MissingDependencyError,
DuplicateDependencyError, UnhashableDependencyError, EmptyComputationError)
are raised before any storage access or computation. StorageError wraps
failures of the underlying filesystem. NotFoundError is an internal
signal that an expected artifact is absent or unreadable.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class StashError(Exception):
    """Base exception for all stash errors."""


class InvalidKeyError(StashError, ValueError):
    """Raised when a key is unusable and cannot be derived."""


class MissingDependencyError(StashError, NameError):
    """Raised when declared dependencies cannot be resolved in the scope.

    Attributes:
        missing: Names that were not found, in sorted order.
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = sorted(missing)
        super().__init__(
            "Some dependencies are missing from the scope: " + ", ".join(self.missing)
        )


class DuplicateDependencyError(StashError, ValueError):
    """Raised when the same dependency name is declared more than once.

    Attributes:
        duplicates: Repeated names, in sorted order.
    """

    def __init__(self, duplicates: Iterable[str]) -> None:
        self.duplicates = sorted(duplicates)
        super().__init__("Dependencies declared more than once: " + ", ".join(self.duplicates))


class UnhashableDependencyError(StashError, TypeError):
    """Raised when a dependency's value cannot be fingerprinted.

    Attributes:
        name: The dependency that could not be digested.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"Cannot fingerprint dependency {name!r}: {reason}")


class EmptyComputationError(StashError, ValueError):
    """Raised when the computation has no body (empty or just ``None``)."""


class StorageError(StashError, OSError):
    """Raised when reading or writing a stash artifact fails."""


class StashDirectoryError(StorageError):
    """Raised when the stash root directory cannot be created."""

    def __init__(self, path: Path | str, cause: BaseException | None = None) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(
            f"stashling is unable to create a directory to stash your objects: {self.path}\n"
            "Please create the directory manually using:\n"
            f"  mkdir -p {self.path}\n"
            "or point STASHLING_DIR at a writable location."
            + (f"\nCause: {cause}" if cause is not None else "")
        )


class NotFoundError(StashError, LookupError):
    """Internal signal: an artifact is missing or unreadable."""
