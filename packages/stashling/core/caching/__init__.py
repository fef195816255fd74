"""Fingerprint-based stash engine.

Key features:
- Ordered fingerprints (code digest + sorted dependency digests)
- Exact structural comparison decides reuse vs recompute
- Fingerprint and value artifacts per key, fingerprint written first
- Entries missing either artifact are treated as absent

Example:
    >>> from stashling.core.caching import FSStash, StashController
    >>> from stashling.core.io import RealFileSystem, absolute_path
    >>>
    >>> store = FSStash(RealFileSystem(), absolute_path(".stashling"))
    >>> controller = StashController(store)
    >>> result = controller.resolve(
    ...     "total", "total = 10 + dep", ["dep"], {"dep": 5}, compute=lambda: 15
    ... )
"""

from stashling.core.caching.errors import (
    DuplicateDependencyError,
    EmptyComputationError,
    InvalidKeyError,
    MissingDependencyError,
    NotFoundError,
    StashDirectoryError,
    StashError,
    StorageError,
    UnhashableDependencyError,
)
from stashling.core.caching.backends.fs import FSFingerprintStore, FSStash, FSValueStore
from stashling.core.caching.controller import StashController, StashOutcome, StashResult
from stashling.core.caching.fingerprint import (
    build_fingerprint,
    digest_dependency,
    digest_text,
    digest_value,
)
from stashling.core.caching.keys import (
    NamedKey,
    StructuredKey,
    is_cache_key,
    is_safe_name,
    validate_key,
)
from stashling.core.caching.models import (
    CODE_COMPONENT,
    Fingerprint,
    FingerprintComponent,
    StashEntryInfo,
    StashOptions,
    StashRecord,
)
from stashling.core.caching.protocols import FingerprintStore, StashStore, ValueStore

__all__ = [
    # Errors
    "StashError",
    "InvalidKeyError",
    "MissingDependencyError",
    "DuplicateDependencyError",
    "UnhashableDependencyError",
    "EmptyComputationError",
    "StorageError",
    "StashDirectoryError",
    "NotFoundError",
    # Models
    "CODE_COMPONENT",
    "Fingerprint",
    "FingerprintComponent",
    "StashEntryInfo",
    "StashOptions",
    "StashRecord",
    # Protocols
    "FingerprintStore",
    "ValueStore",
    "StashStore",
    # Backends
    "FSFingerprintStore",
    "FSValueStore",
    "FSStash",
    # Engine
    "StashController",
    "StashOutcome",
    "StashResult",
    # Keys
    "NamedKey",
    "StructuredKey",
    "is_cache_key",
    "is_safe_name",
    "validate_key",
    # Utils
    "build_fingerprint",
    "digest_dependency",
    "digest_text",
    "digest_value",
]
