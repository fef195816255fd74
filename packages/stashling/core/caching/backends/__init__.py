"""Storage backends for stash entries."""

from stashling.core.caching.backends.fs import FSFingerprintStore, FSStash, FSValueStore

__all__ = [
    "FSFingerprintStore",
    "FSStash",
    "FSValueStore",
]
