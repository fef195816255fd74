"""Stash controller: decide between reusing a stored value and recomputing.

Workflow per call:
1. Build the current fingerprint (validation errors abort here, before storage access)
2. If an entry exists and its fingerprint is equivalent → load the value (hit)
3. Otherwise run the computation and write fingerprint, then value
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Any

from rich.console import Console

from stashling.core.caching.errors import NotFoundError
from stashling.core.caching.fingerprint import build_fingerprint
from stashling.core.caching.models import Fingerprint, StashRecord
from stashling.core.caching.protocols import StashStore
from stashling.core.utils.logging import get_logger

logger = logging.getLogger(__name__)


class StashOutcome(str, Enum):
    """How a resolve() call produced its value."""

    STORED = "stored"  # no prior entry
    UPDATED = "updated"  # prior entry was stale
    LOADED = "loaded"  # prior entry reused

    @property
    def message(self) -> str:
        return _STATUS_MESSAGES[self]


_STATUS_MESSAGES = {
    StashOutcome.STORED: "Stashing object.",
    StashOutcome.UPDATED: "Updating stash.",
    StashOutcome.LOADED: "Loading stashed object.",
}


@dataclass(frozen=True)
class StashResult:
    """Value returned by resolve() plus how it was obtained."""

    key: str
    value: Any
    outcome: StashOutcome
    fingerprint: Fingerprint
    compute_ms: float | None = None

    @property
    def recomputed(self) -> bool:
        return self.outcome is not StashOutcome.LOADED


class StashController:
    """
    Orchestrates fingerprint comparison and the reuse/recompute decision.

    Synchronous: the computation runs to completion on the calling thread.
    """

    def __init__(self, store: StashStore, console: Console | None = None) -> None:
        """
        Initialize controller.

        Args:
            store: Entry-level store (fingerprint + value artifacts)
            console: Where verbose status messages go (stderr by default)
        """
        self.store = store
        self.console = console or Console(stderr=True)

    def resolve(
        self,
        key: str,
        code: str,
        dependency_names: Iterable[str] | None,
        scope: Mapping[str, Any],
        compute: Callable[[], Any],
        *,
        force: bool = False,
        verbose: bool = False,
    ) -> StashResult:
        """
        Return the stashed value for key, recomputing when stale.

        Args:
            key: Validated cache key
            code: Canonical source of the computation
            dependency_names: Names in ``scope`` the computation depends on
            scope: Mapping dependency names resolve in
            compute: Runs the computation and returns its value
            force: Recompute even when the stored fingerprint matches
            verbose: Print a status message to the console

        Returns:
            StashResult with the value and the outcome

        Raises:
            MissingDependencyError: Before any storage access
            DuplicateDependencyError: Before any storage access
            StorageError: On read/write failure (entry left as storage left it)
        """
        log = get_logger(__name__, stash_key=key)
        fingerprint = build_fingerprint(code, dependency_names, scope)

        outcome = StashOutcome.STORED
        if self.store.exists(key):
            outcome = StashOutcome.UPDATED
            previous = self._read_previous(key)
            if previous is not None and not force:
                if previous.fingerprint.is_equivalent(fingerprint):
                    try:
                        value = self.store.read_value(key)
                    except NotFoundError:
                        log.info("Stored value unreadable, recomputing")
                    else:
                        self._report(StashOutcome.LOADED, verbose)
                        log.debug("Fingerprint matched, loaded stored value")
                        return StashResult(
                            key=key,
                            value=value,
                            outcome=StashOutcome.LOADED,
                            fingerprint=fingerprint,
                            compute_ms=previous.compute_ms,
                        )
                else:
                    log.info(
                        "Fingerprint changed: %s",
                        ", ".join(previous.fingerprint.changed_components(fingerprint)),
                    )
            elif force:
                log.info("Forced recomputation")

        self._report(outcome, verbose)
        return self._recompute(key, fingerprint, compute, outcome)

    def _read_previous(self, key: str) -> StashRecord | None:
        try:
            return self.store.read_record(key)
        except NotFoundError:
            return None

    def _recompute(
        self,
        key: str,
        fingerprint: Fingerprint,
        compute: Callable[[], Any],
        outcome: StashOutcome,
    ) -> StashResult:
        start = time.perf_counter()
        value = compute()
        compute_ms = (time.perf_counter() - start) * 1000

        if outcome is StashOutcome.UPDATED:
            # Drop the stale value first so the new fingerprint is never paired with it
            self.store.discard_value(key)

        record = StashRecord(
            key=key,
            fingerprint=fingerprint,
            created_at=time.time(),
            compute_ms=compute_ms,
        )
        self.store.write(key, record, value)
        logger.debug("Stored %r after %.1fms (%s)", key, compute_ms, outcome.value)

        return StashResult(
            key=key,
            value=value,
            outcome=outcome,
            fingerprint=fingerprint,
            compute_ms=compute_ms,
        )

    def _report(self, outcome: StashOutcome, verbose: bool) -> None:
        if verbose:
            self.console.print(outcome.message, highlight=False, markup=False)
