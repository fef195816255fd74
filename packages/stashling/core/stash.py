"""Stash the result of a computation and reload it while it is still valid.

The first call runs the computation and stores its value. Later calls
reload the stored value unless the computation's code or any declared
dependency changed, in which case the computation runs again and the
stash is updated.

Example:
    >>> from stashling.core.stash import stash
    >>> n = 1_000_000
    >>> stash("rnd_vals", "rnd_vals = [random.random() for _ in range(n)]",
    ...       depends_on=["n", "random"])
    >>> len(rnd_vals)
    1000000
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
import inspect
import logging
from types import FrameType
from typing import Any

from stashling.core.caching import (
    EmptyComputationError,
    FSStash,
    StashController,
    StashEntryInfo,
    StashOptions,
    validate_key,
)
from stashling.core.code import Computation, callable_source, canonicalize, run_computation
from stashling.core.config import StashSettings, get_settings, get_stash_dir
from stashling.core.io import RealFileSystem, absolute_path

logger = logging.getLogger(__name__)


def open_stash(settings: StashSettings | None = None) -> FSStash:
    """Entry store rooted at the configured stash directory.

    The directory itself is created lazily on first access.
    """
    settings = settings or get_settings()
    return FSStash(RealFileSystem(), absolute_path(get_stash_dir(settings)))


def canonical_code(computation: Computation) -> str:
    """Canonical text of a source string or callable computation.

    Raises:
        EmptyComputationError: If there is nothing to run
        SyntaxError: If source text does not parse
    """
    if computation is None:
        raise EmptyComputationError("Computation cannot be None")
    if callable(computation):
        return callable_source(computation)
    if not isinstance(computation, str):
        raise TypeError(
            f"Computation must be source text or a callable, got {type(computation).__name__}"
        )

    code = canonicalize(computation)
    if code in ("", "None"):
        raise EmptyComputationError("Computation cannot be empty or None")
    return code


def _normalize_depends_on(depends_on: str | Iterable[str] | None) -> list[str] | None:
    if depends_on is None:
        return None
    if isinstance(depends_on, str):
        return [depends_on]
    return list(depends_on)


def _caller_scopes(caller: FrameType | None) -> tuple[dict[str, Any], dict[str, Any]]:
    """Read scope (locals over globals) and binding scope (globals) of a frame."""
    if caller is None:
        raise TypeError("Cannot inspect the calling frame; pass scope= explicitly")
    return {**caller.f_globals, **caller.f_locals}, caller.f_globals


def stash(
    key: Any,
    computation: Computation,
    depends_on: str | Iterable[str] | None = None,
    functional: bool | None = None,
    verbose: bool | None = None,
    *,
    force: bool = False,
    scope: Mapping[str, Any] | None = None,
    options: StashOptions | None = None,
    settings: StashSettings | None = None,
) -> Any:
    """Stash a computed value.

    Args:
        key: Stash key. Must be an identifier unless ``functional`` is
            true, in which case any value is accepted (non-identifiers
            are stored under a digest of their content).
        computation: Python source text, or a zero-argument callable.
        depends_on: Names in ``scope`` whose values the computation uses.
            A change to any of them triggers recomputation.
        functional: Return the value instead of assigning it to ``key``
            in ``scope``. Defaults to the process-wide setting.
        verbose: Print status messages. Defaults to the process-wide setting.
        force: Recompute even if the stash is up to date.
        scope: Mapping dependencies are read from and, in non-functional
            mode, the result is assigned into. When omitted, dependencies
            are read from the caller's locals and globals, and the result
            is assigned into the caller's module globals (a function's
            locals cannot be assigned into).
        options: StashOptions; explicit keyword arguments take precedence.
        settings: Settings to use instead of the process-wide ones.

    Returns:
        The value when functional, otherwise None

    Raises:
        InvalidKeyError: Key is not an identifier and functional is false
        EmptyComputationError: Computation is empty
        MissingDependencyError: A dependency is not in scope
        DuplicateDependencyError: A dependency is declared twice
        UnhashableDependencyError: A dependency value cannot be fingerprinted
        StashDirectoryError: The stash directory cannot be created
        StorageError: Reading or writing the stash failed
    """
    settings = settings or get_settings()
    opts = options or StashOptions()
    opts = opts.model_copy(
        update={
            "depends_on": _normalize_depends_on(depends_on)
            if depends_on is not None
            else opts.depends_on,
            "functional": functional if functional is not None else opts.functional,
            "verbose": verbose if verbose is not None else opts.verbose,
            "force": force or opts.force,
        }
    )
    functional = settings.functional if opts.functional is None else opts.functional
    verbose = settings.verbose if opts.verbose is None else opts.verbose

    lookup_scope: Mapping[str, Any]
    target_scope: Mapping[str, Any]
    if scope is None:
        frame = inspect.currentframe()
        try:
            lookup_scope, target_scope = _caller_scopes(frame.f_back if frame else None)
        finally:
            del frame
    else:
        lookup_scope = target_scope = scope

    cache_key = validate_key(key, allow_derived=functional)
    code = canonical_code(computation)

    controller = StashController(open_stash(settings))
    result = controller.resolve(
        cache_key,
        code,
        opts.depends_on,
        lookup_scope,
        compute=lambda: run_computation(computation, code, lookup_scope, opts.depends_on or ()),
        force=opts.force,
        verbose=verbose,
    )

    if functional:
        return result.value

    if not isinstance(target_scope, MutableMapping):
        raise TypeError("Non-functional stash needs a mutable scope to assign into")
    target_scope[cache_key] = result.value
    return None


def unstash(keys: Any | Iterable[Any], settings: StashSettings | None = None) -> list[str]:
    """Remove stashed entries.

    Args:
        keys: One key or a list of keys (structured keys are accepted)
        settings: Settings to use instead of the process-wide ones

    Returns:
        Cache keys that were actually removed
    """
    if isinstance(keys, (str, bytes)) or not isinstance(keys, (list, tuple, set, frozenset)):
        keys = [keys]
    store = open_stash(settings)
    removed = []
    for key in keys:
        cache_key = validate_key(key, allow_derived=True)
        if store.remove(cache_key):
            removed.append(cache_key)
            logger.info("Removed stash entry %r", cache_key)
    return removed


def clear_stash(settings: StashSettings | None = None) -> int:
    """Remove every stashed entry; returns how many were removed."""
    store = open_stash(settings)
    count = 0
    for key in store.keys():
        if store.remove(key):
            count += 1
    logger.info("Cleared %d stash entries from %s", count, store.root)
    return count


def list_stashes(settings: StashSettings | None = None) -> list[StashEntryInfo]:
    """Entries currently in the stash directory."""
    return open_stash(settings).entries()
