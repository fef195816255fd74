"""Fingerprinting utilities.

Provides stable digests for code and values, and builds the ordered
fingerprint of a computation from its declared dependencies.
"""

from __future__ import annotations

import builtins
from collections.abc import Iterable, Mapping
import dataclasses
import hashlib
import inspect
import json
import logging
from pathlib import PurePath
import pickle
from typing import Any

from pydantic import BaseModel

from stashling.core.caching.errors import (
    DuplicateDependencyError,
    MissingDependencyError,
    UnhashableDependencyError,
)
from stashling.core.caching.models import CODE_COMPONENT, Fingerprint, FingerprintComponent
from stashling.core.code.canonical import callable_source, is_source_callable

logger = logging.getLogger(__name__)

_MISSING = object()


def digest_text(text: str) -> str:
    """SHA256 hex digest (64 chars) of a string."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def canonical_json(value: Any) -> str:
    """
    Canonical JSON encoding of an arbitrary value.

    Uses canonical JSON (sorted keys, compact separators) over a tagged
    structure, so that equal values encode identically across processes
    regardless of dict insertion order or set iteration order.

    Example:
        >>> canonical_json({"b": 1, "a": (1.5, None)})
        '{"__dict__":[["a",{"__tuple__":[{"__float__":"1.5"},null]}],["b",1]]}'
    """
    return json.dumps(
        _encode(value, set()),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def digest_value(value: Any) -> str:
    """SHA256 hex digest of a value's canonical encoding."""
    return digest_text(canonical_json(value))


def digest_dependency(value: Any) -> str:
    """
    Digest one resolved dependency.

    Python-level functions, methods and classes are digested over their
    canonical definition text, so identical definitions digest equally
    even when the objects are distinct.
    """
    if is_source_callable(value):
        return digest_text(callable_source(value))
    return digest_value(value)


def _sorted_encoded(items: Iterable[Any]) -> list[Any]:
    return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, ensure_ascii=False))


def _encode(value: Any, active: set[int]) -> Any:
    # JSON-native scalars (bool before int; bool is an int subclass)
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int) and type(value) is int:
        return value
    if isinstance(value, float) and type(value) is float:
        return {"__float__": repr(value)}
    if isinstance(value, (bytes, bytearray)):
        return {"__bytes__": bytes(value).hex()}
    if isinstance(value, PurePath):
        return {"__path__": value.as_posix()}
    if inspect.ismodule(value):
        # Modules by identity and version, not content
        return {"__module__": value.__name__, "version": str(getattr(value, "__version__", ""))}
    if is_source_callable(value):
        return {"__callable__": callable_source(value)}

    marker = id(value)
    if marker in active:
        return {"__cycle__": type(value).__qualname__}
    active.add(marker)
    try:
        return _encode_container(value, active)
    finally:
        active.discard(marker)


def _encode_container(value: Any, active: set[int]) -> Any:
    if type(value) is list:
        return [_encode(v, active) for v in value]
    if type(value) is tuple:
        return {"__tuple__": [_encode(v, active) for v in value]}
    if type(value) is dict:
        pairs = [[_encode(k, active), _encode(v, active)] for k, v in value.items()]
        return {"__dict__": _sorted_encoded(pairs)}
    if type(value) in (set, frozenset):
        return {"__set__": _sorted_encoded(_encode(v, active) for v in value)}
    if isinstance(value, BaseModel):
        return {
            "__model__": _qualified_name(type(value)),
            "fields": _encode(value.model_dump(), active),
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return {"__dataclass__": _qualified_name(type(value)), "fields": _encode(fields, active)}

    # Everything else: digest of its pickle
    try:
        payload = pickle.dumps(value, protocol=pickle.DEFAULT_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise TypeError(
            f"Cannot fingerprint object of type {type(value).__qualname__}: {e}"
        ) from e
    return {
        "__pickle__": _qualified_name(type(value)),
        "sha256": hashlib.sha256(payload).hexdigest(),
    }


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def check_duplicates(dependency_names: Iterable[str]) -> None:
    """Raise DuplicateDependencyError if any name is declared twice."""
    seen: set[str] = set()
    duplicates: set[str] = set()
    for name in dependency_names:
        if name in seen:
            duplicates.add(name)
        seen.add(name)
    if duplicates:
        raise DuplicateDependencyError(duplicates)


def resolve_dependencies(
    dependency_names: Iterable[str], scope: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Look up each dependency name in ``scope`` (falling back to builtins).

    Args:
        dependency_names: Names to resolve
        scope: Mapping the names must be found in

    Returns:
        Name → value, in the order given

    Raises:
        MissingDependencyError: Naming every unresolved dependency
    """
    resolved: dict[str, Any] = {}
    missing: list[str] = []
    for name in dependency_names:
        value = scope.get(name, _MISSING)
        if value is _MISSING:
            value = getattr(builtins, name, _MISSING)
        if value is _MISSING:
            missing.append(name)
        else:
            resolved[name] = value
    if missing:
        raise MissingDependencyError(missing)
    return resolved


def build_fingerprint(
    canonical_code: str,
    dependency_names: Iterable[str] | None,
    scope: Mapping[str, Any],
) -> Fingerprint:
    """
    Build the fingerprint of a computation.

    Args:
        canonical_code: Canonicalized source of the computation
        dependency_names: Names of scope values the computation depends on
        scope: Mapping the dependency names resolve in

    Returns:
        Fingerprint: ``CODE`` digest, then one digest per dependency
        in lexicographic name order

    Raises:
        MissingDependencyError: If any dependency is not in ``scope``
        DuplicateDependencyError: If a name is declared more than once
        UnhashableDependencyError: If a dependency value cannot be digested
    """
    names = sorted(dependency_names or [])
    check_duplicates(names)
    values = resolve_dependencies(names, scope)

    components = [FingerprintComponent(name=CODE_COMPONENT, digest=digest_text(canonical_code))]
    for name in names:
        try:
            digest = digest_dependency(values[name])
        except TypeError as e:
            raise UnhashableDependencyError(name, str(e)) from e
        components.append(FingerprintComponent(name=name, digest=digest))
    logger.debug("Built fingerprint with %d dependencies", len(names))
    return Fingerprint(components=tuple(components))
