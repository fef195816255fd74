"""Canonical text for computations and callables.

Formatting-only differences (comments, blank lines, spacing, quote
style) disappear so they do not change a fingerprint.
"""

from __future__ import annotations

import ast
import hashlib
import inspect
import logging
import pickle
import textwrap
from typing import Any

logger = logging.getLogger(__name__)


def canonicalize(code: str) -> str:
    """Canonicalize Python source text.

    The source is dedented, parsed, and re-emitted with ``ast.unparse``.

    Args:
        code: Python source (one or more statements)

    Returns:
        Canonical source text; ``""`` for blank input

    Raises:
        SyntaxError: If the source does not parse

    Example:
        >>> canonicalize("x  =  1   # set x")
        'x = 1'
    """
    source = textwrap.dedent(code).strip()
    if not source:
        return ""
    return ast.unparse(ast.parse(source))


def is_source_callable(obj: Any) -> bool:
    """True for Python-level functions, methods and classes.

    Builtins and other C-level callables are treated like plain values.
    """
    target = inspect.unwrap(obj) if inspect.isfunction(obj) else obj
    return inspect.isfunction(target) or inspect.ismethod(target) or inspect.isclass(target)


def callable_source(fn: Any) -> str:
    """Canonical definition text of a function, method or class.

    Falls back to a description of the code object when the source file
    is unavailable (interactive sessions) or the retrieved source cannot
    be parsed on its own (lambdas embedded in larger expressions).
    Classes without source are described by their bases and members.

    Args:
        fn: Function, bound method or class

    Returns:
        Deterministic text describing the definition

    Raises:
        TypeError: If a sourceless class holds an attribute that can be
            neither described nor pickled
    """
    target = fn.__func__ if inspect.ismethod(fn) else fn
    if inspect.isfunction(target):
        target = inspect.unwrap(target)

    try:
        source = inspect.getsource(target)
    except (OSError, TypeError):
        logger.debug("No source available for %r, using code object", target)
        return _code_object_text(target)

    try:
        return canonicalize(source)
    except SyntaxError:
        logger.debug("Source of %r does not parse on its own, using code object", target)
        return _code_object_text(target)


def _code_object_text(target: Any) -> str:
    if inspect.isclass(target):
        return _class_text(target)
    code = getattr(target, "__code__", None)
    qualname = f"{getattr(target, '__module__', '')}.{getattr(target, '__qualname__', '')}"
    if code is None:
        return qualname
    return "\n".join(
        [
            qualname,
            code.co_code.hex(),
            repr(tuple(_const_text(c) for c in code.co_consts)),
            repr(code.co_names),
            repr(code.co_varnames),
        ]
    )


def _const_text(const: Any) -> Any:
    # Nested code objects (inner functions, comprehensions) repr with an address
    if inspect.iscode(const):
        return (const.co_name, const.co_code.hex(), tuple(_const_text(c) for c in const.co_consts))
    return const


# Bookkeeping entries that say nothing about behaviour (or move with line numbers)
_IGNORED_CLASS_ATTRS = frozenset(
    {
        "__dict__",
        "__weakref__",
        "__module__",
        "__qualname__",
        "__firstlineno__",
        "__static_attributes__",
    }
)


def _class_text(cls: type) -> str:
    """Describe a class without source from its bases and members."""
    lines = [
        f"class {cls.__module__}.{cls.__qualname__}",
        "bases " + ", ".join(f"{b.__module__}.{b.__qualname__}" for b in cls.__bases__),
    ]
    for name in sorted(vars(cls)):
        if name in _IGNORED_CLASS_ATTRS:
            continue
        lines.append(f"{name} = {_member_text(cls, vars(cls)[name])}")
    return "\n".join(lines)


def _member_text(owner: type, member: Any) -> str:
    if isinstance(member, (staticmethod, classmethod)):
        return f"{type(member).__name__}({_member_text(owner, member.__func__)})"
    if isinstance(member, property):
        accessors = (member.fget, member.fset, member.fdel)
        return "property(" + ", ".join(
            "None" if f is None else _member_text(owner, f) for f in accessors
        ) + ")"
    if inspect.isfunction(member):
        return _code_object_text(inspect.unwrap(member))
    if inspect.isclass(member):
        # Nested classes are described in full, references to others by name
        if member.__qualname__.startswith(f"{owner.__qualname__}."):
            return _class_text(member)
        return f"{member.__module__}.{member.__qualname__}"
    return _value_text(member)


def _value_text(value: Any) -> str:
    if value is None or isinstance(value, (bool, int, float, complex, str, bytes)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}[" + ", ".join(_value_text(v) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return f"{type(value).__name__}{{" + ", ".join(sorted(_value_text(v) for v in value)) + "}"
    if isinstance(value, dict):
        items = sorted(f"{_value_text(k)}: {_value_text(v)}" for k, v in value.items())
        return "dict{" + ", ".join(items) + "}"
    if inspect.isclass(value):
        return f"{value.__module__}.{value.__qualname__}"
    if inspect.isfunction(value):
        return _code_object_text(value)
    try:
        payload = pickle.dumps(value, protocol=pickle.DEFAULT_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise TypeError(
            f"Cannot describe class attribute of type {type(value).__qualname__}: {e}"
        ) from e
    kind = f"{type(value).__module__}.{type(value).__qualname__}"
    return f"{kind}:{hashlib.sha256(payload).hexdigest()}"
