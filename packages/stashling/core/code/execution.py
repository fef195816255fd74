"""Run a computation in a child scope and extract its value."""

from __future__ import annotations

import ast
from collections.abc import Callable, Iterable, Mapping
import copy
import inspect
import logging
from typing import Any

from stashling.core.caching.errors import EmptyComputationError

logger = logging.getLogger(__name__)

Computation = str | Callable[[], Any]

_FILENAME = "<stash>"


def child_scope(scope: Mapping[str, Any], isolate: Iterable[str] = ()) -> dict[str, Any]:
    """Create a scope that reads the caller's bindings but keeps its own.

    Values named in ``isolate`` are deep-copied, so mutating them in place
    does not reach the caller either. Modules and callables are shared.
    """
    namespace = dict(scope)
    for name in isolate:
        if name not in namespace:
            continue
        value = namespace[name]
        if inspect.ismodule(value) or callable(value):
            continue
        namespace[name] = copy.deepcopy(value)
    return namespace


def evaluate_code(code: str, scope: Mapping[str, Any], isolate: Iterable[str] = ()) -> Any:
    """Execute source in a child of ``scope`` and return its value.

    The value is:
    - the final expression statement's value, or
    - the value bound by a final (augmented/annotated) assignment, or
    - the object created by a final ``def``/``class``,
    otherwise ``None``. Names the code binds never reach ``scope``.

    Args:
        code: Canonical Python source
        scope: Mapping the code may read from
        isolate: Names whose values are copied before the code runs

    Returns:
        The computation's value

    Raises:
        EmptyComputationError: If the code has no statements
    """
    tree = ast.parse(code, filename=_FILENAME, mode="exec")
    if not tree.body:
        raise EmptyComputationError("Computation cannot be empty")

    namespace = child_scope(scope, isolate)
    last = tree.body[-1]

    if isinstance(last, ast.Expr):
        head = ast.Module(body=tree.body[:-1], type_ignores=[])
        exec(compile(head, _FILENAME, "exec"), namespace)
        return eval(compile(ast.Expression(body=last.value), _FILENAME, "eval"), namespace)

    exec(compile(tree, _FILENAME, "exec"), namespace)

    result = _result_expression(last)
    if result is None:
        return None
    return eval(compile(result, _FILENAME, "eval"), namespace)


def _result_expression(stmt: ast.stmt) -> ast.Expression | None:
    target: ast.expr | None = None
    if isinstance(stmt, ast.Assign):
        target = stmt.targets[0]
    elif isinstance(stmt, (ast.AugAssign, ast.AnnAssign)):
        if isinstance(stmt, ast.AnnAssign) and stmt.value is None:
            return None
        target = stmt.target
    elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        return ast.parse(stmt.name, mode="eval")

    if target is None:
        return None
    # Re-parse so the target is in load context
    return ast.parse(ast.unparse(target), mode="eval")


def run_computation(
    computation: Computation,
    code: str,
    scope: Mapping[str, Any],
    dependency_names: Iterable[str] = (),
) -> Any:
    """Run a string or callable computation.

    Callables run as they are; they see whatever their closure sees.

    Args:
        computation: Source string or zero-argument callable
        code: Canonical source of ``computation``
        scope: Target scope (read-only from the computation's side)
        dependency_names: Declared dependencies, isolated from in-place mutation

    Returns:
        The computation's value
    """
    if callable(computation):
        logger.debug("Calling computation %r", computation)
        return computation()
    return evaluate_code(code, scope, dependency_names)
