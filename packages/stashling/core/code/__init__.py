"""Canonicalization and isolated execution of stashed computations."""

from stashling.core.code.canonical import callable_source, canonicalize, is_source_callable
from stashling.core.code.execution import (
    Computation,
    child_scope,
    evaluate_code,
    run_computation,
)

__all__ = [
    "Computation",
    "callable_source",
    "child_scope",
    "canonicalize",
    "evaluate_code",
    "is_source_callable",
    "run_computation",
]
