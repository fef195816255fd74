"""Tests for isolated execution of computations."""

from __future__ import annotations

import math

import pytest

from stashling.core.caching import EmptyComputationError
from stashling.core.code import child_scope, evaluate_code, run_computation


class TestEvaluateCode:
    """Tests for evaluate_code."""

    def test_final_assignment_value(self):
        assert evaluate_code("r1 = 10 + dep", {"dep": 5}) == 15

    def test_final_expression_value(self):
        assert evaluate_code("a = 2\na * 21", {}) == 42

    def test_augmented_assignment(self):
        assert evaluate_code("total = 1\ntotal += 4", {}) == 5

    def test_annotated_assignment(self):
        assert evaluate_code("x: int = 3", {}) == 3

    def test_tuple_target(self):
        assert evaluate_code("a, b = 1, 2", {}) == (1, 2)

    def test_subscript_target(self):
        assert evaluate_code("d = {}\nd['k'] = 9", {}) == 9

    def test_function_definition_value(self):
        fn = evaluate_code("def double(x):\n    return x * 2", {})
        assert fn(4) == 8

    def test_other_final_statement_is_none(self):
        assert evaluate_code("for i in range(3):\n    pass", {}) is None

    def test_empty_code_raises(self):
        with pytest.raises(EmptyComputationError):
            evaluate_code("", {})

    def test_incidental_names_do_not_leak(self):
        scope = {"dep": 1}
        evaluate_code("helper = dep + 1\nresult = helper * 2", scope)
        assert scope == {"dep": 1}

    def test_rebinding_scope_names_does_not_leak(self):
        scope = {"dep": 1}
        assert evaluate_code("dep = 100\ndep", scope) == 100
        assert scope["dep"] == 1

    def test_code_can_call_functions_it_defines(self):
        code = "def helper():\n    return base * 2\nbase = 3\nresult = helper()"
        assert evaluate_code(code, {}) == 6

    def test_reads_scope_functions(self):
        assert evaluate_code("out = square(3)", {"square": lambda v: v * v}) == 9

    def test_errors_propagate(self):
        with pytest.raises(ZeroDivisionError):
            evaluate_code("x = 1 / 0", {})


class TestChildScope:
    """Tests for child_scope isolation."""

    def test_isolated_values_are_copies(self):
        data = [1, 2, 3]
        child = child_scope({"data": data}, isolate=["data"])
        child["data"].append(99)
        assert data == [1, 2, 3]

    def test_nested_values_copied_deeply(self):
        config = {"layers": [64, 32]}
        child = child_scope({"config": config}, isolate=["config"])
        child["config"]["layers"].append(16)
        assert config == {"layers": [64, 32]}

    def test_undeclared_values_shared(self):
        calls: list = []
        child = child_scope({"calls": calls})
        assert child["calls"] is calls

    def test_modules_and_callables_shared(self):
        def square(v):
            return v * v

        child = child_scope({"math": math, "square": square}, isolate=["math", "square"])
        assert child["math"] is math
        assert child["square"] is square

    def test_names_missing_from_scope_skipped(self):
        assert child_scope({}, isolate=["len"]) == {}

    def test_in_place_mutation_of_dependency_does_not_leak(self):
        data = [1, 2, 3]
        total = evaluate_code("data.append(99)\ntotal = sum(data)", {"data": data}, ["data"])
        assert total == 105
        assert data == [1, 2, 3]


class TestRunComputation:
    """Tests for run_computation."""

    def test_callable_is_called(self):
        assert run_computation(lambda: 7, "<ignored>", {}) == 7

    def test_string_is_evaluated(self):
        assert run_computation("y = x + 1", "y = x + 1", {"x": 1}) == 2

    def test_dependencies_isolated(self):
        data = {"n": 1}
        run_computation("data['n'] = 2\ndata", "data['n'] = 2\ndata", {"data": data}, ["data"])
        assert data == {"n": 1}
