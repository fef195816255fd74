"""Tests for StashController.resolve().

Tests the reuse/recompute decision over the in-memory store.
"""

from __future__ import annotations

from io import StringIO
from typing import Any

import pytest
from rich.console import Console

from stashling.core.caching import (
    FSStash,
    MissingDependencyError,
    StashController,
    StashOutcome,
)
from stashling.core.io import FakeFileSystem, absolute_path


class Counter:
    """Computation that counts its executions."""

    def __init__(self, fn=None) -> None:
        self.calls = 0
        self.fn = fn or (lambda: "computed")

    def __call__(self) -> Any:
        self.calls += 1
        return self.fn()


def resolve(controller: StashController, compute: Counter, scope: dict, **kwargs: Any):
    params = {"key": "result", "code": "result = dep * 2", "dependency_names": ["dep"]}
    params.update(kwargs)
    return controller.resolve(scope=scope, compute=compute, **params)


class TestFirstRun:
    """Tests for the not-stashed path."""

    def test_computes_and_stores(self, controller: StashController, store: FSStash):
        compute = Counter()
        result = resolve(controller, compute, {"dep": 1})

        assert result.value == "computed"
        assert result.outcome is StashOutcome.STORED
        assert result.recomputed
        assert compute.calls == 1
        assert store.exists("result")
        assert store.read_record("result").fingerprint.is_equivalent(result.fingerprint)

    def test_records_compute_time(self, controller: StashController, store: FSStash):
        resolve(controller, Counter(), {"dep": 1})
        assert store.read_record("result").compute_ms is not None


class TestCacheHit:
    """Tests for reuse when fingerprints match."""

    def test_second_run_loads_without_recomputing(self, controller: StashController):
        compute = Counter()
        first = resolve(controller, compute, {"dep": 1})
        second = resolve(controller, compute, {"dep": 1})

        assert second.outcome is StashOutcome.LOADED
        assert not second.recomputed
        assert second.value == first.value
        assert compute.calls == 1

    def test_declaration_order_still_hits(self, controller: StashController):
        compute = Counter()
        scope = {"a": 1, "b": 2}
        resolve(controller, compute, scope, dependency_names=["a", "b"])
        result = resolve(controller, compute, scope, dependency_names=["b", "a"])

        assert result.outcome is StashOutcome.LOADED
        assert compute.calls == 1

    def test_unrelated_scope_change_still_hits(self, controller: StashController):
        compute = Counter()
        resolve(controller, compute, {"dep": 1, "other": 1})
        result = resolve(controller, compute, {"dep": 1, "other": 2})

        assert result.outcome is StashOutcome.LOADED


class TestStale:
    """Tests for recomputation when fingerprints differ."""

    def test_dependency_change_recomputes(self, controller: StashController):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        result = resolve(controller, compute, {"dep": 2})

        assert result.outcome is StashOutcome.UPDATED
        assert compute.calls == 2

    def test_code_change_recomputes(self, controller: StashController):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        result = resolve(controller, compute, {"dep": 1}, code="result = dep * 3")

        assert result.outcome is StashOutcome.UPDATED
        assert compute.calls == 2

    def test_added_dependency_recomputes(self, controller: StashController):
        compute = Counter()
        scope = {"dep": 1, "extra": 0}
        resolve(controller, compute, scope)
        result = resolve(controller, compute, scope, dependency_names=["dep", "extra"])

        assert result.outcome is StashOutcome.UPDATED

    def test_removed_dependency_recomputes(self, controller: StashController):
        compute = Counter()
        scope = {"dep": 1, "extra": 0}
        resolve(controller, compute, scope, dependency_names=["dep", "extra"])
        result = resolve(controller, compute, scope)

        assert result.outcome is StashOutcome.UPDATED

    def test_stale_value_overwritten(self, controller: StashController, store: FSStash):
        values = iter(["old", "new"])
        compute = Counter(fn=lambda: next(values))
        resolve(controller, compute, {"dep": 1})
        resolve(controller, compute, {"dep": 2})

        assert store.read_value("result") == "new"
        third = resolve(controller, compute, {"dep": 2})
        assert third.value == "new"
        assert compute.calls == 2

    def test_force_recomputes_matching_entry(self, controller: StashController):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        result = resolve(controller, compute, {"dep": 1}, force=True)

        assert result.outcome is StashOutcome.UPDATED
        assert compute.calls == 2


class TestPartialEntries:
    """Tests for incomplete or damaged entries."""

    def test_fingerprint_without_value_recomputes(
        self, controller: StashController, store: FSStash
    ):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        store.discard_value("result")

        result = resolve(controller, compute, {"dep": 1})
        assert result.outcome is StashOutcome.STORED
        assert compute.calls == 2
        assert store.exists("result")

    def test_corrupt_fingerprint_recomputes(
        self, controller: StashController, store: FSStash, fs: FakeFileSystem
    ):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        fs.write_bytes(store.fingerprints.path("result"), b"{not json")

        result = resolve(controller, compute, {"dep": 1})
        assert result.outcome is StashOutcome.UPDATED
        assert compute.calls == 2

    def test_corrupt_value_recomputes(
        self, controller: StashController, store: FSStash, fs: FakeFileSystem
    ):
        compute = Counter()
        resolve(controller, compute, {"dep": 1})
        fs.write_bytes(store.values.path("result"), b"garbage")

        result = resolve(controller, compute, {"dep": 1})
        assert result.outcome is StashOutcome.UPDATED
        assert result.value == "computed"
        assert compute.calls == 2

    def test_stale_value_discarded_before_new_fingerprint(self, store: FSStash):
        """An update that fails mid-write never pairs the new fingerprint with the old value."""
        controller = StashController(store)
        resolve(controller, Counter(), {"dep": 1})

        original_write = store.values.write_serialized

        def crash(key, payload):
            raise OSError("crashed between artifacts")

        store.values.write_serialized = crash  # type: ignore[method-assign]
        with pytest.raises(OSError):
            resolve(controller, Counter(), {"dep": 2})
        store.values.write_serialized = original_write  # type: ignore[method-assign]

        assert store.fingerprints.exists("result")
        assert not store.exists("result")


class TestValidationBeforeStorage:
    """Tests that validation errors have no side effects."""

    def test_missing_dependency_aborts_before_storage(
        self, controller: StashController, fs: FakeFileSystem
    ):
        compute = Counter()
        with pytest.raises(MissingDependencyError):
            resolve(controller, compute, {})

        assert compute.calls == 0
        with pytest.raises(FileNotFoundError):
            fs.listdir(absolute_path("/.stashling"))


class TestVerbose:
    """Tests for status messages."""

    @pytest.fixture
    def output(self) -> StringIO:
        return StringIO()

    @pytest.fixture
    def verbose_controller(self, store: FSStash, output: StringIO) -> StashController:
        return StashController(store, console=Console(file=output, width=120))

    def test_messages_for_each_outcome(
        self, verbose_controller: StashController, output: StringIO
    ):
        resolve(verbose_controller, Counter(), {"dep": 1}, verbose=True)
        resolve(verbose_controller, Counter(), {"dep": 1}, verbose=True)
        resolve(verbose_controller, Counter(), {"dep": 2}, verbose=True)

        assert output.getvalue().splitlines() == [
            "Stashing object.",
            "Loading stashed object.",
            "Updating stash.",
        ]

    def test_quiet_by_default(self, verbose_controller: StashController, output: StringIO):
        resolve(verbose_controller, Counter(), {"dep": 1})
        assert output.getvalue() == ""
