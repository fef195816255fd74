"""Shared pytest fixtures for stashling tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from stashling.core.caching import FSStash, StashController
from stashling.core.config import StashSettings, reset_settings
from stashling.core.io import FakeFileSystem, absolute_path

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep process-wide settings and STASHLING_* env vars out of tests."""
    for var in (
        "STASHLING_DIR",
        "STASHLING_USE_PROJECT_ROOT",
        "STASHLING_FUNCTIONAL",
        "STASHLING_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def stash_dir(tmp_path: Path) -> Path:
    """Stash root inside the test's temp directory."""
    return tmp_path / ".stashling"


@pytest.fixture
def settings(stash_dir: Path) -> StashSettings:
    """Quiet settings pointing at a temp stash root."""
    return StashSettings(stash_dir=str(stash_dir), verbose=False)


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def fs() -> FakeFileSystem:
    """Provide fresh FakeFileSystem instance."""
    return FakeFileSystem()


@pytest.fixture
def store(fs: FakeFileSystem) -> FSStash:
    """In-memory entry store."""
    return FSStash(fs, absolute_path("/.stashling"))


@pytest.fixture
def controller(store: FSStash) -> StashController:
    """Controller over the in-memory store."""
    return StashController(store)
