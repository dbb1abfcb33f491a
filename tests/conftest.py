# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from swissknife.core.state import AppState
from swissknife.storage import FileSystemStorage, InMemoryStorage
from swissknife.storage.base import BaseStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and AppState.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="swissknife-test",
        log_level="INFO",
        log_to_file=False,
        data_dir=tmp_path / "data",
        storage_dir=tmp_path / "data" / "storage",
        storage_backend="memory",
        cid_mode="hash",
    )


@pytest.fixture(params=["memory", "fs"])
def make_storage(request, tmp_path: Path):
    """
    Factory over both backends: every test using it runs twice.

    Accepts an optional cid_factory so tests can control minted ids.
    """

    def _make(**kwargs) -> BaseStorage:
        if request.param == "memory":
            return InMemoryStorage(**kwargs)
        return FileSystemStorage(tmp_path / "store", **kwargs)

    _make.backend = request.param  # type: ignore[attr-defined]
    return _make


@pytest.fixture()
def storage(make_storage) -> BaseStorage:
    return make_storage()


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired with an in-memory provider (real storage code, no disk)."""
    return AppState(settings=settings, storage=InMemoryStorage())
