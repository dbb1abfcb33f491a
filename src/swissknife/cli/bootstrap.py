# src/swissknife/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the one storage provider for this process and wires it into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..storage import BACKEND_FS, BaseStorage, create_storage, normalize_backend
from ..storage.cid import cid_factory_for_mode

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_storage_from_settings(settings) -> BaseStorage:
    backend = normalize_backend(getattr(settings, "storage_backend", BACKEND_FS))
    cid_factory = cid_factory_for_mode(getattr(settings, "cid_mode", "hash"))
    root = getattr(settings, "storage_dir", None)
    if root is None:
        root = settings.data_dir / "storage"
    return create_storage(backend, root=root, cid_factory=cid_factory)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    storage = create_storage_from_settings(settings)
    logger.info("Storage backend=%s", storage.backend_name)

    return AppState(settings=settings, storage=storage)
