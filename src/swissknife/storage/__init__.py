"""
Storage subsystem.

Components:
- models.py: data structures (TaskRecord, TaskFilter, StorageStats, TaskStatus)
- errors.py: NotFound / InvalidArgument / BackendUnavailable
- cid.py: CID minting (content hash or legacy random ids)
- base.py: the shared provider contract on top of backend primitives
- memory.py / filesystem.py: the two interchangeable backends
"""

from __future__ import annotations

import logging
from pathlib import Path

from .base import BaseStorage
from .cid import CidFactory, cid_factory_for_mode, hash_cid, random_cid
from .errors import BackendUnavailable, InvalidArgument, NotFound, StorageError
from .filesystem import FileSystemStorage
from .memory import InMemoryStorage
from .models import StorageStats, TaskFilter, TaskRecord, TaskStatus

logger = logging.getLogger(__name__)

BACKEND_MEMORY = "memory"
BACKEND_FS = "fs"

_BACKEND_ALIASES = {
    "memory": BACKEND_MEMORY,
    "mem": BACKEND_MEMORY,
    "inmemory": BACKEND_MEMORY,
    "in-memory": BACKEND_MEMORY,
    "fs": BACKEND_FS,
    "filesystem": BACKEND_FS,
    "file": BACKEND_FS,
    "disk": BACKEND_FS,
}


def normalize_backend(name: str | None, default: str = BACKEND_FS) -> str:
    """Map user-facing backend names onto 'memory' / 'fs' (unknown -> default)."""
    key = (name or "").strip().lower()
    return _BACKEND_ALIASES.get(key, default)


def create_storage(
    backend: str = BACKEND_FS,
    *,
    root: str | Path | None = None,
    cid_factory: CidFactory | None = None,
) -> BaseStorage:
    """
    Construction-time backend selection.

    Both backends honour the same contract; callers never branch on the result.
    """
    kind = _BACKEND_ALIASES.get((backend or "").strip().lower())
    if kind is None:
        raise ValueError(f"Unknown storage backend: {backend!r} (expected 'memory' or 'fs')")

    if kind == BACKEND_MEMORY:
        return InMemoryStorage(cid_factory=cid_factory)

    if root is None:
        raise ValueError("Filesystem storage requires a root directory")
    return FileSystemStorage(root, cid_factory=cid_factory)


__all__ = [
    "BACKEND_FS",
    "BACKEND_MEMORY",
    "BackendUnavailable",
    "BaseStorage",
    "CidFactory",
    "FileSystemStorage",
    "InMemoryStorage",
    "InvalidArgument",
    "NotFound",
    "StorageError",
    "StorageStats",
    "TaskFilter",
    "TaskRecord",
    "TaskStatus",
    "cid_factory_for_mode",
    "create_storage",
    "hash_cid",
    "normalize_backend",
    "random_cid",
]
