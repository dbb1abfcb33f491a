# src/swissknife/core/ports.py

"""
Ports (interfaces) used by the app.

Tool adapters and command handlers depend on these Protocols instead of a
concrete backend, so the in-memory and filesystem providers stay swappable
(and tests can run the same code against both).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ..storage.models import StorageStats, TaskFilter, TaskRecord


@runtime_checkable
class ContentStore(Protocol):
    """Write-once blobs keyed by a provider-minted CID."""

    def add(self, data: bytes | str) -> str: ...
    def get(self, cid: str) -> bytes: ...
    def exists(self, cid: str) -> bool: ...
    def list(self, prefix: str = "", limit: int | None = None) -> list[str]: ...
    def delete(self, cid: str) -> bool: ...


@runtime_checkable
class TaskLedger(Protocol):
    """Mutable task records keyed by a caller-chosen id."""

    def store_task(self, task: TaskRecord | Mapping[str, Any]) -> None: ...
    def get_task(self, task_id: str) -> TaskRecord | None: ...
    def update_task(self, task: TaskRecord | Mapping[str, Any]) -> None: ...
    def list_tasks(
            self,
            task_filter: TaskFilter | Mapping[str, Any] | None = None,
    ) -> list[TaskRecord]: ...


@runtime_checkable
class StorageProvider(ContentStore, TaskLedger, Protocol):
    # Diagnostics
    backend_name: str

    def stats(self) -> StorageStats: ...
    def clear(self) -> None: ...
    def close(self) -> None: ...
