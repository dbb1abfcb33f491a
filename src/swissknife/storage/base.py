# src/swissknife/storage/base.py

"""
Shared provider logic.

BaseStorage implements the whole public contract (validation, merge, filter,
prefix/limit, stats) on top of a handful of backend primitives. Backends only
decide *where* bytes and task documents live.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from .cid import CidFactory, hash_cid, is_safe_key
from .errors import InvalidArgument, NotFound
from .models import StorageStats, TaskFilter, TaskRecord, coerce_task

logger = logging.getLogger(__name__)


def to_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise InvalidArgument(f"Content must be bytes or str, got {type(data).__name__}")


def apply_limit(ids: list[str], limit: int | None) -> list[str]:
    # Only a positive int truncates; 0/None/negative mean "no limit".
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return ids[:limit]
    return ids


class BaseStorage(ABC):
    backend_name = "base"

    def __init__(self, *, cid_factory: CidFactory | None = None) -> None:
        self._cid_factory: CidFactory = cid_factory or hash_cid

    # ---- backend primitives ----

    @abstractmethod
    def _put_content(self, cid: str, data: bytes) -> None: ...

    @abstractmethod
    def _read_content(self, cid: str) -> bytes | None: ...

    @abstractmethod
    def _has_content(self, cid: str) -> bool: ...

    @abstractmethod
    def _remove_content(self, cid: str) -> bool: ...

    @abstractmethod
    def _content_ids(self) -> list[str]: ...

    @abstractmethod
    def _content_sizes(self) -> Iterable[int]: ...

    @abstractmethod
    def _write_task(self, task: TaskRecord) -> None: ...

    @abstractmethod
    def _read_task(self, task_id: str) -> TaskRecord | None: ...

    @abstractmethod
    def _all_tasks(self) -> list[TaskRecord]: ...

    @abstractmethod
    def _clear_all(self) -> None: ...

    # ---- content store ----

    def add(self, data: bytes | str) -> str:
        payload = to_bytes(data)
        cid = self._cid_factory(payload)
        if not is_safe_key(cid):
            raise InvalidArgument(f"CID factory produced an unusable id: {cid!r}")

        # Write-once: an existing CID keeps its original bytes.
        if self._has_content(cid):
            logger.debug("Content already stored cid=%s size=%d", cid, len(payload))
            return cid

        self._put_content(cid, payload)
        logger.debug("Content added cid=%s size=%d", cid, len(payload))
        return cid

    def get(self, cid: str) -> bytes:
        data = self._read_content(cid) if is_safe_key(cid) else None
        if data is None:
            raise NotFound("content", str(cid))
        return data

    def exists(self, cid: str) -> bool:
        return is_safe_key(cid) and self._has_content(cid)

    def list(self, prefix: str = "", limit: int | None = None) -> list[str]:
        prefix = prefix or ""
        ids = [cid for cid in self._content_ids() if cid.startswith(prefix)]
        return apply_limit(ids, limit)

    def delete(self, cid: str) -> bool:
        if not is_safe_key(cid):
            return False
        removed = self._remove_content(cid)
        if removed:
            logger.debug("Content deleted cid=%s", cid)
        return removed

    # ---- task ledger ----

    @staticmethod
    def _require_id(task: TaskRecord) -> None:
        if not task.id:
            raise InvalidArgument("Task must have an id")
        if not is_safe_key(task.id):
            raise InvalidArgument(f"Task id is not usable as a key: {task.id!r}")

    def store_task(self, task: TaskRecord | Mapping[str, Any]) -> None:
        rec = coerce_task(task)
        self._require_id(rec)
        rec = rec.normalized()
        self._write_task(rec)
        logger.debug("Task stored id=%s status=%s type=%s", rec.id, rec.status, rec.type)

    def get_task(self, task_id: str) -> TaskRecord | None:
        if not is_safe_key(task_id):
            return None
        return self._read_task(task_id)

    def update_task(self, task: TaskRecord | Mapping[str, Any]) -> None:
        patch = coerce_task(task)
        self._require_id(patch)

        existing = self._read_task(patch.id)
        if existing is None:
            raise NotFound("task", patch.id)

        self._write_task(existing.merged(task).normalized())
        logger.debug("Task updated id=%s status=%s", patch.id, patch.status)

    def list_tasks(
        self,
        task_filter: TaskFilter | Mapping[str, Any] | None = None,
    ) -> list[TaskRecord]:
        flt = TaskFilter.coerce(task_filter)
        tasks = self._all_tasks()
        if flt.is_empty():
            return tasks
        return [t for t in tasks if flt.matches(t)]

    # ---- provider ----

    def stats(self) -> StorageStats:
        # Recomputed every call; never cached.
        sizes = list(self._content_sizes())
        return StorageStats(size=sum(sizes), items=len(sizes))

    def clear(self) -> None:
        self._clear_all()
        logger.info("Storage cleared backend=%s", self.backend_name)

    def close(self) -> None:
        """Release backend resources. Both backends hold no open handles, so this does nothing."""
