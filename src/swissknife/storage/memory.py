# src/swissknife/storage/memory.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from .base import BaseStorage
from .cid import CidFactory
from .models import TaskRecord

logger = logging.getLogger(__name__)


class InMemoryStorage(BaseStorage):
    """
    Dict-backed provider.

    Thread-safety:
    - none; single-process use, concurrent update_task calls are last-write-wins
    """

    backend_name = "memory"

    def __init__(self, *, cid_factory: CidFactory | None = None) -> None:
        super().__init__(cid_factory=cid_factory)
        self._content: dict[str, bytes] = {}
        self._tasks: dict[str, TaskRecord] = {}
        logger.info("InMemoryStorage ready")

    def _put_content(self, cid: str, data: bytes) -> None:
        self._content[cid] = data

    def _read_content(self, cid: str) -> bytes | None:
        return self._content.get(cid)

    def _has_content(self, cid: str) -> bool:
        return cid in self._content

    def _remove_content(self, cid: str) -> bool:
        return self._content.pop(cid, None) is not None

    def _content_ids(self) -> list[str]:
        return list(self._content)

    def _content_sizes(self) -> Iterable[int]:
        return [len(v) for v in self._content.values()]

    def _write_task(self, task: TaskRecord) -> None:
        self._tasks[task.id] = task.copy()

    def _read_task(self, task_id: str) -> TaskRecord | None:
        task = self._tasks.get(task_id)
        return task.copy() if task is not None else None

    def _all_tasks(self) -> list[TaskRecord]:
        return [t.copy() for t in self._tasks.values()]

    def _clear_all(self) -> None:
        self._content.clear()
        self._tasks.clear()
