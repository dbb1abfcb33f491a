# src/swissknife/storage/models.py

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .errors import InvalidArgument

Priority = str | int | float

# Well-known task fields; everything else lives in TaskRecord.extra.
TASK_FIELDS = ("id", "status", "type", "priority")
FILTER_FIELDS = ("status", "type", "priority")


class TaskStatus(StrEnum):
    """
    Common task statuses.

    Notes:
    - records accept any string status; these are the values the app itself writes.
    """

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class TaskRecord:
    """
    Mutable task document tracked by id.

    The closed fields are the ones the ledger can filter on.
    `extra` holds caller-defined fields verbatim (flattened on disk).
    """

    id: str
    status: str | None = None
    type: str | None = None
    priority: Priority | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TaskRecord:
        if not isinstance(data, Mapping):
            raise InvalidArgument(f"Task must be a mapping or TaskRecord, got {type(data).__name__}")
        raw_id = data.get("id")
        if raw_id is not None and not isinstance(raw_id, str):
            raise InvalidArgument(f"Task id must be a string, got {type(raw_id).__name__}")
        extra = {k: v for k, v in data.items() if k not in TASK_FIELDS}
        return cls(
            id=raw_id or "",
            status=data.get("status"),
            type=data.get("type"),
            priority=data.get("priority"),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id}
        if self.status is not None:
            out["status"] = self.status
        if self.type is not None:
            out["type"] = self.type
        if self.priority is not None:
            out["priority"] = self.priority
        for k, v in self.extra.items():
            if k not in TASK_FIELDS:
                out[k] = v
        return out

    def copy(self) -> TaskRecord:
        return TaskRecord(
            id=self.id,
            status=self.status,
            type=self.type,
            priority=self.priority,
            extra=copy.deepcopy(self.extra),
        )

    def merged(self, patch: TaskRecord | Mapping[str, Any]) -> TaskRecord:
        """
        Shallow merge: every key present in `patch` wins, the rest are kept.

        A mapping patch is applied key by key, so an explicit None overwrites
        both well-known and extra fields. A TaskRecord patch goes through
        to_dict(), where an unset well-known field is simply not a key.
        """
        changes = patch.to_dict() if isinstance(patch, TaskRecord) else dict(patch)
        doc = self.to_dict()
        doc.update(copy.deepcopy(changes))
        doc["id"] = self.id
        return TaskRecord.from_dict(doc)

    def normalized(self) -> TaskRecord:
        """
        Copy holding exactly what a JSON document can hold.

        Tuples come back as lists and non-str keys as str, on every backend.
        Raises InvalidArgument for values JSON cannot represent.
        """
        try:
            doc = json.loads(json.dumps(self.to_dict(), ensure_ascii=False))
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"Task {self.id!r} is not JSON-serializable: {exc}") from exc
        return TaskRecord.from_dict(doc)

    def get(self, key: str, default: Any = None) -> Any:
        if key in TASK_FIELDS:
            val = getattr(self, key)
            return default if val is None else val
        return self.extra.get(key, default)


@dataclass(frozen=True, slots=True)
class TaskFilter:
    status: str | None = None
    type: str | None = None
    priority: Priority | None = None

    @classmethod
    def coerce(cls, raw: TaskFilter | Mapping[str, Any] | None) -> TaskFilter:
        if raw is None:
            return cls()
        if isinstance(raw, TaskFilter):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidArgument(f"Task filter must be a mapping, got {type(raw).__name__}")
        return cls(
            status=raw.get("status"),
            type=raw.get("type"),
            priority=raw.get("priority"),
        )

    def is_empty(self) -> bool:
        return all(getattr(self, name) in (None, "") for name in FILTER_FIELDS)

    def matches(self, task: TaskRecord) -> bool:
        for name in FILTER_FIELDS:
            want = getattr(self, name)
            # None and "" leave the field unconstrained
            if want in (None, ""):
                continue
            if getattr(task, name) != want:
                return False
        return True


@dataclass(frozen=True, slots=True)
class StorageStats:
    size: int  # total content bytes
    items: int  # content entries

    def as_dict(self) -> dict[str, int]:
        return {"size": self.size, "items": self.items}


def coerce_task(raw: TaskRecord | Mapping[str, Any]) -> TaskRecord:
    """Accept a TaskRecord or a plain mapping; always return a private copy."""
    if isinstance(raw, TaskRecord):
        return raw.copy()
    rec = TaskRecord.from_dict(raw)
    rec.extra = copy.deepcopy(rec.extra)
    return rec
