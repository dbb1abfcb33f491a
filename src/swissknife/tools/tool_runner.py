# src/swissknife/tools/tool_runner.py

"""
Tool invocation adapter.

Wraps a tool call (MCP-style: JSON arguments in, text out) so that:
- the arguments are persisted as content (input_cid),
- the invocation is tracked as a task (running -> done | failed),
- the output is persisted as content (output_cid).

Storage failures are rendered as user-facing error text; they are logged,
never silently dropped.
"""

from __future__ import annotations

import inspect
import json
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..storage.errors import StorageError
from ..storage.models import TaskRecord, TaskStatus

if TYPE_CHECKING:
    from ..core.ports import StorageProvider

logger = logging.getLogger(__name__)

TOOL_TASK_TYPE = "tool"

# Sync or async; async results are awaited.
ToolHandler = Callable[[dict[str, Any]], Any]


@dataclass(slots=True, frozen=True)
class ToolResult:
    task_id: str
    text: str
    is_error: bool = False
    output_cid: str | None = None


def _encode_output(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value, ensure_ascii=False, default=str).encode("utf-8")


def _render_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def new_tool_task_id() -> str:
    return f"tool-{uuid.uuid4().hex[:12]}"


class ToolRunner:
    """Runs tool handlers and records their inputs/outputs in the storage provider."""

    def __init__(self, storage: StorageProvider) -> None:
        self._storage = storage

    async def run(
            self,
            tool_name: str,
            arguments: Mapping[str, Any] | None,
            handler: ToolHandler,
            *,
            task_id: str | None = None,
            priority: str | int | None = None,
    ) -> ToolResult:
        args = dict(arguments or {})
        tid = task_id or new_tool_task_id()

        try:
            input_cid = self._storage.add(json.dumps(args, ensure_ascii=False, sort_keys=True, default=str))
            self._storage.store_task(
                TaskRecord(
                    id=tid,
                    status=TaskStatus.RUNNING,
                    type=TOOL_TASK_TYPE,
                    priority=priority,
                    extra={"tool": tool_name, "input_cid": input_cid},
                )
            )
        except StorageError as e:
            logger.warning("Tool %s: cannot record invocation task_id=%s: %s", tool_name, tid, e)
            return ToolResult(task_id=tid, text=f"Storage error: {e}", is_error=True)

        logger.info("Tool %s started task_id=%s input_cid=%s", tool_name, tid, input_cid)

        try:
            out = handler(args)
            if inspect.isawaitable(out):
                out = await out
        except Exception as e:
            err = f"{type(e).__name__}: {e}"
            logger.exception("Tool %s failed task_id=%s", tool_name, tid)
            try:
                self._storage.update_task({"id": tid, "status": TaskStatus.FAILED, "error": err})
            except StorageError as se:
                logger.warning("Tool %s: cannot mark task %s failed: %s", tool_name, tid, se)
            return ToolResult(task_id=tid, text=f"Tool {tool_name} failed: {err}", is_error=True)

        payload = _encode_output(out)
        try:
            output_cid = self._storage.add(payload)
            self._storage.update_task({"id": tid, "status": TaskStatus.DONE, "output_cid": output_cid})
        except StorageError as e:
            logger.warning("Tool %s: cannot record output task_id=%s: %s", tool_name, tid, e)
            return ToolResult(task_id=tid, text=f"Storage error: {e}", is_error=True)

        logger.info("Tool %s done task_id=%s output_cid=%s", tool_name, tid, output_cid)
        return ToolResult(task_id=tid, text=_render_output(payload), output_cid=output_cid)

    def result_of(self, task_id: str) -> bytes | None:
        """
        Dereference a finished invocation's output.

        Returns None when the task is unknown or has no output yet.
        Raises NotFound when the task points at content that was deleted.
        """
        task = self._storage.get_task(task_id)
        if task is None:
            return None
        cid = task.get("output_cid")
        if not cid:
            return None
        return self._storage.get(str(cid))

    def list_invocations(self, *, status: str | None = None) -> list[TaskRecord]:
        return self._storage.list_tasks({"type": TOOL_TASK_TYPE, "status": status})
