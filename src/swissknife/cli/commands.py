# src/swissknife/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import json
import logging
import uuid
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..storage.errors import NotFound, StorageError
from ..storage.models import TaskFilter, TaskRecord, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

MANUAL_TASK_TYPE = "manual"


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /task, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)

            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except StorageError as e:
            # Provider failures are user-facing text, not crashes.
            logger.warning("Command /%s failed: %s", name, e)
            return f"Storage error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def parse_flags(args: list[str], names: set[str]) -> tuple[dict[str, str], list[str]]:
    """
    Split "--name value" / "--name=value" pairs out of args.

    Returns (flags, positional). Unknown --flags stay positional.
    """
    flags: dict[str, str] = {}
    rest: list[str] = []
    i = 0
    while i < len(args):
        a = args[i]
        if a.startswith("--"):
            key, sep, val = a[2:].partition("=")
            if key in names:
                if sep:
                    flags[key] = val
                    i += 1
                    continue
                if i + 1 < len(args):
                    flags[key] = args[i + 1]
                    i += 2
                    continue
        rest.append(a)
        i += 1
    return flags, rest


def _parse_value(raw: str) -> object:
    """key=value values: JSON literals when they parse, plain strings otherwise."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _parse_priority(raw: str) -> str | int:
    with contextlib.suppress(ValueError):
        return int(raw)
    return raw


def _format_task_line(task: TaskRecord) -> str:
    desc = task.get("description") or task.get("tool") or task.type or ""
    return f"  {task.id}: {desc} ({task.status or 'unknown'})"


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


# ---- /help, /status ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    storage = state.storage
    st = storage.stats()
    counts = Counter(str(t.status or "unknown") for t in storage.list_tasks())
    by_status = ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "none"
    root = getattr(storage, "root", None)
    lines = [
        "Status:",
        f"  Backend: {storage.backend_name}",
    ]
    if root is not None:
        lines.append(f"  Root: {root}")
    lines += [
        f"  Content: {st.items} items, {st.size} bytes",
        f"  Tasks: {sum(counts.values())} ({by_status})",
    ]
    return "\n".join(lines)


# ---- /task ----

TASK_USAGE = (
    "Task commands:\n"
    "  /task list [--status S] [--type T] [--priority P]\n"
    "  /task create <description>\n"
    "  /task show <id>\n"
    "  /task done <id>\n"
    "  /task update <id> key=value ..."
)


def cmd_task(state: AppState, args: list[str]) -> str:
    """
    /task list [--status S] [--type T] [--priority P]
    /task create <description>
    /task show <id>
    /task done <id>
    /task update <id> key=value ...
    """
    if not args:
        return TASK_USAGE

    sub = args[0].lower()
    rest = args[1:]
    storage = state.storage

    if sub == "list":
        flags, _ = parse_flags(rest, {"status", "type", "priority"})
        flt = TaskFilter(status=flags.get("status"), type=flags.get("type"))
        tasks = storage.list_tasks(flt)
        if flags.get("priority"):
            # command-line text cannot tell 1 from "1"; accept either
            wanted = (flags["priority"], _parse_priority(flags["priority"]))
            tasks = [t for t in tasks if t.priority in wanted]
        if not tasks:
            return "No tasks found."
        return "Tasks:\n" + "\n".join(_format_task_line(t) for t in tasks)

    if sub == "create":
        flags, words = parse_flags(rest, {"type", "priority"})
        description = " ".join(words).strip()
        if not description:
            return "Usage: /task create <description>"
        task = TaskRecord(
            id=f"task-{uuid.uuid4().hex[:8]}",
            status=TaskStatus.PENDING,
            type=flags.get("type") or MANUAL_TASK_TYPE,
            priority=_parse_priority(flags["priority"]) if "priority" in flags else None,
            extra={"description": description},
        )
        storage.store_task(task)
        logger.info("Task created id=%s", task.id)
        return f"Task created: {task.id}"

    if sub == "show":
        if not rest:
            return "Usage: /task show <id>"
        found = storage.get_task(rest[0])
        if found is None:
            return f"Task not found: {rest[0]}"
        return json.dumps(found.to_dict(), ensure_ascii=False, indent=2)

    if sub in ("done", "update"):
        if not rest:
            return f"Usage: /task {sub} <id>" + (" key=value ..." if sub == "update" else "")
        task_id = rest[0]
        patch: dict[str, object] = {"id": task_id}
        if sub == "done":
            patch["status"] = TaskStatus.DONE
        else:
            for pair in rest[1:]:
                key, sep, val = pair.partition("=")
                if not sep or not key or key == "id":
                    return f"Bad field: {pair!r}. Use key=value (id cannot be changed)."
                patch[key] = _parse_value(val)
            if len(patch) == 1:
                return "Usage: /task update <id> key=value ..."
        try:
            storage.update_task(patch)
        except NotFound:
            return f"Task not found: {task_id}"
        return f"Task updated: {task_id}"

    return f"Unknown task command: {sub}\n{TASK_USAGE}"


# ---- /storage ----

STORAGE_USAGE = (
    "Storage commands:\n"
    "  /storage store <content>\n"
    "  /storage retrieve <cid>\n"
    "  /storage list [prefix] [--limit N]\n"
    "  /storage delete <cid>\n"
    "  /storage stats\n"
    "  /storage clear"
)


def cmd_storage(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return STORAGE_USAGE

    sub = args[0].lower()
    rest = args[1:]
    storage = state.storage

    if sub == "store":
        content = " ".join(rest)
        if not content:
            return "Usage: /storage store <content>"
        cid = storage.add(content)
        return f"Stored: {cid}"

    if sub in ("retrieve", "get"):
        if not rest:
            return "Usage: /storage retrieve <cid>"
        try:
            return _decode(storage.get(rest[0]))
        except NotFound as e:
            return str(e)

    if sub == "list":
        flags, pos = parse_flags(rest, {"limit"})
        limit: int | None = None
        if "limit" in flags:
            try:
                limit = int(flags["limit"])
            except ValueError:
                return "Usage: /storage list [prefix] [--limit N]"
        ids = storage.list(prefix=pos[0] if pos else "", limit=limit)
        if not ids:
            return "No content stored."
        return "Stored content:\n" + "\n".join(f"  {cid}" for cid in ids)

    if sub == "delete":
        if not rest:
            return "Usage: /storage delete <cid>"
        if storage.delete(rest[0]):
            return f"Deleted: {rest[0]}"
        return f"Content not found for CID: {rest[0]}"

    if sub == "stats":
        st = storage.stats()
        return f"Storage stats: {st.items} items, {st.size} bytes"

    if sub == "clear":
        if emit:
            with contextlib.suppress(Exception):
                emit("[STORAGE] Clearing all content and tasks...")
        storage.clear()
        return "Storage cleared."

    return f"Unknown storage command: {sub}\n{STORAGE_USAGE}"


# ---- /ipfs ----

IPFS_USAGE = (
    "IPFS commands:\n"
    "  /ipfs add <file>\n"
    "  /ipfs get <cid> [dest]\n"
    "  /ipfs status"
)


def cmd_ipfs(state: AppState, args: list[str]) -> str:
    """Local-file view of the content store (no network node involved)."""
    if not args:
        return IPFS_USAGE

    sub = args[0].lower()
    rest = args[1:]
    storage = state.storage

    if sub == "add":
        if not rest:
            return "Usage: /ipfs add <file>"
        path = Path(rest[0]).expanduser()
        try:
            data = path.read_bytes()
        except OSError as e:
            return f"Cannot read {path}: {e.strerror or e}"
        cid = storage.add(data)
        return f"Added {path.name}: {cid} ({len(data)} bytes)"

    if sub == "get":
        if not rest:
            return "Usage: /ipfs get <cid> [dest]"
        try:
            data = storage.get(rest[0])
        except NotFound as e:
            return str(e)
        if len(rest) < 2:
            return _decode(data)
        dest = Path(rest[1]).expanduser()
        try:
            dest.write_bytes(data)
        except OSError as e:
            return f"Cannot write {dest}: {e.strerror or e}"
        return f"Wrote {len(data)} bytes to {dest}"

    if sub == "status":
        st = storage.stats()
        return (
            "IPFS Status:\n"
            f"  Backend: {storage.backend_name}\n"
            f"  Objects: {st.items}\n"
            f"  Repo size: {st.size} bytes"
        )

    return f"Unknown IPFS command: {sub}\n{IPFS_USAGE}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show backend, storage stats and task counts.")
registry.register(
    "task",
    cmd_task,
    help_text="Task ledger: /task list | create | show | done | update.",
    aliases=["sk-task", "tasks"],
)
registry.register(
    "storage",
    cmd_storage,
    help_text="Content store: /storage store | retrieve | list | delete | stats | clear.",
    aliases=["sk-storage"],
)
registry.register(
    "ipfs",
    cmd_ipfs,
    help_text="Files in the content store: /ipfs add | get | status.",
    aliases=["sk-ipfs"],
)
