# src/swissknife/storage/filesystem.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import secrets
from collections.abc import Iterator
from pathlib import Path

from .base import BaseStorage
from .cid import CidFactory
from .errors import BackendUnavailable
from .models import TaskRecord

logger = logging.getLogger(__name__)

CONTENT_DIRNAME = "content"
TASKS_DIRNAME = "tasks"
TASK_SUFFIX = ".json"


class FileSystemStorage(BaseStorage):
    """
    Directory-backed provider.

    Layout:
    - <root>/content/<cid>      raw bytes, one file per CID
    - <root>/tasks/<id>.json    one JSON document per task

    Directories are created lazily before every write, so deleting them
    underneath a running provider is tolerated.

    Durability:
    - every write goes to a temp file in the target directory, is fsync'ed,
      then os.replace()'d into place (single-file atomicity only)
    - update_task is read-modify-write without a lock: a concurrent update of
      the same id can be lost
    """

    backend_name = "fs"

    def __init__(self, root: str | Path, *, cid_factory: CidFactory | None = None) -> None:
        super().__init__(cid_factory=cid_factory)
        self._root = Path(root)
        self._content_dir = self._root / CONTENT_DIRNAME
        self._tasks_dir = self._root / TASKS_DIRNAME
        self._ensure_dir(self._content_dir)
        self._ensure_dir(self._tasks_dir)
        logger.info("FileSystemStorage ready root=%s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def content_dir(self) -> Path:
        return self._content_dir

    @property
    def tasks_dir(self) -> Path:
        return self._tasks_dir

    # ---- low-level helpers ----

    @staticmethod
    def _ensure_dir(path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BackendUnavailable(f"Cannot create directory {path}: {exc}") from exc

    def _atomic_write(self, path: Path, data: bytes) -> None:
        self._ensure_dir(path.parent)
        tmp = path.parent / f".{path.name}.{secrets.token_hex(4)}.tmp"
        try:
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise BackendUnavailable(f"Cannot write {path}: {exc}") from exc

    @staticmethod
    def _read_bytes(path: Path) -> bytes | None:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise BackendUnavailable(f"Cannot read {path}: {exc}") from exc

    @staticmethod
    def _iter_files(directory: Path) -> Iterator[os.DirEntry[str]]:
        """Visible regular files in `directory`, sorted by name; missing dir -> nothing."""
        try:
            with os.scandir(directory) as it:
                entries = [e for e in it if not e.name.startswith(".") and e.is_file()]
        except FileNotFoundError:
            return iter(())
        except OSError as exc:
            raise BackendUnavailable(f"Cannot list {directory}: {exc}") from exc
        entries.sort(key=lambda e: e.name)
        return iter(entries)

    def _task_path(self, task_id: str) -> Path:
        return self._tasks_dir / f"{task_id}{TASK_SUFFIX}"

    @staticmethod
    def _decode_task(path: Path, raw: bytes) -> TaskRecord:
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise BackendUnavailable(f"Corrupt task document {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise BackendUnavailable(f"Corrupt task document {path}: expected a JSON object")
        return TaskRecord.from_dict(data)

    # ---- content primitives ----

    def _put_content(self, cid: str, data: bytes) -> None:
        self._atomic_write(self._content_dir / cid, data)

    def _read_content(self, cid: str) -> bytes | None:
        return self._read_bytes(self._content_dir / cid)

    def _has_content(self, cid: str) -> bool:
        return (self._content_dir / cid).is_file()

    def _remove_content(self, cid: str) -> bool:
        try:
            (self._content_dir / cid).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise BackendUnavailable(f"Cannot delete content {cid}: {exc}") from exc

    def _content_ids(self) -> list[str]:
        return [e.name for e in self._iter_files(self._content_dir)]

    def _content_sizes(self) -> list[int]:
        sizes: list[int] = []
        for entry in self._iter_files(self._content_dir):
            try:
                sizes.append(entry.stat().st_size)
            except FileNotFoundError:
                # deleted between listing and stat
                continue
            except OSError as exc:
                raise BackendUnavailable(f"Cannot stat {entry.path}: {exc}") from exc
        return sizes

    # ---- task primitives ----

    def _write_task(self, task: TaskRecord) -> None:
        doc = json.dumps(task.to_dict(), ensure_ascii=False, indent=2)
        self._atomic_write(self._task_path(task.id), doc.encode("utf-8"))

    def _read_task(self, task_id: str) -> TaskRecord | None:
        path = self._task_path(task_id)
        raw = self._read_bytes(path)
        if raw is None:
            return None
        return self._decode_task(path, raw)

    def _all_tasks(self) -> list[TaskRecord]:
        out: list[TaskRecord] = []
        for entry in self._iter_files(self._tasks_dir):
            if not entry.name.endswith(TASK_SUFFIX):
                continue
            path = Path(entry.path)
            raw = self._read_bytes(path)
            if raw is None:
                continue
            out.append(self._decode_task(path, raw))
        return out

    def _clear_all(self) -> None:
        # A missing directory means there is nothing to delete.
        for directory in (self._content_dir, self._tasks_dir):
            for entry in self._iter_files(directory):
                try:
                    os.unlink(entry.path)
                except FileNotFoundError:
                    continue
                except OSError as exc:
                    raise BackendUnavailable(f"Cannot delete {entry.path}: {exc}") from exc

    def __repr__(self) -> str:
        return f"FileSystemStorage(root={str(self._root)!r})"

