# src/swissknife/storage/errors.py

from __future__ import annotations


class StorageError(Exception):
    """Base class for every failure raised by a storage provider."""


class NotFound(StorageError, LookupError):
    """
    Content or task target does not exist.

    Raised by content `get` and task `update_task` only.
    `get_task`, `exists` and `delete` report absence through their return value.
    """

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        if kind == "content":
            msg = f"Content not found for CID: {key}"
        else:
            msg = f"Task not found: {key}"
        super().__init__(msg)


class InvalidArgument(StorageError, ValueError):
    """Caller passed a record or payload the provider cannot accept."""


class BackendUnavailable(StorageError, OSError):
    """Filesystem I/O failed (mkdir/read/write). Never retried by the provider."""
