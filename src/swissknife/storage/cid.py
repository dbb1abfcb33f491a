# src/swissknife/storage/cid.py

"""
CID minting.

Two strategies:
- hash_cid: SHA-256 hex digest of the payload (dedup + integrity by construction),
- random_cid: legacy opaque ids (wall-clock millis + random base36 suffix).

Providers take any `CidFactory`; tests inject deterministic ones.
"""

from __future__ import annotations

import hashlib
import secrets
import string
import time
from collections.abc import Callable

CidFactory = Callable[[bytes], str]

CID_MODE_HASH = "hash"
CID_MODE_RANDOM = "random"

_BASE36 = string.digits + string.ascii_lowercase


def hash_cid(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def random_cid(data: bytes) -> str:
    # `data` is ignored: identical payloads get distinct ids.
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"cid-{int(time.time() * 1000)}-{suffix}"


def cid_factory_for_mode(mode: str) -> CidFactory:
    m = (mode or "").strip().lower()
    if m == CID_MODE_RANDOM:
        return random_cid
    if m in ("", CID_MODE_HASH, "sha256"):
        return hash_cid
    raise ValueError(f"Unknown CID mode: {mode!r} (expected 'hash' or 'random')")


def is_safe_key(key: object) -> bool:
    """True if `key` can be used both as a map key and as a single file name."""
    if not isinstance(key, str) or not key:
        return False
    # also rules out "." and "..", and keeps temp files out of listings
    if key.startswith("."):
        return False
    return not any(ch in key for ch in ("/", "\\", "\x00"))
