# src/swissknife/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is read at import time except the local .env file.
- Bootstrap takes settings as a parameter, so tests pass their own object.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .storage import BACKEND_FS, normalize_backend
from .storage.cid import CID_MODE_HASH, CID_MODE_RANDOM

ENV_PREFIX = "SWISSKNIFE"

# Local .env never overrides the real environment.
load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_choice(name: str, allowed: set[str], default: str) -> str:
    raw = (os.getenv(name) or "").strip().lower()
    return raw if raw in allowed else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_to_file: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_dir: Path

    # ---- Storage ----
    storage_backend: str  # "memory" | "fs"
    cid_mode: str  # "hash" | "random"

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "swissknife").strip() or "swissknife"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip().upper() or "INFO"
        log_to_file = _env_bool(_k("LOG_TO_FILE"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/swissknife"))
        storage_dir = _env_path(_k("STORAGE_DIR"), data_dir / "storage")

        storage_backend = normalize_backend(os.getenv(_k("STORAGE_BACKEND")), default=BACKEND_FS)
        cid_mode = _env_choice(_k("CID_MODE"), {CID_MODE_HASH, CID_MODE_RANDOM}, CID_MODE_HASH)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_to_file=log_to_file,
            data_dir=data_dir,
            storage_dir=storage_dir,
            storage_backend=storage_backend,
            cid_mode=cid_mode,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
