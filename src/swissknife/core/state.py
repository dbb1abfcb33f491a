# src/swissknife/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tools.tool_runner import ToolRunner
from .ports import StorageProvider


@dataclass
class AppState:
    # Settings object (Settings in production, SimpleNamespace in tests).
    settings: Any

    # The single provider shared by every command and tool in this process.
    storage: StorageProvider

    tools: ToolRunner = field(init=False)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def __post_init__(self) -> None:
        self.tools = ToolRunner(self.storage)
