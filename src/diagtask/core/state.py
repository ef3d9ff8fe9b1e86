# src/diagtask/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..tasks.task_api import TaskService
from ..tasks.task_store import StatusStore


@dataclass
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: object

    store: StatusStore
    service: TaskService

    # Session the console driver speaks for.
    session_id: int = 0

    lock: threading.Lock = field(default_factory=threading.Lock)
