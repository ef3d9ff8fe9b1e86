# src/diagtask/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The dispatcher and resolver depend on Protocols instead of concrete implementations.
This keeps the status storage and the process launcher swappable and makes testing easier.
"""

from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol

from ..tasks.task_models import LaunchError


class StatusRepo(Protocol):
    """Keyed status records: (task, session) -> single line of text."""

    def path_for(self, task: str, session_id: int) -> Path: ...
    def has(self, task: str, session_id: int) -> bool: ...
    def get(self, task: str, session_id: int) -> str: ...
    def remove(self, task: str, session_id: int) -> None: ...
    def take(
            self,
            task: str,
            session_id: int,
            accept: Callable[[str], bool] | None = None,
    ) -> str | None: ...

    # Serializes read-then-modify decisions on one key.
    def guard(
            self, task: str, session_id: int, *, wait: float = 0.0
    ) -> AbstractContextManager[None]: ...

    # Provisional reservation written by the dispatcher.
    def put(self, task: str, session_id: int, content: str) -> None: ...
    def reserve(self, task: str, session_id: int, content: str) -> bool: ...


class Launcher(Protocol):
    """
    Detached, unsupervised job submission.

    Returns None when the worker was started, or a LaunchError when the launch
    mechanism itself failed. Completion is never reported here; it is observed
    only through the status records.
    """

    def launch(self, command: Sequence[str], env: Mapping[str, str]) -> LaunchError | None: ...
