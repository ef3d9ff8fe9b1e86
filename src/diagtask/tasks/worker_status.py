# src/diagtask/tasks/worker_status.py

from __future__ import annotations

"""
Worker-side status reporting.

Workers are external processes; this helper is for the ones written in Python.
A worker receives its status file path in DIAGTASK_STATUS_FILE and must finish
with either done() or error().
"""

import logging
import os
import sys
import uuid
from pathlib import Path
from typing import NoReturn

from .launcher import STATUS_FILE_ENV
from .task_models import StatusKeyword
from .task_store import one_line

logger = logging.getLogger(__name__)


class StatusReporter:
    def __init__(self, status_path: str | Path) -> None:
        self.status_path = Path(status_path)

    @classmethod
    def from_env(cls) -> "StatusReporter":
        raw = os.getenv(STATUS_FILE_ENV, "").strip()
        if not raw:
            raise RuntimeError(f"{STATUS_FILE_ENV} is not set; cannot write status")
        return cls(raw)

    def _write(self, line: str) -> None:
        line = one_line(line)
        self.status_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.status_path.with_name(f".{self.status_path.name}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(line + "\n", "utf-8")
        os.replace(tmp, self.status_path)
        logger.debug("status %s: %s", self.status_path.name, line)

    def status(self, message: str) -> None:
        """Progress message. Must not start with a terminal keyword; line breaks become spaces."""
        message = one_line(message)
        if message.startswith((StatusKeyword.DONE.value, StatusKeyword.ERROR.value)):
            raise ValueError(f"progress message looks terminal: {message!r}")
        self._write(message)

    def done(self, argument: str | None = None) -> None:
        self._write(f"{StatusKeyword.DONE} {argument}" if argument else StatusKeyword.DONE.value)

    def error(self, message: str | None = None) -> None:
        self._write(f"{StatusKeyword.ERROR} {message}" if message else StatusKeyword.ERROR.value)

    def fail(self, message: str | None = None, code: int = 1) -> NoReturn:
        """Write an ERROR status and exit the worker."""
        self.error(message)
        sys.exit(code)
