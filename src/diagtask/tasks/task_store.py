# src/diagtask/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import os
import re
import time
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path

from .task_models import KeyLocked, StatusKeyword

logger = logging.getLogger(__name__)

_STATUS_SUFFIX = ".status"
_GUARD_SUFFIX = ".guard"
_GUARD_POLL_SECONDS = 0.01

_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


def one_line(text: str) -> str:
    """Collapse line breaks so a record always stays a single line."""
    return _LINE_BREAKS_RE.sub(" ", text).strip()


class StatusStore:
    """
    File-backed task status store.

    One small text file per (task, session) key:
        <root>/<task>/<task>.<session>.status

    Layout rules:
    - the file holds a single line; the trailing newline is stripped on read
    - existence of the file is the record's existence ("a run is outstanding")
    - no two keys share a file, so no cross-key locking is needed

    Writers:
    - the external worker (progress + terminal status)
    - the dispatcher, only for the provisional "REQUESTED" reservation

    Decisions that read a record and then replace or delete it run under the
    key's guard file (<root>/<task>/.<task>.<session>.guard), see guard().
    """

    def __init__(self, root: str | Path, *, guard_stale_after: float = 30.0) -> None:
        self._root = Path(root)
        self._guard_stale_after = guard_stale_after
        logger.info("StatusStore ready root=%s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    # ---- paths ----

    def path_for(self, task: str, session_id: int) -> Path:
        return self._root / task / f"{task}.{session_id}{_STATUS_SUFFIX}"

    def _guard_path(self, task: str, session_id: int) -> Path:
        return self._root / task / f".{task}.{session_id}{_GUARD_SUFFIX}"

    # ---- read side ----

    def has(self, task: str, session_id: int) -> bool:
        return self.path_for(task, session_id).is_file()

    def get(self, task: str, session_id: int) -> str:
        """
        Return the record content, newline-stripped.

        Empty or unreadable content reads as "UNKNOWN"; callers treat that as an
        ordinary (non-terminal) status, not as an error.
        """
        path = self.path_for(task, session_id)
        try:
            raw = path.read_text("utf-8")
        except (OSError, UnicodeDecodeError):
            logger.debug("Status read failed path=%s", path, exc_info=True)
            return StatusKeyword.UNKNOWN.value

        content = raw.rstrip("\n")
        if not content:
            return StatusKeyword.UNKNOWN.value
        return content

    def iter_records(self, session_id: int | None = None) -> Iterator[tuple[str, int]]:
        """Yield (task, session) keys for existing records, optionally for one session."""
        if not self._root.is_dir():
            return
        for path in sorted(self._root.glob(f"*/*{_STATUS_SUFFIX}")):
            task = path.parent.name
            stem = path.name[: -len(_STATUS_SUFFIX)]
            prefix = f"{task}."
            if not stem.startswith(prefix):
                continue
            try:
                sid = int(stem[len(prefix):])
            except ValueError:
                continue
            if session_id is None or sid == session_id:
                yield task, sid

    # ---- key guard ----

    @contextlib.contextmanager
    def guard(self, task: str, session_id: int, *, wait: float = 0.0) -> Iterator[None]:
        """
        Hold the key's guard for a read-then-modify decision.

        The guard is a file created with O_EXCL, so it works across processes.
        Raises KeyLocked if it cannot be taken within `wait` seconds. A guard
        older than `guard_stale_after` seconds belongs to a crashed holder and
        is broken.
        """
        path = self._guard_path(task, session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + wait
        while True:
            try:
                os.close(os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644))
                break
            except FileExistsError:
                if self._break_stale_guard(path):
                    continue
                if time.monotonic() >= deadline:
                    raise KeyLocked(task, session_id) from None
                time.sleep(_GUARD_POLL_SECONDS)
        try:
            yield
        finally:
            with contextlib.suppress(FileNotFoundError):
                path.unlink()

    def _break_stale_guard(self, path: Path) -> bool:
        try:
            age = time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age < self._guard_stale_after:
            return False
        logger.warning("Breaking stale guard path=%s age=%.1fs", path, age)
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
        return True

    # ---- write side ----

    def put(self, task: str, session_id: int, content: str) -> None:
        """Replace the record atomically (temp file + rename in the same directory)."""
        path = self.path_for(task, session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(one_line(content) + "\n", "utf-8")
        os.replace(tmp, path)

    def reserve(self, task: str, session_id: int, content: str) -> bool:
        """
        Create the record only if it does not exist yet.

        Returns False if another caller already holds the key.
        """
        path = self.path_for(task, session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(one_line(content) + "\n")
        return True

    def remove(self, task: str, session_id: int) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.path_for(task, session_id).unlink()

    def take(
        self,
        task: str,
        session_id: int,
        accept: Callable[[str], bool] | None = None,
    ) -> str | None:
        """
        Remove the record and return the content it held at removal time.

        The rename is atomic, so of several concurrent takers exactly one gets
        the content; the others get None. If `accept` rejects the claimed
        content, the record is linked back in place (never over a newer
        record) and None is returned.
        """
        path = self.path_for(task, session_id)
        claimed = path.with_name(f".{path.name}.{uuid.uuid4().hex}.taken")
        try:
            os.rename(path, claimed)
        except FileNotFoundError:
            return None
        try:
            try:
                content = claimed.read_text("utf-8").rstrip("\n")
            except (OSError, UnicodeDecodeError):
                content = ""
            content = content or StatusKeyword.UNKNOWN.value

            if accept is not None and not accept(content):
                try:
                    os.link(claimed, path)
                except FileExistsError:
                    logger.warning("Record replaced while claimed path=%s; dropping %r", path, content)
                return None
            return content
        finally:
            with contextlib.suppress(FileNotFoundError):
                claimed.unlink()

    def clear_all(self) -> int:
        """Delete every record and guard under the root (startup cleanup). Returns the records removed."""
        removed = 0
        for task, sid in list(self.iter_records()):
            self.remove(task, sid)
            removed += 1
        if self._root.is_dir():
            for guard in self._root.glob(f"*/.*{_GUARD_SUFFIX}"):
                with contextlib.suppress(FileNotFoundError):
                    guard.unlink()
        if removed:
            logger.info("Removed %s stale status record(s) under %s", removed, self._root)
        return removed
