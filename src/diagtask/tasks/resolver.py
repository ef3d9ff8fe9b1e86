# src/diagtask/tasks/resolver.py

from __future__ import annotations

import logging

from ..core.ports import StatusRepo
from .task_models import KeyLocked, RecordKind, StatusKeyword, TaskSpec, classify
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)

_DONE_KINDS = (RecordKind.DONE, RecordKind.DONE_WITH_ARG)


def _is_done(content: str) -> bool:
    return classify(content) in _DONE_KINDS


class StatusResolver:
    """
    Fetch path: turn a (task, session) record into a display string.

    Policies:
    - no record          -> "IDLE"
    - "DONE"             -> consumed once; artifact tasks answer "DONE <task>/<task>.<session><suffix>"
    - "DONE <arg>"       -> consumed once, returned verbatim
    - "ERROR[ <msg>]"    -> returned verbatim, left in place until a new launch supersedes it
    - anything else      -> progress message, returned verbatim, untouched

    Consumption runs under the key's guard. If the guard stays taken for longer
    than `guard_wait`, the record is reported without being consumed, and a
    DONE reads as "UNKNOWN" until a later fetch delivers it.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        store: StatusRepo,
        *,
        artifact_suffix: str = ".svg",
        guard_wait: float = 1.0,
    ) -> None:
        self._registry = registry
        self._store = store
        self._artifact_suffix = artifact_suffix
        self._guard_wait = guard_wait

    def artifact_for(self, task: str, session_id: int) -> str:
        return f"{task}/{task}.{session_id}{self._artifact_suffix}"

    def fetch(self, task: str, session_id: int) -> str:
        spec = self._registry.get(task)

        if not self._store.has(task, session_id):
            return StatusKeyword.IDLE.value

        try:
            with self._store.guard(task, session_id, wait=self._guard_wait):
                return self._resolve(spec, session_id)
        except KeyLocked:
            logger.info("Guard busy, not consuming task=%s session=%s", task, session_id)
            return self._peek(task, session_id)

    def _resolve(self, spec: TaskSpec, session_id: int) -> str:
        task = spec.name
        if not self._store.has(task, session_id):
            return StatusKeyword.IDLE.value

        content = self._store.get(task, session_id)
        if not _is_done(content):
            return content

        # take() re-checks what it removes; a record rewritten since get() stays put.
        taken = self._store.take(task, session_id, accept=_is_done)
        if taken is None:
            if self._store.has(task, session_id):
                return self._store.get(task, session_id)
            return StatusKeyword.IDLE.value

        logger.debug("Consumed %r task=%s session=%s", taken, task, session_id)
        if classify(taken) is RecordKind.DONE and spec.artifact:
            return f"{StatusKeyword.DONE} {self.artifact_for(task, session_id)}"
        return taken

    def _peek(self, task: str, session_id: int) -> str:
        if not self._store.has(task, session_id):
            return StatusKeyword.IDLE.value
        content = self._store.get(task, session_id)
        if _is_done(content):
            return StatusKeyword.UNKNOWN.value
        return content
