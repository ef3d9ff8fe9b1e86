# src/diagtask/tasks/task_api.py

from __future__ import annotations

import logging
import threading

from .dispatcher import LaunchDispatcher
from .resolver import StatusResolver
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)


class TaskService:
    """
    The two verbs the surrounding framework calls, plus namespace binding.

    - store(task, session, arg?) -> None or raises InvalidKey / InvalidArgument / Busy
    - fetch(task, session)       -> status string (raises InvalidKey for unknown tasks)

    Session ids are opaque and trusted as already authenticated; isolation is
    purely by key partitioning.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        dispatcher: LaunchDispatcher,
        resolver: StatusResolver,
    ) -> None:
        self.registry = registry
        self._dispatcher = dispatcher
        self._resolver = resolver
        self._namespaces: dict[int, str] = {}
        self._lock = threading.Lock()

    def store(self, task: str, session_id: int, argument: str | None = None) -> None:
        self._dispatcher.store(task, session_id, argument, namespace=self.namespace_for(session_id))

    def fetch(self, task: str, session_id: int) -> str:
        return self._resolver.fetch(task, session_id)

    def bind_namespace(self, session_id: int, tag: str | None) -> None:
        """Bind an execution-namespace tag (e.g. container name) to a session. Empty unbinds."""
        with self._lock:
            if tag:
                self._namespaces[session_id] = tag
            else:
                self._namespaces.pop(session_id, None)
        logger.debug("Namespace session=%s tag=%r", session_id, tag)

    def namespace_for(self, session_id: int) -> str | None:
        with self._lock:
            return self._namespaces.get(session_id)

    def end_session(self, session_id: int) -> None:
        """Forget per-session bindings. Records are left for their workers/consumers."""
        self.bind_namespace(session_id, None)
