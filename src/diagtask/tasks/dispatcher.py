# src/diagtask/tasks/dispatcher.py

"""
Launch dispatcher (store path).

Decides whether a new background run may start for a (task, session) key and,
if so, starts it:
- unknown task            -> InvalidKey
- argument not all digits -> InvalidArgument
- non-terminal record     -> Busy (retry later)
- terminal record         -> superseded, launch proceeds

Launching is fire-and-forget. A failure of the launch mechanism is logged and
recorded in the status file, but the store call itself still succeeds.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.ports import Launcher, StatusRepo
from .launcher import build_worker_env
from .task_models import Busy, InvalidArgument, KeyLocked, StatusKeyword, is_terminal
from .task_registry import TaskRegistry
from .validation import validate_argument

logger = logging.getLogger(__name__)
# Launch outcomes also land next to the workers' own stderr.
worker_log = logging.getLogger("diagtask.workers")


class LaunchDispatcher:
    def __init__(
        self,
        registry: TaskRegistry,
        store: StatusRepo,
        launcher: Launcher,
        *,
        scripts_dir: str | Path,
        reserve: bool = True,
    ) -> None:
        self._registry = registry
        self._store = store
        self._launcher = launcher
        self._scripts_dir = scripts_dir
        self._reserve = reserve

    def store(
        self,
        task: str,
        session_id: int,
        argument: str | None = None,
        *,
        namespace: str | None = None,
    ) -> None:
        """
        Accept a launch request or raise InvalidKey / InvalidArgument / Busy.

        Returning normally means "accepted": the worker was submitted (or its
        submission failure was logged and recorded as an ERROR status).
        """
        spec = self._registry.get(task)

        arg = argument or ""
        if not validate_argument(arg):
            logger.warning("Rejected argument task=%s session=%s arg=%r", task, session_id, arg)
            raise InvalidArgument(arg)

        try:
            with self._store.guard(task, session_id):
                self._claim_key(task, session_id)
        except KeyLocked:
            status = self._store.get(task, session_id)
            logger.info("Busy (locked) task=%s session=%s status=%r", task, session_id, status)
            raise Busy(task, session_id, status) from None

        command = self._registry.build_command(spec, scripts_dir=self._scripts_dir, argument=arg)
        env = build_worker_env(
            session_id=session_id,
            status_path=self._store.path_for(task, session_id),
            namespace=namespace,
        )

        err = self._launcher.launch(command, env)
        if err is None:
            worker_log.info("Launched task=%s session=%s ns=%s", task, session_id, namespace or "-")
            return

        worker_log.error(
            "Launch failed task=%s session=%s cmd=%s: %s",
            task,
            session_id,
            " ".join(err.command),
            err.reason,
        )
        if self._reserve:
            # A REQUESTED record must not outlive a failed launch.
            self._store.put(task, session_id, f"{StatusKeyword.ERROR} launch failed: {err.reason}")

    def _claim_key(self, task: str, session_id: int) -> None:
        """Make the key ours or raise Busy. Runs under the key's guard."""
        if self._store.has(task, session_id):
            status = self._store.get(task, session_id)
            if not is_terminal(status):
                logger.info("Busy task=%s session=%s status=%r", task, session_id, status)
                raise Busy(task, session_id, status)
            # Terminal leftovers (ERROR, unconsumed DONE) are superseded by the new run.
            # take() re-checks the content it actually removes.
            if self._store.take(task, session_id, accept=is_terminal) is None and self._store.has(
                task, session_id
            ):
                status = self._store.get(task, session_id)
                logger.info("Busy (rewritten) task=%s session=%s status=%r", task, session_id, status)
                raise Busy(task, session_id, status)

        if self._reserve and not self._store.reserve(
            task, session_id, StatusKeyword.REQUESTED.value
        ):
            status = self._store.get(task, session_id)
            logger.info("Busy (reserved) task=%s session=%s status=%r", task, session_id, status)
            raise Busy(task, session_id, status)
