# src/diagtask/tasks/launcher.py

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path

from .task_models import LaunchError

# Worker lifecycle records go to the workers log next to the workers' stderr.
logger = logging.getLogger("diagtask.workers")

# Worker environment contract.
SESSION_ENV = "PCP_CONTEXT"
NAMESPACE_ENV = "PCP_CONTAINER_NAME"
STATUS_FILE_ENV = "DIAGTASK_STATUS_FILE"


def build_worker_env(
    *,
    session_id: int,
    status_path: str | Path,
    namespace: str | None = None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Build the environment for one worker launch.

    A fresh dict per call: the launcher's own process environment is never mutated,
    so concurrent launches for different sessions cannot leak into each other.
    """
    env = dict(os.environ if base is None else base)
    env[SESSION_ENV] = str(session_id)
    env[STATUS_FILE_ENV] = str(status_path)
    if namespace:
        env[NAMESPACE_ENV] = namespace
    else:
        env.pop(NAMESPACE_ENV, None)
    return env


class DetachedLauncher:
    """
    Start workers as detached background processes.

    - new session (no controlling terminal, not killed with our process group)
    - stdin/stdout go to /dev/null; stderr is appended to `stderr_path` if given
    - each child is waited for on a daemon thread, so finished workers never
      linger as zombies; the exit code is only logged, completion is still
      observed through the status record
    """

    def __init__(self, stderr_path: str | Path | None = None) -> None:
        self._stderr_path = Path(stderr_path) if stderr_path else None

    def launch(self, command: Sequence[str], env: Mapping[str, str]) -> LaunchError | None:
        argv = tuple(command)
        if not argv:
            return LaunchError(command=argv, reason="empty command")

        try:
            if self._stderr_path is not None:
                self._stderr_path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._stderr_path, "ab") as err:
                    proc = self._spawn(argv, env, err)
            else:
                proc = self._spawn(argv, env, subprocess.DEVNULL)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.error("Worker launch failed cmd=%s: %s", " ".join(argv), e)
            return LaunchError(command=argv, reason=str(e) or type(e).__name__)

        logger.info("Worker started pid=%s cmd=%s", proc.pid, " ".join(argv))
        threading.Thread(
            target=self._reap, args=(proc,), name=f"reap-{proc.pid}", daemon=True
        ).start()
        return None

    @staticmethod
    def _reap(proc: subprocess.Popen) -> None:
        rc = proc.wait()
        logger.debug("Worker exited pid=%s rc=%s", proc.pid, rc)

    @staticmethod
    def _spawn(argv: tuple[str, ...], env: Mapping[str, str], stderr) -> subprocess.Popen:
        return subprocess.Popen(
            argv,
            env=dict(env),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=stderr,
            start_new_session=True,
            close_fds=True,
        )
