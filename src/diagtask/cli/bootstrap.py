# src/diagtask/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local directories exist,
- wires the store, registry, launcher, dispatcher and resolver into AppState,
- removes status records left over from a previous run.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Launcher
from ..core.state import AppState
from ..tasks.dispatcher import LaunchDispatcher
from ..tasks.launcher import DetachedLauncher
from ..tasks.resolver import StatusResolver
from ..tasks.task_api import TaskService
from ..tasks.task_registry import TaskRegistry
from ..tasks.task_store import StatusStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    settings.working_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    launcher: Launcher | None = None,
    registry: TaskRegistry | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Settings, launcher and registry are injectable for tests; by default the
    process-wide settings, a DetachedLauncher and the built-in catalog are used.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = StatusStore(
        settings.working_dir,
        guard_stale_after=getattr(settings, "guard_stale_after", 30),
    )
    if getattr(settings, "clean_on_start", False):
        store.clear_all()

    registry = registry or TaskRegistry()
    if launcher is None:
        launcher = DetachedLauncher(stderr_path=getattr(settings, "worker_log_path", None))

    dispatcher = LaunchDispatcher(
        registry,
        store,
        launcher,
        scripts_dir=settings.scripts_dir,
        reserve=getattr(settings, "reserve_on_store", True),
    )
    resolver = StatusResolver(
        registry,
        store,
        artifact_suffix=getattr(settings, "artifact_suffix", ".svg"),
    )

    return AppState(
        settings=settings,
        store=store,
        service=TaskService(registry, dispatcher, resolver),
        session_id=int(getattr(settings, "console_session", 0)),
    )
