# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from diagtask.cli.bootstrap import create_initial_state
from diagtask.core.state import AppState
from diagtask.tasks.dispatcher import LaunchDispatcher
from diagtask.tasks.resolver import StatusResolver
from diagtask.tasks.task_registry import TaskRegistry
from diagtask.tasks.task_store import StatusStore

from .fakes import FakeLauncher


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the task modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the host's /var paths and environment.
    """
    return SimpleNamespace(
        app_name="diagtask-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        working_dir=tmp_path / "records",
        scripts_dir=tmp_path / "scripts",
        artifact_suffix=".svg",
        worker_log_path=tmp_path / "logs" / "workers.log",
        guard_stale_after=30,
        reserve_on_store=True,
        clean_on_start=True,
        console_session=0,
    )


@pytest.fixture()
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture()
def store(settings: SimpleNamespace) -> StatusStore:
    return StatusStore(settings.working_dir)


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def dispatcher(
    settings: SimpleNamespace, registry: TaskRegistry, store: StatusStore, launcher: FakeLauncher
) -> LaunchDispatcher:
    return LaunchDispatcher(registry, store, launcher, scripts_dir=settings.scripts_dir)


@pytest.fixture()
def resolver(registry: TaskRegistry, store: StatusStore) -> StatusResolver:
    return StatusResolver(registry, store)


@pytest.fixture()
def state(settings: SimpleNamespace, launcher: FakeLauncher) -> AppState:
    """
    AppState wired with a fake launcher.

    NOTE: the StatusStore is real (files under tmp_path) because the on-disk
    record semantics are part of what we want to test.
    """
    return create_initial_state(settings=settings, launcher=launcher)
