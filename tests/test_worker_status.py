# tests/test_worker_status.py

from __future__ import annotations

from pathlib import Path

import pytest

from diagtask.tasks.launcher import STATUS_FILE_ENV
from diagtask.tasks.task_store import StatusStore
from diagtask.tasks.worker_status import StatusReporter


def test_from_env_requires_status_file(monkeypatch) -> None:
    monkeypatch.delenv(STATUS_FILE_ENV, raising=False)
    with pytest.raises(RuntimeError):
        StatusReporter.from_env()


def test_reporter_writes_records_the_store_reads(monkeypatch, store: StatusStore) -> None:
    monkeypatch.setenv(STATUS_FILE_ENV, str(store.path_for("ipcflamegraph", 8)))
    reporter = StatusReporter.from_env()

    reporter.status("Collecting symbol maps")
    assert store.get("ipcflamegraph", 8) == "Collecting symbol maps"

    reporter.done("ipcflamegraph/ipcflamegraph.8.svg")
    assert store.get("ipcflamegraph", 8) == "DONE ipcflamegraph/ipcflamegraph.8.svg"

    reporter.done()
    assert store.get("ipcflamegraph", 8) == "DONE"

    reporter.error()
    assert store.get("ipcflamegraph", 8) == "ERROR"


def test_progress_cannot_look_terminal(tmp_path: Path) -> None:
    reporter = StatusReporter(tmp_path / "x.status")
    with pytest.raises(ValueError):
        reporter.status("DONE soon")
    with pytest.raises(ValueError):
        reporter.status("ERRORS: none")


def test_fail_writes_error_and_exits(tmp_path: Path) -> None:
    path = tmp_path / "t" / "t.1.status"
    reporter = StatusReporter(path)

    with pytest.raises(SystemExit) as exc:
        reporter.fail("Container not found")

    assert exc.value.code == 1
    assert path.read_text("utf-8") == "ERROR Container not found\n"


def test_line_breaks_are_folded(tmp_path: Path) -> None:
    path = tmp_path / "t" / "t.2.status"
    reporter = StatusReporter(path)

    reporter.error("disk\nfull")
    assert path.read_text("utf-8") == "ERROR disk full\n"

    reporter.status("Profiling\r\n(10/60)")
    assert path.read_text("utf-8") == "Profiling (10/60)\n"

    # a terminal keyword hidden behind a leading newline is still refused
    with pytest.raises(ValueError):
        reporter.status("\nDONE")
