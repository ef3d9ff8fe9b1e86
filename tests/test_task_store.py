# tests/test_task_store.py

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from diagtask.tasks.task_models import KeyLocked
from diagtask.tasks.task_store import StatusStore


def test_record_path_layout(tmp_path: Path) -> None:
    store = StatusStore(tmp_path)
    assert store.path_for("cpuflamegraph", 7) == (
        tmp_path / "cpuflamegraph" / "cpuflamegraph.7.status"
    )


def test_put_has_get_remove(store: StatusStore) -> None:
    assert not store.has("cpuflamegraph", 1)

    store.put("cpuflamegraph", 1, "Profiling for 60 seconds")
    assert store.has("cpuflamegraph", 1)
    assert store.get("cpuflamegraph", 1) == "Profiling for 60 seconds"
    # other keys are untouched
    assert not store.has("cpuflamegraph", 2)
    assert not store.has("ipcflamegraph", 1)

    store.remove("cpuflamegraph", 1)
    assert not store.has("cpuflamegraph", 1)
    # removing an absent record is a no-op
    store.remove("cpuflamegraph", 1)


def test_get_strips_trailing_newline(store: StatusStore) -> None:
    path = store.path_for("cpuflamegraph", 3)
    path.parent.mkdir(parents=True)
    path.write_text("DONE\n", "utf-8")
    assert store.get("cpuflamegraph", 3) == "DONE"


def test_empty_or_unreadable_reads_unknown(store: StatusStore) -> None:
    path = store.path_for("cpuflamegraph", 4)
    path.parent.mkdir(parents=True)

    path.write_text("\n", "utf-8")
    assert store.get("cpuflamegraph", 4) == "UNKNOWN"

    path.write_bytes(b"\xff\xfe\xfa")
    assert store.get("cpuflamegraph", 4) == "UNKNOWN"

    # absent record read directly also maps to the sentinel
    assert store.get("cpuflamegraph", 99) == "UNKNOWN"


def test_reserve_is_exclusive(store: StatusStore) -> None:
    assert store.reserve("cpuflamegraph", 5, "REQUESTED")
    assert not store.reserve("cpuflamegraph", 5, "REQUESTED")
    assert store.get("cpuflamegraph", 5) == "REQUESTED"


def test_take_delivers_once(store: StatusStore) -> None:
    store.put("cpuflamegraph", 6, "DONE")
    assert store.take("cpuflamegraph", 6) == "DONE"
    assert store.take("cpuflamegraph", 6) is None
    assert not store.has("cpuflamegraph", 6)
    # no leftovers from the rename
    assert list(store.path_for("cpuflamegraph", 6).parent.iterdir()) == []


def test_iter_records_and_clear_all(store: StatusStore) -> None:
    store.put("cpuflamegraph", 1, "a")
    store.put("cpuflamegraph", 2, "b")
    store.put("jstackflamegraph", 1, "c")
    # unrelated files are ignored
    (store.root / "cpuflamegraph" / "cpuflamegraph.1.svg").write_text("<svg/>", "utf-8")
    (store.root / "cpuflamegraph" / "perf.data.123").write_text("", "utf-8")

    assert sorted(store.iter_records()) == [
        ("cpuflamegraph", 1),
        ("cpuflamegraph", 2),
        ("jstackflamegraph", 1),
    ]
    assert sorted(store.iter_records(session_id=1)) == [
        ("cpuflamegraph", 1),
        ("jstackflamegraph", 1),
    ]

    assert store.clear_all() == 3
    assert list(store.iter_records()) == []
    assert (store.root / "cpuflamegraph" / "cpuflamegraph.1.svg").exists()


def test_missing_root_is_empty(tmp_path: Path) -> None:
    store = StatusStore(tmp_path / "nope")
    assert list(store.iter_records()) == []
    assert store.clear_all() == 0


def test_take_rejected_by_accept_restores_record(store: StatusStore) -> None:
    store.put("cpuflamegraph", 7, "profiling 10%")

    assert store.take("cpuflamegraph", 7, accept=lambda c: c.startswith("DONE")) is None
    assert store.get("cpuflamegraph", 7) == "profiling 10%"
    assert [p.name for p in store.path_for("cpuflamegraph", 7).parent.iterdir()] == [
        "cpuflamegraph.7.status"
    ]

    assert store.take("cpuflamegraph", 7, accept=lambda c: True) == "profiling 10%"
    assert not store.has("cpuflamegraph", 7)


def test_line_breaks_never_reach_a_record(store: StatusStore) -> None:
    store.put("cpuflamegraph", 8, "ERROR perf failed:\nno such event\r\n")
    assert store.get("cpuflamegraph", 8) == "ERROR perf failed: no such event"

    assert store.reserve("cpuflamegraph", 9, "REQUESTED\n\n")
    assert store.path_for("cpuflamegraph", 9).read_text("utf-8") == "REQUESTED\n"


def test_guard_is_exclusive_and_released(store: StatusStore) -> None:
    with store.guard("cpuflamegraph", 1):
        with pytest.raises(KeyLocked):
            with store.guard("cpuflamegraph", 1):
                pass
        # other keys are not affected
        with store.guard("cpuflamegraph", 2):
            pass

    with store.guard("cpuflamegraph", 1):
        pass
    assert list((store.root / "cpuflamegraph").glob(".*.guard")) == []


def test_guard_released_on_error(store: StatusStore) -> None:
    with pytest.raises(RuntimeError):
        with store.guard("cpuflamegraph", 1):
            raise RuntimeError("boom")
    with store.guard("cpuflamegraph", 1, wait=0):
        pass


def test_stale_guard_is_broken(tmp_path: Path) -> None:
    store = StatusStore(tmp_path, guard_stale_after=5)
    with store.guard("cpuflamegraph", 1):
        guard = next((tmp_path / "cpuflamegraph").glob(".*.guard"))
        old = time.time() - 60
        os.utime(guard, (old, old))
        # the holder is considered dead; a new caller gets in
        with store.guard("cpuflamegraph", 1):
            pass


def test_clear_all_removes_guards(store: StatusStore) -> None:
    store.put("cpuflamegraph", 1, "a")
    guard = store.root / "cpuflamegraph" / ".cpuflamegraph.1.guard"
    guard.write_text("", "utf-8")

    assert store.clear_all() == 1
    assert not guard.exists()
