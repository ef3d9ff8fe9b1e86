# tests/test_task_registry.py

from __future__ import annotations

from pathlib import Path

import pytest

from diagtask.tasks.task_models import InvalidKey, TaskSpec
from diagtask.tasks.task_registry import TaskRegistry


def test_default_catalog(registry: TaskRegistry) -> None:
    assert len(registry) == 11
    assert "cpuflamegraph" in registry
    assert "offwakeflamegraph" in registry
    assert "nosuchtask" not in registry

    heatmap = registry.get("disklatencyheatmap")
    assert not heatmap.takes_argument
    assert not heatmap.artifact


def test_unknown_task_raises_invalid_key(registry: TaskRegistry) -> None:
    with pytest.raises(InvalidKey):
        registry.get("nosuchtask")


def test_build_command_appends_argument_only_when_taken(registry: TaskRegistry) -> None:
    scripts = Path("/opt/scripts")

    cpu = registry.get("cpuflamegraph")
    assert registry.build_command(cpu, scripts_dir=scripts, argument="30") == (
        "/opt/scripts/cpuflamegraph.sh",
        "30",
    )
    assert registry.build_command(cpu, scripts_dir=scripts) == ("/opt/scripts/cpuflamegraph.sh",)

    jstack = registry.get("jstackflamegraph")
    assert registry.build_command(jstack, scripts_dir=scripts, argument="30") == (
        "/opt/scripts/jstack.sh",
    )


def test_duplicate_names_are_refused() -> None:
    spec = TaskSpec("dup", ("{scripts_dir}/dup.sh",))
    with pytest.raises(ValueError):
        TaskRegistry([spec, spec])
