# src/diagtask/tasks/task_registry.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .task_models import InvalidKey, TaskSpec

logger = logging.getLogger(__name__)

_SCRIPT = ("{scripts_dir}/{name}.sh",)

DEFAULT_TASKS: tuple[TaskSpec, ...] = (
    TaskSpec(
        "cpuflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Profile CPU stack traces and create a flame graph.",
    ),
    TaskSpec(
        "disklatencyheatmap",
        ("{scripts_dir}/heatmap.sh",),
        description="Collect block layer latency and display it as a heat map.",
    ),
    TaskSpec(
        "jstackflamegraph",
        ("{scripts_dir}/jstack.sh",),
        description="Process java stacks using jstack and display them as a flame graph.",
    ),
    TaskSpec(
        "pnamecpuflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Profile CPU instruction pointers and create a package name flame graph.",
    ),
    TaskSpec(
        "uninlinedcpuflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Profile CPU stack traces with some uninlining for a flame graph.",
    ),
    TaskSpec(
        "pagefaultflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Trace page faults with stacks and create a flame graph.",
    ),
    TaskSpec(
        "diskioflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Trace disk I/O with stacks and create a flame graph.",
    ),
    TaskSpec(
        "ipcflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Profile cycles and instructions for an IPC flame graph (needs PMCs).",
    ),
    TaskSpec(
        "cswflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Trace context switches with stacks and create a flame graph.",
    ),
    TaskSpec(
        "offcpuflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Trace scheduler events and create an off-CPU time flame graph.",
    ),
    TaskSpec(
        "offwakeflamegraph",
        _SCRIPT,
        takes_argument=True,
        artifact=True,
        description="Trace scheduler events and create an off-wake time flame graph.",
    ),
)


class TaskRegistry:
    """Read-only catalog of task types, keyed by name."""

    def __init__(self, specs: Iterable[TaskSpec] = DEFAULT_TASKS) -> None:
        self._specs: dict[str, TaskSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"duplicate task type: {spec.name}")
            self._specs[spec.name] = spec
        logger.debug("TaskRegistry ready tasks=%s", len(self._specs))

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[TaskSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def names(self) -> list[str]:
        return list(self._specs)

    def get(self, name: str) -> TaskSpec:
        """Return the spec for `name` or raise InvalidKey."""
        try:
            return self._specs[name]
        except KeyError:
            raise InvalidKey(name) from None

    @staticmethod
    def build_command(
        spec: TaskSpec, *, scripts_dir: str | Path, argument: str = ""
    ) -> tuple[str, ...]:
        """Expand the spec's command template; the argument is appended only if the task takes one."""
        argv = tuple(part.format(scripts_dir=scripts_dir, name=spec.name) for part in spec.command)
        if spec.takes_argument and argument:
            argv += (argument,)
        return argv
