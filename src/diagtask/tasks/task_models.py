# src/diagtask/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum


class StatusKeyword(StrEnum):
    """
    Keywords a status record (or a fetch reply) may carry.

    Notes:
    - "REQUESTED" is written by the dispatcher as a provisional reservation.
    - "UNKNOWN" is never written; it is what an empty/unreadable record reads as.
    - "IDLE" is never written; it is what fetch returns when no record exists.
    """

    IDLE = "IDLE"
    REQUESTED = "REQUESTED"
    UNKNOWN = "UNKNOWN"
    DONE = "DONE"
    ERROR = "ERROR"


class RecordKind(str, Enum):
    DONE = "done"  # bare "DONE"
    DONE_WITH_ARG = "done_with_arg"  # "DONE <arg>"
    ERROR = "error"  # "ERROR" / "ERROR <message>"
    PROGRESS = "progress"  # anything else, "REQUESTED" and "UNKNOWN" included


def classify(content: str) -> RecordKind:
    """Sort a record's (newline-stripped) content into one of the recognized forms."""
    if content == StatusKeyword.DONE:
        return RecordKind.DONE
    if content.startswith(StatusKeyword.DONE + " "):
        return RecordKind.DONE_WITH_ARG
    if content.startswith(StatusKeyword.ERROR):
        return RecordKind.ERROR
    return RecordKind.PROGRESS


def is_terminal(content: str) -> bool:
    return classify(content) is not RecordKind.PROGRESS


@dataclass(frozen=True, slots=True)
class TaskSpec:
    """
    One entry of the task catalog.

    name:            storage key component and worker command stem
    command:         argv template; "{scripts_dir}" and "{name}" are expanded at launch
    takes_argument:  whether a validated argument is appended to the command
    artifact:        when True a bare "DONE" is answered with the artifact path
                     "<name>/<name>.<session><suffix>"; otherwise returned verbatim
    description:     one-line help text
    """

    name: str
    command: tuple[str, ...]
    takes_argument: bool = False
    artifact: bool = False
    description: str = ""


class TaskError(Exception):
    """Base class for rejected store/fetch requests."""


class InvalidKey(TaskError):
    def __init__(self, task: str) -> None:
        super().__init__(f"unknown task type: {task!r}")
        self.task = task


class InvalidArgument(TaskError):
    def __init__(self, argument: str) -> None:
        super().__init__(f"argument must be decimal digits only: {argument!r}")
        self.argument = argument


class Busy(TaskError):
    """A non-terminal run already occupies the (task, session) key. Retry later."""

    def __init__(self, task: str, session_id: int, status: str) -> None:
        super().__init__(f"{task} is busy for session {session_id}: {status}")
        self.task = task
        self.session_id = session_id
        self.status = status


class KeyLocked(Exception):
    """Another store/fetch is deciding the same (task, session) key right now."""

    def __init__(self, task: str, session_id: int) -> None:
        super().__init__(f"{task}.{session_id} is locked")
        self.task = task
        self.session_id = session_id


@dataclass(frozen=True, slots=True)
class LaunchError:
    """Submission failure of a worker; never describes the worker's own outcome."""

    command: tuple[str, ...]
    reason: str
