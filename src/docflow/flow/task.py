"""Task records tracked by the scheduler."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from docflow.document.path import Path

if TYPE_CHECKING:
    from docflow.tasks.registry import RegistryEntry


class TaskState(Enum):
    """Lifecycle of a task within one run.

    PENDING
        Classified, thread not yet started.
    WAITING
        Blocked on the completion signals of its dependencies.
    RUNNING
        Its runner has been invoked.
    DONE
        Finished; ``Task.error`` tells success from failure.
    CANCELLED
        Exited without running because another task failed.
    """

    PENDING = auto()
    WAITING = auto()
    RUNNING = auto()
    DONE = auto()
    CANCELLED = auto()


@dataclass(eq=False)
class Task:
    """One unit of work discovered in the document.

    Tasks compare and hash by identity.

    Parameters
    ----------
    index:
        Position in discovery order, used for deterministic output.
    path:
        Location of the task in the document.
    kind:
        Canonical kind identifier.
    entry:
        The registry entry used to construct the runner.
    """

    index: int
    path: Path
    kind: str
    entry: "RegistryEntry"
    deps: list["Task"] = field(default_factory=list)
    done: threading.Event = field(default_factory=threading.Event, repr=False)
    state: TaskState = TaskState.PENDING
    error: Exception | None = None
    result: Any = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def failed(self) -> bool:
        return self.error is not None

    def __repr__(self) -> str:
        return f"Task({str(self.path)!r}, kind={self.kind!r}, state={self.state.name})"
