"""Runner contract for task kinds.

A task kind is implemented by a ``Runner`` subclass.  The engine
constructs one instance per task, passing the task's evaluated value,
and then calls ``run`` with an ``ExecContext`` once every dependency of
the task has completed.  Whatever mapping ``run`` returns is unified
into the document at the task's path.

Example
-------
::

    from docflow.tasks import Runner, RunnerRegistry

    registry = RunnerRegistry()

    @registry.register("example.Upper", template={"text": TypeOf("string")})
    class Upper(Runner):
        def run(self, ctx):
            return {"out": ctx.string("text").upper()}
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, TextIO

from docflow.document.nodes import TypeOf
from docflow.document.path import Path


class RunnerError(Exception):
    """Raised by runners to report a task failure."""


class TaskArgumentError(RunnerError):
    """A task field is missing, incomplete or of the wrong type."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


@dataclass
class ExecContext:
    """Everything a runner may use while executing one task.

    Parameters
    ----------
    path:
        Location of the task in the document.
    value:
        The task's evaluated value, unified with its kind's template.
    cancelled:
        Set once any task in the flow has failed.  Long-running runners
        may poll it to stop early.
    stdin, stdout, stderr:
        The host's standard streams.
    """

    path: Path
    value: Mapping[str, Any]
    cancelled: threading.Event = field(default_factory=threading.Event)
    stdin: TextIO | None = None
    stdout: TextIO | None = None
    stderr: TextIO | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()

    def has(self, name: str) -> bool:
        """Return True if the field exists and is not ``null``."""
        return self.value.get(name) is not None

    def lookup(self, name: str) -> Any:
        """Return a field, raising if it is absent or still a placeholder."""
        if name not in self.value:
            raise TaskArgumentError(self.path.child(name), "field not found")
        found = self.value[name]
        if isinstance(found, TypeOf):
            raise TaskArgumentError(self.path.child(name), f"incomplete value {found}")
        return found

    def string(self, name: str) -> str:
        found = self.lookup(name)
        if not isinstance(found, str):
            raise TaskArgumentError(
                self.path.child(name), f"invalid string argument {found!r}"
            )
        return found

    def integer(self, name: str) -> int:
        found = self.lookup(name)
        if isinstance(found, bool) or not isinstance(found, int):
            raise TaskArgumentError(
                self.path.child(name), f"invalid integer argument {found!r}"
            )
        return found

    def boolean(self, name: str, default: bool | None = None) -> bool:
        if default is not None and not self.has(name):
            return default
        found = self.lookup(name)
        if not isinstance(found, bool):
            raise TaskArgumentError(self.path.child(name), f"invalid bool argument {found!r}")
        return found


class Runner(ABC):
    """Base class for task kind implementations.

    Subclasses may override ``__init__`` to validate the task value up
    front; raising there is reported as a construction error for the
    task.  ``template`` is the shape every task of this kind is unified
    with before it is constructed.

    Parameters
    ----------
    value:
        The task's evaluated value at the time it is scheduled.
    """

    kind: ClassVar[str] = ""
    template: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, value: Mapping[str, Any]) -> None:
        self.value = value

    @abstractmethod
    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        """Execute the task and return fields to fill in, or ``None``."""
