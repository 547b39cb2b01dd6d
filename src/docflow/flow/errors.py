"""Errors raised by the workflow engine.

The taxonomy mirrors when an error is detected:

``ClassificationError``
    Before scheduling: a node could not be turned into a task.
    ``RunnerNotFoundError`` and ``TaskValidationError`` refine it.
``CyclicDependencyError``
    Before scheduling: the task graph contains a cycle.
``TaskError``
    During the run: a specific task failed.  ``TaskConstructionError``,
    ``TaskExecutionError``, ``IncompleteValueError`` and ``MergeError``
    refine it.

Every engine error derives from ``FlowError`` so hosts can catch the
whole family with one clause.
"""
from __future__ import annotations

from collections.abc import Sequence

from docflow.document.path import Path


class FlowError(Exception):
    """Base class for all workflow engine errors."""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class ClassificationError(FlowError):
    """A node could not be classified as a valid task."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class RunnerNotFoundError(ClassificationError, LookupError):
    """The task names a kind that no runner is registered for."""

    def __init__(self, kind: str, path: Path | None = None) -> None:
        self.kind = kind
        super().__init__(path or Path(), f'runner of kind "{kind}" not found')


class TaskValidationError(ClassificationError):
    """The task value does not match its kind's template."""

    def __init__(self, path: Path, kind: str, cause: Exception) -> None:
        self.kind = kind
        self.cause = cause
        super().__init__(path, f"invalid {kind} task: {cause}")


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class CyclicDependencyError(FlowError):
    """The dependency graph contains a cycle.

    Parameters
    ----------
    cycle:
        The task paths along the cycle, first and last equal.
    """

    def __init__(self, cycle: Sequence[object]) -> None:
        self.cycle = tuple(cycle)
        rendered = " -> ".join(str(p) for p in self.cycle)
        super().__init__(f"cyclic dependency in tasks: {rendered}")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TaskError(FlowError):
    """A specific task failed while the flow was running."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class TaskConstructionError(TaskError):
    """The runner for a task could not be constructed."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.cause = cause
        super().__init__(path, f"error creating runner: {cause}")


class TaskExecutionError(TaskError):
    """The runner for a task raised."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.cause = cause
        super().__init__(path, str(cause) or type(cause).__name__)


class IncompleteValueError(TaskError):
    """A task was about to run with references that are still incomplete."""

    def __init__(self, path: Path, incomplete: Sequence[Path]) -> None:
        self.incomplete = tuple(incomplete)
        listed = ", ".join(str(p) for p in self.incomplete)
        super().__init__(path, f"incomplete value for {listed}")


class MergeError(TaskError):
    """A task's result could not be unified into the document."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.cause = cause
        super().__init__(path, f"cannot merge result: {cause}")
