"""The flow controller: runs the tasks of one command concurrently.

``Controller.run`` performs the whole pipeline:

1. classify the tasks below the configured root,
2. build the dependency graph and reject cycles,
3. start one thread per task; each waits for the completion signals of
   its dependencies, reads its input from the live document, runs its
   runner without holding the document lock, and fills the result back,
4. wait for every thread and raise the first error, if any.

The first failing task sets the shared cancellation event.  Tasks that
have not started yet exit without running; tasks already running finish
but their results are not merged.

Usage
-----
::

    from docflow import load
    from docflow.flow import Controller, FlowConfig

    doc = load("hello.yaml")
    controller = Controller(doc, config=FlowConfig(root="command.hello"))
    final = controller.run()
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TextIO

from docflow.document.document import Document
from docflow.document.errors import ConflictError, DocumentError
from docflow.document.path import Path
from docflow.document.unify import unify
from docflow.flow.classifier import AFTER_FIELD, Classifier
from docflow.flow.config import FlowConfig
from docflow.flow.cycles import check_acyclic
from docflow.flow.dependencies import Graph, build_graph
from docflow.flow.errors import (
    FlowError,
    IncompleteValueError,
    MergeError,
    TaskConstructionError,
    TaskExecutionError,
)
from docflow.flow.task import Task, TaskState
from docflow.tasks.base import ExecContext

if TYPE_CHECKING:
    from docflow.tasks.registry import RunnerRegistry

logger = logging.getLogger(__name__)

UpdateFunc = Callable[["Controller", Task], None]


class Controller:
    """Coordinates one run of a command's tasks.

    A controller runs at most once; build a new one for every run.

    Parameters
    ----------
    document:
        The evaluated document holding the command.
    registry:
        Task kinds available to the flow.  Defaults to the built-in kinds.
    config:
        Command root and discovery switches.
    stdin, stdout, stderr:
        Streams handed to runners.  ``None`` means the process streams.
    on_update:
        Called with ``(controller, task)`` whenever a task reaches a final
        state.  An exception raised by the callback fails the flow.
    """

    def __init__(
        self,
        document: Document,
        registry: "RunnerRegistry | None" = None,
        config: FlowConfig | None = None,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        on_update: UpdateFunc | None = None,
    ) -> None:
        if registry is None:
            from docflow.tasks.builtin import default_registry

            registry = default_registry()
        self._document = document
        self._registry = registry
        self._config = config or FlowConfig()
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._on_update = on_update

        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._error: FlowError | None = None
        self._tasks: list[Task] | None = None
        self._graph: Graph | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> FlowConfig:
        return self._config

    @property
    def document(self) -> Document:
        """The current document, including results merged so far."""
        with self._lock:
            return self._document

    @property
    def error(self) -> FlowError | None:
        """The first error recorded during the run, if any."""
        return self._error

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def tasks(self) -> list[Task]:
        """Return the tasks of the command in discovery order.

        Classification happens on the first call only.

        Raises
        ------
        ClassificationError
            If a task is malformed or names an unknown kind.
        """
        if self._tasks is None:
            self._tasks = Classifier(self._registry, self._config).classify(self._document)
        return list(self._tasks)

    def graph(self) -> Graph:
        """Return the dependency map ``task -> [tasks it waits for]``.

        Raises
        ------
        ClassificationError
            As for ``tasks``, or if an ``$after`` entry is invalid.
        CyclicDependencyError
            If the tasks depend on each other in a cycle.
        """
        if self._graph is None:
            graph = build_graph(self._document, self.tasks())
            check_acyclic(graph, label=lambda task: task.path)
            self._graph = graph
        return dict(self._graph)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self) -> Document:
        """Run every task and return the final document.

        Raises
        ------
        FlowError
            The first error of the run: a classification or cycle error
            before anything starts, or the first task failure.
        RuntimeError
            If this controller has already been run.
        """
        if self._started:
            raise RuntimeError("a Controller can only be run once")
        self._started = True

        self.graph()
        tasks = self.tasks()
        logger.info("Running %d task(s) under %s", len(tasks), self._config.root or "<root>")

        threads = [
            threading.Thread(
                target=self._run_task, args=(task,), name=f"docflow:{task.path}", daemon=True
            )
            for task in tasks
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if self._error is not None:
            raise self._error
        return self.document

    def _run_task(self, task: Task) -> None:
        try:
            self._execute(task)
        except FlowError as exc:
            task.error = exc
            task.state = TaskState.DONE
            self._fail(exc)
        except Exception as exc:  # noqa: BLE001
            error = TaskExecutionError(task.path, exc)
            error.__cause__ = exc
            task.error = error
            task.state = TaskState.DONE
            self._fail(error)
        finally:
            self._notify(task)
            task.done.set()

    def _execute(self, task: Task) -> None:
        task.state = TaskState.WAITING
        for dep in task.deps:
            dep.done.wait()

        with self._lock:
            if self._cancelled.is_set():
                task.state = TaskState.CANCELLED
                logger.debug("Task %s cancelled before start", task.path)
                return
            value = self._input(task)
            task.state = TaskState.RUNNING

        logger.info("Task %s (%s) started", task.path, task.kind)
        try:
            runner = task.entry.create(value)
        except Exception as exc:  # noqa: BLE001
            raise TaskConstructionError(task.path, exc) from exc

        ctx = ExecContext(
            path=task.path,
            value=value,
            cancelled=self._cancelled,
            stdin=self._stdin,
            stdout=self._stdout,
            stderr=self._stderr,
        )
        try:
            result = runner.run(ctx)
        except Exception as exc:  # noqa: BLE001
            raise TaskExecutionError(task.path, exc) from exc

        if result is not None and not isinstance(result, Mapping):
            raise TaskExecutionError(
                task.path, TypeError(f"runner returned {type(result).__name__}, not a mapping")
            )

        with self._lock:
            if self._cancelled.is_set():
                logger.warning("Discarding result of %s: flow was cancelled", task.path)
                task.state = TaskState.DONE
                return
            if result:
                try:
                    self._document = self._document.fill(task.path, result)
                except DocumentError as exc:
                    raise MergeError(task.path, exc) from exc
            task.result = result
            task.state = TaskState.DONE
        logger.info("Task %s finished", task.path)

    def _input(self, task: Task) -> Mapping[str, Any]:
        """Read the task's value from the live document.  Caller holds the lock."""
        doc = self._document
        try:
            value = unify(doc.evaluate(task.path), task.entry.template, task.path)
        except (ConflictError, DocumentError) as exc:
            raise TaskExecutionError(task.path, exc) from exc

        if not self._config.tolerate_incomplete:
            incomplete = self._incomplete_refs(doc, task)
            if incomplete:
                raise IncompleteValueError(task.path, incomplete)
        return value

    @staticmethod
    def _incomplete_refs(doc: Document, task: Task) -> list[Path]:
        after = task.path.child(AFTER_FIELD)
        ordering = set(doc.references(after)) if doc.exists(after) else set()
        return [
            ref
            for ref in doc.references(task.path)
            if ref not in ordering
            and not task.path.is_prefix_of(ref)
            and not doc.is_concrete(ref)
        ]

    def _fail(self, error: FlowError) -> None:
        with self._lock:
            if self._error is None:
                self._error = error
                logger.warning("Cancelling flow: %s", error)
        self._cancelled.set()

    def _notify(self, task: Task) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self, task)
        except Exception as exc:  # noqa: BLE001
            self._fail(TaskExecutionError(task.path, exc))
