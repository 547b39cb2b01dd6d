"""Task classification: which document nodes are tasks, and of what kind.

A struct is a task when it carries a kind discriminator:

``$id``
    The canonical kind identifier, e.g. ``"tool/exec.Run"``.  It must be
    a concrete string.
``kind``
    The legacy discriminator.  Its value is translated through
    ``LEGACY_KINDS``.

Scalars and lists are never tasks, nor is the command root itself.  A
struct without a discriminator is ordinary data, not an error.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from docflow.document.document import Document
from docflow.document.errors import ConflictError, DocumentError
from docflow.document.nodes import Ref
from docflow.document.path import Path
from docflow.document.unify import unify
from docflow.flow.config import FlowConfig
from docflow.flow.errors import ClassificationError, RunnerNotFoundError, TaskValidationError
from docflow.flow.task import Task

if TYPE_CHECKING:
    from docflow.tasks.registry import RunnerRegistry

logger = logging.getLogger(__name__)

ID_FIELD = "$id"
LEGACY_FIELD = "kind"
AFTER_FIELD = "$after"

# Historical short names, kept so that older command files keep working.
LEGACY_KINDS: Mapping[str, str] = {
    "print": "tool/cli.Print",
    "ask": "tool/cli.Ask",
    "exec": "tool/exec.Run",
    "append": "tool/file.Append",
    "http": "tool/http.Do",
    "testserver": "docflow/testing.Echo",
}


def task_kind(node: Any, path: Path, *, passthrough_legacy: bool = False) -> str | None:
    """Return the kind identifier ``node`` declares, or None if it is not a task.

    Parameters
    ----------
    node:
        A resolved document node.
    path:
        Location of ``node``, for error messages.
    passthrough_legacy:
        If ``True`` a legacy ``kind`` string outside ``LEGACY_KINDS`` is
        returned verbatim instead of being ignored.

    Raises
    ------
    ClassificationError
        If ``$id`` is present but not a concrete string.
    """
    if not isinstance(node, Mapping):
        return None
    if ID_FIELD in node:
        kind = node[ID_FIELD]
        if not isinstance(kind, str) or not kind:
            raise ClassificationError(path, f"{ID_FIELD} must be a non-empty string, got {kind!r}")
        return kind
    legacy = node.get(LEGACY_FIELD)
    if isinstance(legacy, str):
        if legacy in LEGACY_KINDS:
            return LEGACY_KINDS[legacy]
        if passthrough_legacy:
            return legacy
    return None


class Classifier:
    """Discovers the tasks below a command root.

    Parameters
    ----------
    registry:
        Source of runner entries for each kind.
    config:
        Selects the command root and the discovery mode.
    """

    def __init__(self, registry: "RunnerRegistry", config: FlowConfig) -> None:
        self._registry = registry
        self._config = config

    def classify(self, document: Document) -> list[Task]:
        """Return every task below the configured root, in document order.

        Raises
        ------
        ClassificationError
            If the root is missing or not a struct, a discriminator is
            malformed, or a task fails its template.
        RunnerNotFoundError
            If a task names an unregistered kind.
        """
        root = self._config.root
        try:
            node = document.resolve(root)
        except DocumentError as exc:
            raise ClassificationError(root, f"command not found: {exc.message}") from exc
        if not isinstance(node, Mapping):
            raise ClassificationError(root, "command must be a struct")

        tasks: list[Task] = []
        for path, kind in self._candidates(document, root, node):
            tasks.append(self._make_task(document, len(tasks), path, kind))
        logger.debug("Classified %d task(s) under %s", len(tasks), root)
        return tasks

    def _candidates(
        self, document: Document, root: Path, node: Mapping[str, Any]
    ) -> Iterator[tuple[Path, str]]:
        if not self._config.infer_tasks:
            for name in node:
                path = root.child(name)
                try:
                    child = document.resolve(path)
                except DocumentError as exc:
                    raise ClassificationError(path, exc.message) from exc
                kind = task_kind(child, path, passthrough_legacy=True)
                if kind is not None:
                    yield path, kind
            return
        yield from self._walk(node, root)

    def _walk(self, node: Any, path: Path) -> Iterator[tuple[Path, str]]:
        # References are not followed, so a task is found once, where it is defined.
        if isinstance(node, Ref):
            return
        if isinstance(node, Mapping):
            for name, child in node.items():
                child_path = path.child(name)
                kind = task_kind(child, child_path)
                if kind is not None:
                    yield child_path, kind
                else:
                    yield from self._walk(child, child_path)
        elif isinstance(node, list):
            for i, child in enumerate(node):
                child_path = path.child(i)
                kind = task_kind(child, child_path)
                if kind is not None:
                    yield child_path, kind
                else:
                    yield from self._walk(child, child_path)

    def _make_task(self, document: Document, index: int, path: Path, kind: str) -> Task:
        entry = self._registry.lookup(kind)
        if entry is None:
            raise RunnerNotFoundError(kind, path)
        try:
            unify(document.evaluate(path), entry.template, path)
        except ConflictError as exc:
            raise TaskValidationError(path, kind, exc) from exc
        except DocumentError as exc:
            raise ClassificationError(path, exc.message) from exc
        logger.debug("Task %s is of kind %s", path, kind)
        return Task(index=index, path=path, kind=kind, entry=entry)
