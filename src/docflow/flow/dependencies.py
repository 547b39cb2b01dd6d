"""Dependency analysis over the references between tasks.

Task A depends on task B when A's subtree contains a reference into B's
subtree whose value is not concrete yet.  References to data that is
already concrete need no ordering and are ignored, as are references
from a task into itself.  References listed in a task's ``$after``
field always create an edge, whether or not the target is concrete.

The rule is applied once, against the document as it is when the flow
starts.  A reference whose target becomes concrete only because an
unrelated task filled it is still an edge.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from docflow.document.document import Document
from docflow.document.errors import DocumentError
from docflow.document.path import Path
from docflow.flow.classifier import AFTER_FIELD
from docflow.flow.errors import ClassificationError
from docflow.flow.task import Task

logger = logging.getLogger(__name__)

Graph = dict[Task, list[Task]]


def owner_of(path: Path, tasks: Sequence[Task]) -> Task | None:
    """Return the innermost task whose subtree contains ``path``."""
    best: Task | None = None
    for task in tasks:
        if task.path.is_prefix_of(path) and (best is None or len(task.path) > len(best.path)):
            best = task
    return best


def _targets(document: Document, ref: Path, tasks: Sequence[Task]) -> list[Task]:
    """Return the tasks a reference may read from: as written and as resolved."""
    found: list[Task] = []
    candidates = [ref]
    try:
        canonical = document.canonical_path(ref)
    except DocumentError:
        canonical = ref
    if canonical != ref:
        candidates.append(canonical)
    for candidate in candidates:
        owner = owner_of(candidate, tasks)
        if owner is not None and owner not in found:
            found.append(owner)
    return found


def dependencies_of(document: Document, task: Task, tasks: Sequence[Task]) -> list[Task]:
    """Return the tasks ``task`` must wait for, in first-reference order.

    Raises
    ------
    ClassificationError
        If an ``$after`` entry does not refer to a task.
    """
    deps: dict[Task, None] = {}

    for ref in document.references(task.path):
        if document.is_concrete(ref):
            continue
        for dep in _targets(document, ref, tasks):
            if dep is not task:
                deps.setdefault(dep, None)

    after = task.path.child(AFTER_FIELD)
    if document.exists(after):
        refs = document.references(after)
        if not refs:
            raise ClassificationError(after, "must reference one or more tasks")
        for ref in refs:
            targets = [dep for dep in _targets(document, ref, tasks) if dep is not task]
            if not targets:
                raise ClassificationError(after, f"{ref} does not refer to a task")
            for dep in targets:
                deps.setdefault(dep, None)

    return list(deps)


def build_graph(document: Document, tasks: Sequence[Task]) -> Graph:
    """Compute the dependencies of every task.

    Each task's ``deps`` list is updated in place and the same lists are
    returned as an adjacency map ``task -> [tasks it depends on]``.  The
    result only depends on the document and the order of ``tasks``.
    """
    graph: Graph = {}
    for task in tasks:
        task.deps = dependencies_of(document, task, tasks)
        graph[task] = task.deps
        if task.deps:
            logger.debug(
                "Task %s depends on %s", task.path, ", ".join(str(d.path) for d in task.deps)
            )
    return graph
