"""Cycle detection for dependency graphs."""
from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from typing import TypeVar

from docflow.flow.errors import CyclicDependencyError

N = TypeVar("N", bound=Hashable)


def find_cycle(graph: Mapping[N, Iterable[N]]) -> list[N] | None:
    """Return one cycle in ``graph``, or None if it is acyclic.

    Depth-first search with visited and on-stack marking.  Nodes that only
    appear as edge targets are treated as having no outgoing edges.

    Returns
    -------
    list | None
        The nodes along the cycle with the first node repeated at the end,
        e.g. ``[a, b, a]``.
    """
    visited: set[N] = set()
    on_stack: set[N] = set()
    stack: list[N] = []

    def visit(node: N) -> list[N] | None:
        visited.add(node)
        on_stack.add(node)
        stack.append(node)
        for dep in graph.get(node, ()):
            if dep in on_stack:
                return stack[stack.index(dep):] + [dep]
            if dep not in visited:
                cycle = visit(dep)
                if cycle is not None:
                    return cycle
        on_stack.discard(node)
        stack.pop()
        return None

    for node in graph:
        if node not in visited:
            cycle = visit(node)
            if cycle is not None:
                return cycle
    return None


def check_acyclic(graph: Mapping[N, Iterable[N]], label: Callable[[N], object] = str) -> None:
    """Raise ``CyclicDependencyError`` if ``graph`` contains a cycle.

    Parameters
    ----------
    graph:
        Adjacency map ``node -> nodes it depends on``.
    label:
        Maps a node to what the error reports for it.
    """
    cycle = find_cycle(graph)
    if cycle is not None:
        raise CyclicDependencyError([label(node) for node in cycle])  # type: ignore[misc]
