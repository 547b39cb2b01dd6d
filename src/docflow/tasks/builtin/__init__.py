"""Built-in task kinds.

``default_registry`` returns a new registry holding every built-in kind.
Hosts that want plugin kinds as well call ``load_entrypoints`` on it.
"""
from __future__ import annotations

from docflow.tasks.base import Runner
from docflow.tasks.builtin.cli import Ask, Print
from docflow.tasks.builtin.exec import Run
from docflow.tasks.builtin.file import Append
from docflow.tasks.builtin.http import Do
from docflow.tasks.builtin.testing import Echo
from docflow.tasks.registry import RunnerRegistry

BUILTIN_RUNNERS: tuple[type[Runner], ...] = (Print, Ask, Run, Append, Do, Echo)


def register_builtins(registry: RunnerRegistry) -> RunnerRegistry:
    """Register every built-in kind on ``registry`` and return it."""
    for cls in BUILTIN_RUNNERS:
        registry.register_class(cls.kind, cls)
    return registry


def default_registry() -> RunnerRegistry:
    """Return a fresh registry populated with the built-in kinds."""
    return register_builtins(RunnerRegistry())


__all__ = [
    "Append",
    "Ask",
    "BUILTIN_RUNNERS",
    "Do",
    "Echo",
    "Print",
    "Run",
    "default_registry",
    "register_builtins",
]
