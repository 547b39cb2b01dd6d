"""Task kinds: the runner contract, the registry and the built-ins."""
from __future__ import annotations

from docflow.tasks.base import ExecContext, Runner, RunnerError, TaskArgumentError
from docflow.tasks.registry import (
    ENTRYPOINT_GROUP,
    RegistryEntry,
    RunnerAlreadyRegisteredError,
    RunnerRegistry,
)
from docflow.tasks.builtin import default_registry, register_builtins

__all__ = [
    "ENTRYPOINT_GROUP",
    "ExecContext",
    "RegistryEntry",
    "Runner",
    "RunnerAlreadyRegisteredError",
    "RunnerError",
    "RunnerRegistry",
    "TaskArgumentError",
    "default_registry",
    "register_builtins",
]
