"""Workflow engine: classification, dependency analysis and scheduling."""
from __future__ import annotations

from docflow.flow.classifier import LEGACY_KINDS, Classifier, task_kind
from docflow.flow.config import FlowConfig
from docflow.flow.controller import Controller
from docflow.flow.cycles import check_acyclic, find_cycle
from docflow.flow.dependencies import build_graph, dependencies_of
from docflow.flow.errors import (
    ClassificationError,
    CyclicDependencyError,
    FlowError,
    IncompleteValueError,
    MergeError,
    RunnerNotFoundError,
    TaskConstructionError,
    TaskError,
    TaskExecutionError,
    TaskValidationError,
)
from docflow.flow.task import Task, TaskState

__all__ = [
    "ClassificationError",
    "Classifier",
    "Controller",
    "CyclicDependencyError",
    "FlowConfig",
    "FlowError",
    "IncompleteValueError",
    "LEGACY_KINDS",
    "MergeError",
    "RunnerNotFoundError",
    "Task",
    "TaskConstructionError",
    "TaskError",
    "TaskExecutionError",
    "TaskState",
    "TaskValidationError",
    "build_graph",
    "check_acyclic",
    "dependencies_of",
    "find_cycle",
    "task_kind",
]
