"""docflow — workflow task engine for declarative command documents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import docflow

    doc = docflow.load_string('''
    command:
      hello:
        ask:
          $id: tool/cli.Ask
          prompt: What is your name?
          response: !string
        greet:
          $id: tool/cli.Print
          text: !interp "Hello ${command.hello.ask.response}!"
    ''')

    # List the tasks and what each waits for
    graph = docflow.plan(doc, "command.hello")

    # Run the command; returns the document with every result filled in
    final = docflow.run(doc, "command.hello")

    docflow.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from docflow.document.document import Document
    from docflow.flow.task import Task
    from docflow.tasks.registry import RunnerRegistry


def load(path: str) -> "Document":
    """Load a YAML or JSON document from ``path``.

    Raises
    ------
    docflow.document.LoadError
        If the file cannot be read or parsed.
    """
    from docflow.document.loader import load as _load

    return _load(path)


def load_string(text: str) -> "Document":
    """Parse a YAML or JSON document from ``text``."""
    from docflow.document.loader import load_string as _load_string

    return _load_string(text)


def plan(
    document: "Document",
    root: str,
    registry: "RunnerRegistry | None" = None,
    infer_tasks: bool = False,
) -> dict["Task", list["Task"]]:
    """Classify the tasks under ``root`` and return their dependency map.

    Raises
    ------
    docflow.flow.ClassificationError
        If a task is malformed or names an unknown kind.
    docflow.flow.CyclicDependencyError
        If the tasks depend on each other in a cycle.
    """
    from docflow.flow import Controller, FlowConfig

    config = FlowConfig(root=root, infer_tasks=infer_tasks)
    return Controller(document, registry, config).graph()


def run(
    document: "Document",
    root: str,
    registry: "RunnerRegistry | None" = None,
    infer_tasks: bool = False,
    tolerate_incomplete: bool = False,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> "Document":
    """Run the tasks of the command at ``root`` and return the final document.

    Parameters
    ----------
    document:
        The document holding the command.
    root:
        Dotted path of the command, e.g. ``"command.hello"``.
    registry:
        Task kinds to use.  Defaults to the built-in kinds.
    infer_tasks:
        Search the whole command subtree for tasks instead of only its
        direct children.
    tolerate_incomplete:
        Run tasks even if values they reference are still incomplete.
    stdin, stdout, stderr:
        Streams handed to the runners.

    Raises
    ------
    docflow.flow.FlowError
        The first error of the run.
    """
    from docflow.flow import Controller, FlowConfig

    config = FlowConfig(
        root=root, infer_tasks=infer_tasks, tolerate_incomplete=tolerate_incomplete
    )
    controller = Controller(
        document, registry, config, stdin=stdin, stdout=stdout, stderr=stderr
    )
    return controller.run()


def default_registry() -> "RunnerRegistry":
    """Return a new registry holding the built-in task kinds."""
    from docflow.tasks.builtin import default_registry as _default_registry

    return _default_registry()


__all__ = [
    "__version__",
    "default_registry",
    "load",
    "load_string",
    "plan",
    "run",
]
