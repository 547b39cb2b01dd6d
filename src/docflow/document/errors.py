"""Error types raised by the document model.

Every error carries the ``Path`` at which it was detected so that the
engine and the CLI can point at the offending field.
"""
from __future__ import annotations

from typing import Any

from docflow.document.path import Path


class DocumentError(Exception):
    """Base class for all document model errors."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class PathNotFoundError(DocumentError, KeyError):
    """Raised when a path does not exist in the document."""

    def __init__(self, path: Path) -> None:
        super().__init__("field not found", path)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return self.args[0]


class ConflictError(DocumentError):
    """Raised when unification meets two incompatible values.

    Parameters
    ----------
    path:
        Location of the conflict.
    left, right:
        The values that could not be unified.
    """

    def __init__(self, path: Path, left: Any, right: Any) -> None:
        self.left = left
        self.right = right
        super().__init__(
            f"conflicting values {_describe(left)} and {_describe(right)}", path
        )


class ReferenceCycleError(DocumentError):
    """Raised when resolving a reference leads back to itself."""

    def __init__(self, path: Path) -> None:
        super().__init__("reference cycle", path)


class LoadError(DocumentError):
    """Raised when a document source cannot be read or decoded."""


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        return "{...}"
    if isinstance(value, list):
        return "[...]"
    return str(value) if not isinstance(value, str) else repr(value)
