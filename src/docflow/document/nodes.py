"""Non-concrete leaf nodes of a document tree.

A document is built from plain Python data (``dict``, ``list``, ``str``,
``int``, ``float``, ``bool``, ``bytes``, ``None``) plus the three node
types defined here:

``Ref``
    A reference to another absolute path in the same document.
``TypeOf``
    A type placeholder such as ``string``.  It is refined to a concrete
    value by unification, for example when a task fills in its output.
``Interp``
    A string containing ``${a.b.c}`` reference holes.

Every node is a frozen dataclass so that document trees can be shared
between snapshots without copying.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from docflow.document.path import Path

# ---------------------------------------------------------------------------
# Type placeholders
# ---------------------------------------------------------------------------

TYPE_NAMES: frozenset[str] = frozenset(
    {"string", "int", "float", "number", "bool", "bytes", "list", "struct", "any"}
)

# Narrower type produced when two placeholders meet, keyed by unordered pair.
_NARROWING: dict[frozenset[str], str] = {
    frozenset({"number", "int"}): "int",
    frozenset({"number", "float"}): "float",
}


@dataclass(frozen=True, slots=True)
class TypeOf:
    """A placeholder standing for any value of the named type.

    Parameters
    ----------
    name:
        One of ``TYPE_NAMES``.  ``any`` accepts every value.
    """

    name: str

    def __post_init__(self) -> None:
        if self.name not in TYPE_NAMES:
            raise ValueError(
                f"Unknown type {self.name!r}; expected one of {sorted(TYPE_NAMES)}"
            )

    def accepts(self, value: Any) -> bool:
        """Return True if the concrete ``value`` is an instance of this type."""
        if self.name == "any":
            return True
        if isinstance(value, bool):
            return self.name == "bool"
        if self.name == "string":
            return isinstance(value, str)
        if self.name == "int":
            return isinstance(value, int)
        if self.name == "float":
            return isinstance(value, float)
        if self.name == "number":
            return isinstance(value, (int, float))
        if self.name == "bytes":
            return isinstance(value, bytes)
        if self.name == "list":
            return isinstance(value, list)
        if self.name == "struct":
            return isinstance(value, dict)
        return False

    def meet(self, other: "TypeOf") -> "TypeOf | None":
        """Return the narrower of two placeholders, or None if disjoint."""
        if self.name == other.name or other.name == "any":
            return self
        if self.name == "any":
            return other
        narrowed = _NARROWING.get(frozenset({self.name, other.name}))
        return TypeOf(narrowed) if narrowed else None

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ref:
    """A reference to the value at another absolute path."""

    path: Path

    @classmethod
    def to(cls, path: "Path | str") -> "Ref":
        return cls(Path.of(path))

    def __str__(self) -> str:
        return f"ref({self.path})"


_HOLE = re.compile(r"\$\{\s*([^}\s]+)\s*\}")


@dataclass(frozen=True, slots=True)
class Interp:
    """A string template with ``${path}`` holes referring to other values.

    Parameters
    ----------
    template:
        The raw template text, e.g. ``"Hello ${command.ask.response}!"``.
    """

    template: str

    @property
    def refs(self) -> tuple[Path, ...]:
        """Return the referenced paths in order of appearance."""
        return tuple(Path.parse(m.group(1)) for m in _HOLE.finditer(self.template))

    def render(self, values: dict[Path, Any]) -> str:
        """Substitute each hole with the formatted value from ``values``."""
        return _HOLE.sub(lambda m: format_scalar(values[Path.parse(m.group(1))]), self.template)

    def __str__(self) -> str:
        return f"interp({self.template!r})"


def format_scalar(value: Any) -> str:
    """Render a concrete value the way interpolation embeds it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


Node = Any
