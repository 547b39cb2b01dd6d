"""Paths into a document tree.

A ``Path`` is an immutable tuple of selectors.  String selectors address
mapping fields and integer selectors address list elements.  Paths render
as dotted strings (``command.hello.print``) and parse back from them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

Selector = Union[str, int]


@dataclass(frozen=True, slots=True)
class Path:
    """An absolute location within a document.

    Parameters
    ----------
    selectors:
        Field names and list indices, outermost first.
    """

    selectors: tuple[Selector, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "Path":
        """Parse a dotted path such as ``"command.hello.0.text"``.

        Segments consisting only of digits are list indices.  The empty
        string parses to the root path.
        """
        text = text.strip()
        if not text:
            return cls()
        selectors: list[Selector] = []
        for segment in text.split("."):
            if not segment:
                raise ValueError(f"Invalid path {text!r}: empty selector")
            selectors.append(int(segment) if segment.isdigit() else segment)
        return cls(tuple(selectors))

    @classmethod
    def of(cls, value: "Path | str | tuple[Selector, ...]") -> "Path":
        """Coerce a ``Path``, dotted string, or selector tuple into a ``Path``."""
        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return cls(tuple(value))

    def child(self, selector: Selector) -> "Path":
        """Return the path one level below this one."""
        return Path(self.selectors + (selector,))

    @property
    def parent(self) -> "Path":
        """Return the enclosing path; the root is its own parent."""
        return Path(self.selectors[:-1])

    @property
    def name(self) -> str:
        """Return the last selector as a string (empty for the root)."""
        return str(self.selectors[-1]) if self.selectors else ""

    @property
    def is_root(self) -> bool:
        return not self.selectors

    def is_prefix_of(self, other: "Path") -> bool:
        """Return True if ``other`` equals this path or lies beneath it."""
        n = len(self.selectors)
        return other.selectors[:n] == self.selectors

    def relative_to(self, prefix: "Path") -> "Path":
        """Return this path with ``prefix`` stripped from the front."""
        if not prefix.is_prefix_of(self):
            raise ValueError(f"{self} is not beneath {prefix}")
        return Path(self.selectors[len(prefix.selectors):])

    def __len__(self) -> int:
        return len(self.selectors)

    def __iter__(self) -> Iterator[Selector]:
        return iter(self.selectors)

    def __str__(self) -> str:
        return ".".join(str(s) for s in self.selectors)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"


ROOT = Path()
