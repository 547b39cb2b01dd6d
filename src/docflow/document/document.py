"""The ``Document``: an immutable configuration tree with references.

A ``Document`` wraps a tree of plain Python data and the node types from
``docflow.document.nodes``.  It offers the read and merge operations the
workflow engine needs:

- ``lookup``       -- the raw node at a path, following references on the way
- ``is_concrete``  -- whether a sub-document is fully determined
- ``references``   -- every reference path used within a subtree
- ``evaluate``     -- resolve references and interpolations into plain data
- ``fill``         -- unify a value at a path, returning a new ``Document``

Documents never change in place.  ``fill`` copies only the spine of
mappings between the root and the filled path, so snapshots are cheap and
can be read from any thread while a newer snapshot is being built.

Usage
-----
::

    from docflow.document import Document, Ref, TypeOf

    doc = Document({
        "ask": {"response": TypeOf("string")},
        "echo": {"text": Ref.to("ask.response")},
    })
    doc.is_concrete("echo.text")          # False
    doc = doc.fill("ask", {"response": "hi"})
    doc.evaluate("echo")                  # {"text": "hi"}
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docflow.document.errors import (
    ConflictError,
    DocumentError,
    PathNotFoundError,
    ReferenceCycleError,
)
from docflow.document.nodes import Interp, Ref, TypeOf
from docflow.document.path import ROOT, Path
from docflow.document.unify import unify

_MISSING: Any = object()


def normalize(value: Any) -> Any:
    """Convert arbitrary mapping/sequence data into document form.

    Mappings become ``dict`` objects with string keys and tuples become
    lists.  Leaves and document nodes are returned unchanged.
    """
    if isinstance(value, Mapping):
        return {str(k): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    return value


def contains_placeholder(value: Any) -> bool:
    """Return True if an evaluated value still holds a ``TypeOf`` anywhere."""
    if isinstance(value, TypeOf):
        return True
    if isinstance(value, Mapping):
        return any(contains_placeholder(v) for v in value.values())
    if isinstance(value, list):
        return any(contains_placeholder(v) for v in value)
    return False


class Document:
    """An immutable configuration tree.

    Parameters
    ----------
    root:
        The top-level mapping.  It is normalized on construction; the
        caller's object is not retained.
    """

    __slots__ = ("_root",)

    def __init__(self, root: Mapping[str, Any] | None = None) -> None:
        if root is not None and not isinstance(root, Mapping):
            raise TypeError(f"Document root must be a mapping, got {type(root).__name__}")
        self._root: dict[str, Any] = normalize(root or {})

    @classmethod
    def _wrap(cls, root: dict[str, Any]) -> "Document":
        doc = cls.__new__(cls)
        doc._root = root
        return doc

    @property
    def root(self) -> dict[str, Any]:
        """Return the underlying tree.  Callers must not mutate it."""
        return self._root

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, path: Path | str) -> Any:
        """Return the raw node at ``path``.

        References met on intermediate nodes are followed; the node at
        ``path`` itself is returned as stored, so it may be a ``Ref``.

        Raises
        ------
        PathNotFoundError
            If any selector along ``path`` does not exist.
        ReferenceCycleError
            If following an intermediate reference loops.
        """
        return self._lookup(Path.of(path), frozenset())

    def resolve(self, path: Path | str) -> Any:
        """Return the node at ``path`` with any final references followed."""
        path = Path.of(path)
        return self._deref(self._lookup(path, frozenset()), frozenset())

    def exists(self, path: Path | str) -> bool:
        try:
            self.lookup(path)
        except DocumentError:
            return False
        return True

    def _lookup(self, path: Path, seen: frozenset[Path]) -> Any:
        node: Any = self._root
        for selector in path:
            node = _select(self._deref(node, seen), selector)
            if node is _MISSING:
                raise PathNotFoundError(path)
        return node

    def canonical_path(self, path: Path | str) -> Path:
        """Return where the value at ``path`` is actually defined.

        Every reference met along ``path``, including one stored at
        ``path`` itself, is followed.  Selectors past a missing field are
        kept as written, so the result may name a field that does not
        exist yet.

        Raises
        ------
        ReferenceCycleError
            If the references loop.
        """
        selectors = tuple(Path.of(path))
        current = ROOT
        node: Any = self._root
        seen: set[Path] = set()
        i = 0
        while True:
            while isinstance(node, Ref):
                if node.path in seen:
                    raise ReferenceCycleError(node.path)
                seen.add(node.path)
                current = node.path
                try:
                    node = self._lookup(current, frozenset())
                except PathNotFoundError:
                    node = _MISSING
            if i == len(selectors):
                return current
            node = _select(node, selectors[i])
            current = current.child(selectors[i])
            i += 1
            if node is _MISSING:
                return Path(current.selectors + selectors[i:])

    def _deref(self, node: Any, seen: frozenset[Path]) -> Any:
        while isinstance(node, Ref):
            if node.path in seen:
                raise ReferenceCycleError(node.path)
            seen = seen | {node.path}
            node = self._lookup(node.path, seen)
        return node

    # ------------------------------------------------------------------
    # Concreteness
    # ------------------------------------------------------------------

    def is_concrete(self, path: Path | str) -> bool:
        """Return True if the value at ``path`` is fully determined.

        A missing path is not concrete: a task may still produce it.
        """
        try:
            node = self.lookup(path)
        except DocumentError:
            return False
        return self._concrete(node, frozenset())

    def is_concrete_node(self, node: Any) -> bool:
        """Return True if ``node`` (resolved against this document) is concrete."""
        return self._concrete(node, frozenset())

    def _concrete(self, node: Any, seen: frozenset[Path]) -> bool:
        if isinstance(node, TypeOf):
            return False
        if isinstance(node, Ref):
            if node.path in seen:
                return False
            seen = seen | {node.path}
            try:
                target = self._lookup(node.path, seen)
            except DocumentError:
                return False
            return self._concrete(target, seen)
        if isinstance(node, Interp):
            return all(self._concrete(Ref(p), seen) for p in node.refs)
        if isinstance(node, Mapping):
            return all(self._concrete(v, seen) for v in node.values())
        if isinstance(node, list):
            return all(self._concrete(v, seen) for v in node)
        return True

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def references(self, path: Path | str = ROOT) -> list[Path]:
        """Return every reference path used within the subtree at ``path``.

        Both ``Ref`` nodes and ``Interp`` holes are reported, in document
        order, each path at most once.  References are not followed.
        """
        found: dict[Path, None] = {}
        _collect_refs(self.lookup(path), found)
        return list(found)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, path: Path | str = ROOT) -> Any:
        """Return the value at ``path`` as plain data.

        References are replaced by their targets and interpolations are
        rendered.  Anything not yet known stays a ``TypeOf`` placeholder:
        a reference to a missing path evaluates to ``TypeOf("any")`` and an
        interpolation with an incomplete hole to ``TypeOf("string")``.

        Raises
        ------
        PathNotFoundError
            If ``path`` itself does not exist.
        ReferenceCycleError
            If a reference within the subtree loops.
        """
        return self._evaluate(self.lookup(path), frozenset())

    def to_data(self) -> dict[str, Any]:
        """Evaluate the whole document."""
        return self._evaluate(self._root, frozenset())

    def _evaluate(self, node: Any, seen: frozenset[Path]) -> Any:
        if isinstance(node, Ref):
            if node.path in seen:
                raise ReferenceCycleError(node.path)
            seen = seen | {node.path}
            try:
                target = self._lookup(node.path, seen)
            except PathNotFoundError:
                return TypeOf("any")
            return self._evaluate(target, seen)
        if isinstance(node, Interp):
            values: dict[Path, Any] = {}
            for ref_path in node.refs:
                value = self._evaluate(Ref(ref_path), seen)
                if contains_placeholder(value):
                    return TypeOf("string")
                values[ref_path] = value
            return node.render(values)
        if isinstance(node, Mapping):
            return {k: self._evaluate(v, seen) for k, v in node.items()}
        if isinstance(node, list):
            return [self._evaluate(v, seen) for v in node]
        return node

    # ------------------------------------------------------------------
    # Fill
    # ------------------------------------------------------------------

    def fill(self, path: Path | str, value: Any) -> "Document":
        """Return a new document with ``value`` unified at ``path``.

        Missing intermediate mappings are created.  The receiver is left
        unchanged.

        Raises
        ------
        ConflictError
            If ``value`` contradicts information already present.
        """
        path = Path.of(path)
        root = self._fill(self._root, tuple(path), normalize(value), ROOT)
        return Document._wrap(root)

    def _fill(self, node: Any, remaining: tuple[Any, ...], value: Any, at: Path) -> Any:
        if not remaining:
            return self._merge(node, value, at)
        head, rest = remaining[0], remaining[1:]
        if isinstance(node, Ref):
            node = self._deref(node, frozenset())
        if node is _MISSING or (isinstance(node, TypeOf) and node.name in ("any", "struct")):
            node = {}
        if isinstance(node, dict) and isinstance(head, str):
            updated = dict(node)
            updated[head] = self._fill(node.get(head, _MISSING), rest, value, at.child(head))
            return updated
        if isinstance(node, list) and isinstance(head, int) and 0 <= head < len(node):
            items = list(node)
            items[head] = self._fill(node[head], rest, value, at.child(head))
            return items
        raise ConflictError(at, node, {head: value})

    def _merge(self, node: Any, value: Any, at: Path) -> Any:
        if node is _MISSING:
            return value
        if isinstance(node, (Ref, Interp)):
            merged = unify(self._evaluate(node, frozenset()), value, at)
            # Keep the reference while it still agrees; a refined copy otherwise.
            return node if self._concrete(node, frozenset()) else merged
        if isinstance(node, dict) and isinstance(value, Mapping):
            updated = dict(node)
            for key, item in value.items():
                updated[key] = self._merge(node.get(key, _MISSING), item, at.child(key))
            return updated
        if isinstance(node, list) and isinstance(value, list):
            if len(node) != len(value):
                raise ConflictError(at, node, value)
            return [self._merge(a, b, at.child(i)) for i, (a, b) in enumerate(zip(node, value))]
        return unify(node, value, at)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self._root == other._root

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Document(fields={list(self._root)})"


def _select(node: Any, selector: Any) -> Any:
    if isinstance(node, Mapping) and isinstance(selector, str):
        return node.get(selector, _MISSING)
    if isinstance(node, list) and isinstance(selector, int) and 0 <= selector < len(node):
        return node[selector]
    return _MISSING


def _collect_refs(node: Any, found: dict[Path, None]) -> None:
    if isinstance(node, Ref):
        found.setdefault(node.path, None)
    elif isinstance(node, Interp):
        for path in node.refs:
            found.setdefault(path, None)
    elif isinstance(node, Mapping):
        for value in node.values():
            _collect_refs(value, found)
    elif isinstance(node, list):
        for value in node:
            _collect_refs(value, found)
