"""Monotonic unification of evaluated document values.

``unify`` combines two values into the most specific value consistent
with both, or raises ``ConflictError``.  It never discards information:
a type placeholder is refined by a concrete value, mappings are merged
field by field, and two differing concrete values conflict.

The inputs are *evaluated* values, so they contain no ``Ref`` or
``Interp`` nodes; ``Document.fill`` resolves those before calling in.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docflow.document.errors import ConflictError
from docflow.document.nodes import Interp, Ref, TypeOf
from docflow.document.path import ROOT, Path


def unify(left: Any, right: Any, path: Path = ROOT) -> Any:
    """Return the unification of ``left`` and ``right``.

    Parameters
    ----------
    left, right:
        Evaluated values: plain data and ``TypeOf`` placeholders.
    path:
        Location of the values, used in error messages.

    Returns
    -------
    Any
        The combined value.  Mappings are returned as new ``dict`` objects;
        neither input is modified.

    Raises
    ------
    ConflictError
        If the values are incompatible at ``path`` or anywhere below it.
    """
    if isinstance(left, (Ref, Interp)) or isinstance(right, (Ref, Interp)):
        raise TypeError(f"cannot unify unevaluated node at {path}")

    if isinstance(left, TypeOf) and isinstance(right, TypeOf):
        met = left.meet(right)
        if met is None:
            raise ConflictError(path, left, right)
        return met
    if isinstance(left, TypeOf):
        return _refine(left, right, path)
    if isinstance(right, TypeOf):
        return _refine(right, left, path)

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        merged: dict[str, Any] = dict(left)
        for key, value in right.items():
            if key in merged:
                merged[key] = unify(merged[key], value, path.child(key))
            else:
                merged[key] = value
        return merged

    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            raise ConflictError(path, left, right)
        return [unify(a, b, path.child(i)) for i, (a, b) in enumerate(zip(left, right))]

    if _same_scalar(left, right):
        return left
    raise ConflictError(path, left, right)


def _refine(placeholder: TypeOf, value: Any, path: Path) -> Any:
    if placeholder.accepts(value):
        return value
    raise ConflictError(path, placeholder, value)


def _same_scalar(left: Any, right: Any) -> bool:
    # bool is a subclass of int, but true and 1 must not unify.
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right
