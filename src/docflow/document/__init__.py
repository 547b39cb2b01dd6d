"""Document model: paths, nodes, unification and loading.

The workflow engine only talks to documents through ``Document``; the
rest of this package exists so that documents can be built, loaded and
printed.
"""
from __future__ import annotations

from docflow.document.document import Document, contains_placeholder, normalize
from docflow.document.errors import (
    ConflictError,
    DocumentError,
    LoadError,
    PathNotFoundError,
    ReferenceCycleError,
)
from docflow.document.loader import dump, load, load_string
from docflow.document.nodes import TYPE_NAMES, Interp, Ref, TypeOf
from docflow.document.path import ROOT, Path
from docflow.document.unify import unify

__all__ = [
    "ConflictError",
    "Document",
    "DocumentError",
    "Interp",
    "LoadError",
    "Path",
    "PathNotFoundError",
    "ROOT",
    "Ref",
    "ReferenceCycleError",
    "TYPE_NAMES",
    "TypeOf",
    "contains_placeholder",
    "dump",
    "load",
    "load_string",
    "normalize",
    "unify",
]
