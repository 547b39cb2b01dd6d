"""Load documents from YAML or JSON text, and dump them back.

YAML sources use tags for the non-concrete node types::

    city: Amsterdam
    command:
      hello:
        ask:
          $id: tool/cli.Ask
          prompt: What is your name?
          response: !string
        echo:
          $id: tool/exec.Run
          cmd: !interp "echo Hello ${command.hello.ask.response}, welcome to ${city}"
          stdout: !string

Recognised tags are ``!ref``, ``!interp`` and one tag per type name
(``!string``, ``!int``, ``!float``, ``!number``, ``!bool``, ``!bytes``,
``!list``, ``!struct``, ``!any``).  Since JSON has no tags, single-key
mappings ``{"$ref": "a.b"}``, ``{"$interp": "..."}`` and
``{"$type": "string"}`` are accepted as equivalents.
"""
from __future__ import annotations

from pathlib import Path as FilePath
from typing import Any

import yaml

from docflow.document.document import Document
from docflow.document.errors import LoadError
from docflow.document.nodes import TYPE_NAMES, Interp, Ref, TypeOf

_SPECIAL_KEYS = ("$ref", "$interp", "$type")


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader extended with the document node tags."""


class _DocumentDumper(yaml.SafeDumper):
    """SafeDumper that writes node types back as tags."""


def _construct_ref(loader: yaml.SafeLoader, node: yaml.Node) -> Ref:
    return Ref.to(loader.construct_scalar(node))  # type: ignore[arg-type]


def _interp(template: str) -> Interp:
    """Build an ``Interp`` after checking that every hole is a valid path."""
    interp = Interp(template)
    try:
        interp.refs  # parses every hole
    except ValueError as exc:
        raise LoadError(f"invalid interpolation {template!r}: {exc}") from exc
    return interp


def _construct_interp(loader: yaml.SafeLoader, node: yaml.Node) -> Interp:
    return _interp(loader.construct_scalar(node))  # type: ignore[arg-type]


def _type_constructor(name: str):  # noqa: ANN202
    def construct(loader: yaml.SafeLoader, node: yaml.Node) -> TypeOf:
        return TypeOf(name)

    return construct


_DocumentLoader.add_constructor("!ref", _construct_ref)
_DocumentLoader.add_constructor("!interp", _construct_interp)
for _name in TYPE_NAMES:
    _DocumentLoader.add_constructor(f"!{_name}", _type_constructor(_name))

_DocumentDumper.add_representer(
    TypeOf, lambda dumper, data: dumper.represent_scalar(f"!{data.name}", "")
)
_DocumentDumper.add_representer(
    Ref, lambda dumper, data: dumper.represent_scalar("!ref", str(data.path))
)
_DocumentDumper.add_representer(
    Interp, lambda dumper, data: dumper.represent_scalar("!interp", data.template)
)


def _convert(value: Any) -> Any:
    """Rewrite the JSON-compatible single-key forms into node objects."""
    if isinstance(value, dict):
        if len(value) == 1:
            (key, inner), = value.items()
            if key in _SPECIAL_KEYS:
                if not isinstance(inner, str):
                    raise LoadError(f"{key} must be a string, got {type(inner).__name__}")
                if key == "$ref":
                    return Ref.to(inner)
                if key == "$interp":
                    return _interp(inner)
                if inner not in TYPE_NAMES:
                    raise LoadError(f"unknown type {inner!r}")
                return TypeOf(inner)
        return {str(k): _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(v) for v in value]
    return value


def load_string(text: str) -> Document:
    """Parse YAML or JSON ``text`` into a ``Document``.

    Raises
    ------
    LoadError
        If the text is not valid YAML, a tag is malformed, or the top
        level is not a mapping.
    """
    try:
        data = yaml.load(text, Loader=_DocumentLoader)  # noqa: S506
    except (yaml.YAMLError, ValueError) as exc:
        raise LoadError(f"cannot parse document: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise LoadError(f"document must be a mapping, got {type(data).__name__}")
    try:
        return Document(_convert(data))
    except ValueError as exc:
        raise LoadError(f"invalid node: {exc}") from exc


def load(path: str | FilePath) -> Document:
    """Read and parse the document stored at ``path``."""
    try:
        text = FilePath(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise LoadError(f"cannot read {path}: {exc}") from exc
    return load_string(text)


def dump(value: Any) -> str:
    """Serialize document data (including node objects) to YAML text."""
    if isinstance(value, Document):
        value = value.root
    return yaml.dump(
        value,
        Dumper=_DocumentDumper,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
