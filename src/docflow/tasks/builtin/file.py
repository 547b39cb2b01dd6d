"""File output: ``tool/file.Append``."""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from docflow.document.nodes import TypeOf
from docflow.tasks.base import ExecContext, Runner, RunnerError, TaskArgumentError

DEFAULT_PERMISSIONS = 0o666


class Append(Runner):
    """Append ``contents`` to ``filename``, creating it if needed.

    ``permissions`` only applies to newly created files.
    """

    kind = "tool/file.Append"
    template = {"filename": TypeOf("string"), "contents": TypeOf("any")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        filename = ctx.string("filename")
        contents = ctx.lookup("contents")
        if isinstance(contents, str):
            data = contents.encode("utf-8")
        elif isinstance(contents, bytes):
            data = contents
        else:
            raise TaskArgumentError(
                ctx.path.child("contents"), f"expected string or bytes, got {contents!r}"
            )
        mode = ctx.integer("permissions") if ctx.has("permissions") else DEFAULT_PERMISSIONS

        try:
            fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_APPEND, mode)
        except OSError as exc:
            raise RunnerError(f"cannot open {filename}: {exc}") from exc
        with os.fdopen(fd, "ab") as fh:
            fh.write(data)
        return None
