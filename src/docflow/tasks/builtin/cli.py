"""Terminal interaction: ``tool/cli.Print`` and ``tool/cli.Ask``."""
from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any

from docflow.document.nodes import TypeOf
from docflow.tasks.base import ExecContext, Runner, RunnerError

_TRUTHY = frozenset({"y", "yes", "true", "1"})
_FALSY = frozenset({"n", "no", "false", "0"})


class Print(Runner):
    """Write ``text`` followed by a newline to standard output."""

    kind = "tool/cli.Print"
    template = {"text": TypeOf("string")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        out = ctx.stdout or sys.stdout
        out.write(ctx.string("text") + "\n")
        out.flush()
        return None


class Ask(Runner):
    """Prompt the user and fill ``response`` with the line they type.

    When ``response`` is declared ``bool`` the answer is parsed as yes/no.
    """

    kind = "tool/cli.Ask"
    template = {"prompt": TypeOf("string"), "response": TypeOf("any")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        out = ctx.stdout or sys.stdout
        src = ctx.stdin or sys.stdin
        out.write(ctx.string("prompt") + " ")
        out.flush()

        line = src.readline()
        if not line:
            raise RunnerError("unexpected end of input")
        answer = line.rstrip("\r\n")

        expected = ctx.value.get("response")
        if isinstance(expected, TypeOf) and expected.name == "bool":
            lowered = answer.strip().lower()
            if lowered in _TRUTHY:
                return {"response": True}
            if lowered in _FALSY:
                return {"response": False}
            raise RunnerError(f"expected yes or no, got {answer!r}")
        return {"response": answer}
