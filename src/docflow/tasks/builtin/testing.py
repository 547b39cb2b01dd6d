"""``docflow/testing.Echo``: a reserved kind for exercising flows in tests.

The runner copies ``value`` into ``out``.  When ``fail`` is set to a
string the task fails with that message instead.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docflow.document.nodes import TypeOf
from docflow.tasks.base import ExecContext, Runner, RunnerError


class Echo(Runner):
    kind = "docflow/testing.Echo"
    template = {"out": TypeOf("any")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        if ctx.has("fail"):
            raise RunnerError(ctx.string("fail"))
        return {"out": ctx.lookup("value")}
