#!/usr/bin/env python3
"""Example: Custom task kinds — docflow

Registers a runner for a new kind on an explicit registry and uses it
in a command.  Plugin packages do the same through the
``docflow.runners`` entry-point group.

Usage:
    python examples/02_custom_runner.py
"""
from __future__ import annotations

import docflow
from docflow.document import TypeOf
from docflow.tasks import Runner

registry = docflow.default_registry()


@registry.register("example/text.Upper", template={"text": TypeOf("string")})
class Upper(Runner):
    def run(self, ctx):
        return {"out": ctx.string("text").upper()}


SOURCE = '''
command:
  shout:
    upper:
      $id: example/text.Upper
      text: quiet please
      out: !string
    print:
      $id: tool/cli.Print
      text: !ref command.shout.upper.out
'''


def main() -> None:
    doc = docflow.load_string(SOURCE)
    docflow.run(doc, "command.shout", registry=registry)


if __name__ == "__main__":
    main()
