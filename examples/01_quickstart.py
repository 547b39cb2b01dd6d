#!/usr/bin/env python3
"""Example: Quickstart — docflow

Minimal working example: load a command document, inspect the task
graph, and run it with canned input.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install docflow
"""
from __future__ import annotations

import io

import docflow

SOURCE = '''
command:
  hello:
    ask:
      $id: tool/cli.Ask
      prompt: What is your name?
      response: !string
    greet:
      $id: docflow/testing.Echo
      value: !interp "Hello ${command.hello.ask.response}!"
      out: !string
    shout:
      $id: tool/cli.Print
      text: !ref command.hello.greet.out
'''


def main() -> None:
    print(f"docflow version: {docflow.__version__}")

    # Step 1: Load the document
    doc = docflow.load_string(SOURCE)

    # Step 2: Inspect which task waits for which
    graph = docflow.plan(doc, "command.hello")
    for task, deps in graph.items():
        waits = ", ".join(dep.name for dep in deps) or "-"
        print(f"  {task.name:<6} {task.kind:<22} waits for: {waits}")

    # Step 3: Run it, answering the prompt from a string
    final = docflow.run(doc, "command.hello", stdin=io.StringIO("Ada\n"))
    print(f"\ngreet.out = {final.evaluate('command.hello.greet.out')!r}")


if __name__ == "__main__":
    main()
