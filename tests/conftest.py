"""Shared test fixtures for docflow.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

import pytest

from docflow.tasks import RunnerRegistry, default_registry


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "docflow"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def registry() -> RunnerRegistry:
    """Return a fresh registry holding only the built-in kinds."""
    return default_registry()


HELLO_YAML = """\
city: Amsterdam
command:
  hello:
    print:
      $id: tool/cli.Print
      text: starting
    ask:
      $id: tool/cli.Ask
      prompt: What is your name?
      response: !string
    echo:
      $id: docflow/testing.Echo
      value: !interp "Hello ${command.hello.ask.response}, welcome to ${city}!"
      out: !string
"""


@pytest.fixture()
def hello_yaml() -> str:
    """Return the source of a three-task command: print, ask, echo."""
    return HELLO_YAML
