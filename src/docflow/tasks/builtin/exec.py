"""``tool/exec.Run``: run a subprocess.

Fields
------
cmd
    A command line string (split on whitespace) or a list of arguments.
stdin
    Optional string fed to the process.
stdout, stderr
    When present and not ``null`` the stream is captured and filled in;
    otherwise it goes to the host's stream.
env
    Optional mapping of extra environment variables.
dir
    Optional working directory.
mustSucceed
    When true (the default) a non-zero exit status fails the task.
"""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from collections.abc import Mapping
from typing import Any

from docflow.document.nodes import TypeOf
from docflow.tasks.base import ExecContext, Runner, RunnerError, TaskArgumentError

logger = logging.getLogger(__name__)


class Run(Runner):
    kind = "tool/exec.Run"
    template = {"cmd": TypeOf("any"), "success": TypeOf("bool")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        args = self._args(ctx)
        capture_out = ctx.has("stdout")
        capture_err = ctx.has("stderr")

        env = None
        if ctx.has("env"):
            extra = ctx.lookup("env")
            if not isinstance(extra, Mapping):
                raise TaskArgumentError(ctx.path.child("env"), "env must be a struct")
            env = {**os.environ, **{k: str(v) for k, v in extra.items()}}

        stdin = ctx.string("stdin") if ctx.has("stdin") else None
        cwd = ctx.string("dir") if ctx.has("dir") else None

        logger.debug("%s: running %s", ctx.path, shlex.join(args))
        try:
            proc = subprocess.run(
                args,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                cwd=cwd,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise RunnerError(f"command {args[0]!r} could not be started: {exc}") from exc

        # Uncaptured output goes to the host streams.
        if not capture_out and proc.stdout:
            (ctx.stdout or sys.stdout).write(proc.stdout)
        if not capture_err and proc.stderr:
            (ctx.stderr or sys.stderr).write(proc.stderr)

        success = proc.returncode == 0
        if not success and ctx.boolean("mustSucceed", default=True):
            detail = f": {proc.stderr.strip()}" if proc.stderr.strip() else ""
            raise RunnerError(
                f"command {args[0]!r} failed with exit status {proc.returncode}{detail}"
            )

        result: dict[str, Any] = {"success": success}
        if capture_out:
            result["stdout"] = proc.stdout
        if capture_err:
            result["stderr"] = proc.stderr
        return result

    @staticmethod
    def _args(ctx: ExecContext) -> list[str]:
        cmd = ctx.lookup("cmd")
        if isinstance(cmd, str):
            args = cmd.split()
            if not args:
                raise TaskArgumentError(ctx.path.child("cmd"), "empty command")
            return args
        if isinstance(cmd, list):
            if not cmd:
                raise TaskArgumentError(ctx.path.child("cmd"), "empty command list")
            for i, arg in enumerate(cmd):
                if not isinstance(arg, str):
                    raise TaskArgumentError(
                        ctx.path.child("cmd").child(i), f"invalid string argument {arg!r}"
                    )
            return list(cmd)
        raise TaskArgumentError(ctx.path.child("cmd"), f"invalid command {cmd!r}")
