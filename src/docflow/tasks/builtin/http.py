"""``tool/http.Do``: make an HTTP request.

Fields
------
method
    Request method; ``GET`` when absent.
url
    The request URL.
request.body
    Optional string or bytes sent as the request body.
request.header, request.trailer
    Optional structs mapping a header name to a string or a list of
    strings.  Trailers are checked like headers but not sent.
timeout
    Optional timeout in seconds.

The result is filled into ``response``: ``status``, ``statusCode``,
``body`` (decoded text), ``header`` and ``trailer`` (name to list of
values).
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from docflow.document.nodes import TypeOf
from docflow.document.path import Path
from docflow.tasks.base import ExecContext, Runner, RunnerError, TaskArgumentError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Do(Runner):
    kind = "tool/http.Do"
    template = {"url": TypeOf("string")}

    def run(self, ctx: ExecContext) -> Mapping[str, Any] | None:
        method = ctx.string("method").upper() if ctx.has("method") else "GET"
        url = ctx.string("url")

        request = ctx.value.get("request") or {}
        if not isinstance(request, Mapping):
            raise TaskArgumentError(ctx.path.child("request"), "request must be a struct")
        req_path = ctx.path.child("request")
        body = _body(request.get("body"), req_path.child("body"))
        headers = _headers(request.get("header"), req_path.child("header"))
        _headers(request.get("trailer"), req_path.child("trailer"))

        timeout = ctx.value.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise TaskArgumentError(ctx.path.child("timeout"), f"invalid timeout {timeout!r}")

        logger.debug("%s: %s %s", ctx.path, method, url)
        try:
            with httpx.Client(timeout=timeout) as client:
                resp = client.request(method, url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            raise RunnerError(f"{method} {url}: {exc}") from exc

        return {
            "response": {
                "status": f"{resp.status_code} {resp.reason_phrase}".strip(),
                "statusCode": resp.status_code,
                "body": resp.text,
                "header": _multi(resp.headers),
                "trailer": {},
            }
        }


def _body(value: Any, path: Path) -> str | bytes | None:
    if value is None or isinstance(value, (str, bytes)):
        return value
    raise TaskArgumentError(path, f"expected string or bytes, got {value!r}")


def _headers(value: Any, path: Path) -> list[tuple[str, str]]:
    if value is None:
        return []
    if not isinstance(value, Mapping):
        raise TaskArgumentError(path, "must be a struct")
    pairs: list[tuple[str, str]] = []
    for name, item in value.items():
        values = item if isinstance(item, list) else [item]
        for v in values:
            if not isinstance(v, str):
                raise TaskArgumentError(path.child(name), f"invalid string argument {v!r}")
            pairs.append((name, v))
    return pairs


def _multi(headers: httpx.Headers) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        result.setdefault(name, []).append(value)
    return result
