"""Minimal HTTP helpers for the CLI.

The implementation uses :mod:`urllib` from the Python standard library.
Failures are raised as :class:`~ach_cli.core.errors.PlatformError` so callers
can tell a missing collection from an authorization problem; the entry point
decides how to report them.
"""

from __future__ import annotations

import json
from typing import Any, Dict
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .errors import PlatformError

JSON_TYPES = ("application/json", "application/vnd.api+json")


def http_json(
    method: str,
    url: str,
    token: str | None = None,
    payload: Dict[str, Any] | list | None = None,
) -> Dict[str, Any] | list | bytes:
    """Perform an HTTP request and return parsed JSON or raw bytes."""

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    data = None
    if payload is not None:
        # JSON body for POST/PUT requests
        headers["Content-Type"] = "application/json"
        data = json.dumps(payload).encode("utf-8")
    req = Request(url=url, method=method.upper(), headers=headers, data=data)
    return _send(req, timeout=60)


def http_form_post(
    url: str,
    fields: Dict[str, str],
    token: str | None = None,
) -> Dict[str, Any] | list | bytes:
    """Send an ``application/x-www-form-urlencoded`` POST request.

    The OAuth token endpoint only accepts form bodies.
    """

    headers = {
        "Accept": "application/json",
        "Content-Type": "application/x-www-form-urlencoded",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    body = urlencode(fields).encode("utf-8")
    req = Request(url=url, method="POST", headers=headers, data=body)
    return _send(req, timeout=60)


def _send(req: Request, *, timeout: int) -> Dict[str, Any] | list | bytes:
    try:
        with urlopen(req, timeout=timeout) as resp:
            ctype = (resp.headers.get("Content-Type") or "").lower()
            raw = resp.read()
            if any(t in ctype for t in JSON_TYPES):
                try:
                    return json.loads(raw.decode("utf-8"))
                except ValueError:
                    # Return raw bytes if the body is not valid JSON
                    return raw
            return raw
    except HTTPError as e:
        body = e.read().decode("utf-8", errors="ignore")
        raise PlatformError(e.code, error_message(body), req.full_url) from e
    except URLError as e:
        raise PlatformError(None, f"Network error: {e.reason}", req.full_url) from e


def error_message(body: str) -> str:
    """Extract a readable message from an error response body.

    CouchDB proxies answer ``{"error": ..., "reason": ...}`` while the stack
    itself uses JSON:API ``{"errors": [{"detail": ...}]}``.
    """

    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()
    if isinstance(data, dict):
        if data.get("reason"):
            return str(data["reason"])
        errors = data.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            err = errors[0]
            return str(err.get("detail") or err.get("title") or body)
        if data.get("error"):
            return str(data["error"])
    return body.strip()
