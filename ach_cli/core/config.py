"""Configuration helpers for ach CLI."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

CONFIG_PATH = Path(os.path.expanduser("~")) / ".ach.json"
TOKEN_DIR = Path(os.path.expanduser("~")) / ".ach"
# Default instance used when no URL is configured
DEFAULT_URL = "http://cozy.tools:8080"

# OAuth redirect handled by the local callback listener
REDIRECT_HOST = "localhost"
REDIRECT_PORT = 3333
REDIRECT_PATH = "/do_access"


def load_config() -> Dict[str, Any]:
    """Load configuration from disk and environment."""
    cfg: Dict[str, Any] = {}
    if CONFIG_PATH.exists():
        try:
            cfg = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        except ValueError:
            cfg = {}
    if os.getenv("ACH_URL"):
        cfg["url"] = os.getenv("ACH_URL")
    if os.getenv("ACH_TOKEN_FILE"):
        cfg["token_path"] = os.getenv("ACH_TOKEN_FILE")
    return cfg


def env_flag(name: str) -> bool:
    """Return True when the boolean-like variable *name* is set.

    Empty strings, ``0``, ``false`` and ``no`` count as unset.
    """
    value = os.getenv(name)
    if value is None:
        return False
    return value.strip().lower() not in ("", "0", "false", "no")


def resolve_url(url: str | None) -> str:
    """Return the instance URL from the argument, config or the default."""
    if not url:
        url = load_config().get("url") or DEFAULT_URL
    return url.rstrip("/")


def default_token_path(url: str) -> Path:
    host = urlparse(url).netloc or url
    return TOKEN_DIR / f"{host.replace(':', '_')}.token.json"


def resolve_token_path(token_path: str | None, url: str) -> Path:
    """Return the credential file to use for *url*.

    Tokens are per instance: unless a path is given explicitly (argument,
    ``ACH_TOKEN_FILE`` or config) the file lives under ``~/.ach``.
    """
    if not token_path:
        token_path = load_config().get("token_path")
    if token_path:
        return Path(token_path).expanduser().resolve()
    return default_token_path(url)


def get_url_and_token_path(args) -> Tuple[str, Path]:
    """Return the instance URL and token file for parsed command arguments."""
    url = resolve_url(getattr(args, "url", None))
    return url, resolve_token_path(getattr(args, "token", None), url)
