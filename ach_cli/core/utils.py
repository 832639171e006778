"""Utility functions for ach CLI."""

from __future__ import annotations

import difflib
import json
from typing import Any

from tqdm import tqdm

__all__ = [
    "render_diff",
    "dump_json",
    "tqdm",
]

NO_DIFFERENCES = "(no differences)"


def dump_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def render_diff(current: Any, updated: Any) -> str:
    """Return a unified diff between two JSON-serializable values.

    Returns ``(no differences)`` when both values serialize identically.
    """
    before = json.dumps(current, ensure_ascii=False, indent=2, sort_keys=True).splitlines()
    after = json.dumps(updated, ensure_ascii=False, indent=2, sort_keys=True).splitlines()
    lines = list(difflib.unified_diff(before, after, fromfile="Current", tofile="Updated", lineterm=""))
    if not lines:
        return NO_DIFFERENCES
    return "\n".join(lines)
