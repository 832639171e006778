"""Implementation of the ``ach import`` command."""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..core import create_session, get_url_and_token_path, import_data, load_artifact


def cmd_import(args):
    """Entry point for the ``import`` sub-command."""

    url, token_path = get_url_and_token_path(args)
    data = load_artifact(Path(args.filepath))
    if not data:
        print("Nothing to import")
        return 0

    async def _run():
        session = await create_session(token_path, url, list(data), timeout=args.auth_timeout)
        return await import_data(session, data)

    counts = asyncio.run(_run())
    for doctype, count in counts.items():
        print(f"{doctype}: {count}")
    print(f"Imported {sum(counts.values())} documents from {args.filepath}")
    return 0
