"""Implementation of the ``ach export`` command."""

from __future__ import annotations

import asyncio

from ..core import StripPolicy, create_session, export_doctypes, get_url_and_token_path


def split_doctypes(value: str) -> list[str]:
    return [d.strip() for d in value.split(",") if d.strip()]


def cmd_export(args):
    url, token_path = get_url_and_token_path(args)
    doctypes = split_doctypes(args.doctypes)

    async def _run():
        session = await create_session(token_path, url, doctypes, timeout=args.auth_timeout)
        return await export_doctypes(session, doctypes, args.filename, StripPolicy.from_env())

    data = asyncio.run(_run())
    if args.filename != "-":
        total = sum(len(docs) for docs in data.values())
        print(f"Exported {total} documents from {len(data)} doctypes to {args.filename}")
    return 0
