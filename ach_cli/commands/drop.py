"""Destructive commands: ``drop`` and ``delete``."""

from __future__ import annotations

import asyncio

from ..core import (
    confirm_destructive,
    create_session,
    delete_documents,
    drop_collections,
    get_url_and_token_path,
)


def cmd_drop(args):
    if not confirm_destructive("These doctypes will be emptied:", args.doctypes, assume_yes=args.yes):
        print("Cancelled drop")
        return 1
    url, token_path = get_url_and_token_path(args)

    async def _run():
        session = await create_session(token_path, url, args.doctypes, timeout=args.auth_timeout)
        return await drop_collections(session, args.doctypes)

    counts = asyncio.run(_run())
    for doctype, count in counts.items():
        print(f"dropped {count} documents from {doctype}")
    return 0


def cmd_delete(args):
    items = [f"{args.doctype}/{i}" for i in args.ids]
    if not confirm_destructive("These documents will be deleted:", items, assume_yes=args.yes):
        print("Cancelled delete")
        return 1
    url, token_path = get_url_and_token_path(args)

    async def _run():
        session = await create_session(token_path, url, [args.doctype], timeout=args.auth_timeout)
        return await delete_documents(session, args.doctype, args.ids)

    for doc_id in asyncio.run(_run()):
        print(f"deleted {args.doctype}/{doc_id}")
    return 0
