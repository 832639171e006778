"""Normalize bank operation dates.

Some connectors stored ``date`` and ``dateOperation`` as
``2018-04-02 00:00:00`` instead of ISO 8601. Replaces the space with ``T``.
"""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import urlparse

from ..core.export import fetch_doctype
from ..core.utils import render_diff

DOCTYPE_BANK_TRANSACTIONS = "io.cozy.bank.operations"


def get_doctypes() -> List[str]:
    return [DOCTYPE_BANK_TRANSACTIONS]


def remove_space_from_dates(transaction: dict) -> dict:
    updated = dict(transaction)
    updated["date"] = updated["date"].replace(" ", "T")
    if transaction.get("dateOperation"):
        updated["dateOperation"] = updated["dateOperation"].replace(" ", "T")
    return updated


async def run(session, dry_run: bool = True, args: Optional[List[str]] = None) -> None:
    instance = urlparse(session.url).netloc or session.url
    transactions = [
        t for t in await fetch_doctype(session, DOCTYPE_BANK_TRANSACTIONS)
        if " " in (t.get("date") or "")
    ]
    updated = [remove_space_from_dates(t) for t in transactions]

    if dry_run:
        print(instance, "Dry run: first updated transaction")
        print(render_diff(transactions[0] if transactions else None, updated[0] if updated else None))
    else:
        await session.client.update_all(DOCTYPE_BANK_TRANSACTIONS, updated)

    print(instance, "Would update" if dry_run else "Has updated", len(transactions), DOCTYPE_BANK_TRANSACTIONS)
