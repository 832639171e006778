"""Bulk writes: load an export artifact back, drop doctypes, delete documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from .errors import AchError, CollectionMissing
from .utils import tqdm

log = logging.getLogger(__name__)


def load_artifact(path: Path) -> Dict[str, List[dict]]:
    """Read a ``{doctype: [documents]}`` JSON file produced by ``export``."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise AchError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
        raise AchError(f"{path} is not an export file: expected an object of document lists")
    return data


async def import_data(session, data: Dict[str, List[dict]]) -> Dict[str, int]:
    """Write every document of *data* and return the count per doctype.

    Documents keeping their ``_id`` are created under that id; the others get
    one from the platform.  A stale ``_rev`` is never sent.
    """
    counts: Dict[str, int] = {}
    total = sum(len(docs) for docs in data.values())
    with tqdm(total=total, unit="doc", desc="Importing") as bar:
        for doctype, docs in data.items():
            counts[doctype] = 0
            for doc in docs:
                body = {k: v for k, v in doc.items() if k != "_rev"}
                if body.get("_id"):
                    await session.client.put_document(doctype, body)
                else:
                    await session.client.create_document(doctype, body)
                counts[doctype] += 1
                bar.update(1)
            log.info("Imported documents for %s : %d", doctype, counts[doctype])
    return counts


async def drop_collections(session, doctypes: Iterable[str]) -> Dict[str, int]:
    """Delete every document of each doctype; return how many went per doctype."""
    counts: Dict[str, int] = {}
    for doctype in doctypes:
        try:
            docs = await session.client.fetch_all(doctype)
        except CollectionMissing:
            docs = []
        for doc in tqdm(docs, unit="doc", desc=f"Dropping {doctype}"):
            await session.client.delete_document(doctype, doc["_id"], doc["_rev"])
        counts[doctype] = len(docs)
        log.info("Deleted documents for %s : %d", doctype, len(docs))
    return counts


async def delete_documents(session, doctype: str, ids: Iterable[str]) -> List[str]:
    """Delete the given documents, looking up their current revision first."""
    deleted: List[str] = []
    for doc_id in ids:
        doc = await session.client.get_document(doctype, doc_id)
        await session.client.delete_document(doctype, doc_id, doc["_rev"])
        log.info("Deleted %s/%s", doctype, doc_id)
        deleted.append(doc_id)
    return deleted
