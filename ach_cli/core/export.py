"""Bulk export of whole doctypes to a JSON file."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import env_flag
from .errors import CollectionMissing, FetchFailed, PlatformError
from .utils import dump_json, tqdm

log = logging.getLogger(__name__)

# Writing the artifact to this sink prints it on stdout
STDOUT_SINK = "-"


@dataclass(frozen=True)
class StripPolicy:
    """Which transport fields survive the export."""

    keep_id: bool = False
    keep_rev: bool = False

    @classmethod
    def from_env(cls) -> "StripPolicy":
        """``ACH_NO_KEEP_ID`` drops ``_id``; ``ACH_KEEP_REV`` keeps ``_rev``."""
        return cls(keep_id=not env_flag("ACH_NO_KEEP_ID"), keep_rev=env_flag("ACH_KEEP_REV"))

    @property
    def omitted(self) -> List[str]:
        fields = []
        if not self.keep_id:
            fields.append("_id")
        if not self.keep_rev:
            fields.append("_rev")
        return fields


def strip_metadata(doc: dict, policy: StripPolicy) -> dict:
    omitted = policy.omitted
    return {k: v for k, v in doc.items() if k not in omitted}


async def fetch_doctype(session, doctype: str) -> List[dict]:
    """Return all documents of *doctype*; a doctype that was never created is empty."""
    try:
        return await session.client.fetch_all(doctype)
    except CollectionMissing:
        log.debug("%s does not exist, exporting it empty", doctype)
        return []
    except PlatformError as e:
        log.error("Cannot fetch documents for %s: %s", doctype, e)
        raise FetchFailed(doctype, e) from e


async def fetch_doctypes(
    session,
    doctypes: Sequence[str],
    policy: Optional[StripPolicy] = None,
) -> Dict[str, List[dict]]:
    """Fetch and strip every doctype, keeping the requested order."""
    if policy is None:
        policy = StripPolicy.from_env()
    data: Dict[str, List[dict]] = {}
    with tqdm(total=len(doctypes), unit="doctype", desc="Exporting") as bar:
        for doctype in doctypes:
            docs = await fetch_doctype(session, doctype)
            log.info("Exported documents for %s : %d", doctype, len(docs))
            data[doctype] = [strip_metadata(doc, policy) for doc in docs]
            bar.update(1)
    return data


def write_artifact(data: Dict[str, List[dict]], sink: str) -> None:
    """Serialize *data* to *sink*, a file path or ``-`` for stdout."""
    text = dump_json(data)
    if sink == STDOUT_SINK:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
    else:
        Path(sink).write_text(text, encoding="utf-8")


async def export_doctypes(
    session,
    doctypes: Sequence[str],
    sink: str,
    policy: Optional[StripPolicy] = None,
) -> Dict[str, List[dict]]:
    """Fetch *doctypes* and write them to *sink*.

    Without *policy* the environment decides, and with no flags set that keeps
    ``_id`` and drops ``_rev``.  Pass ``StripPolicy()`` to drop both.
    """
    log.debug("Exporting data...")
    data = await fetch_doctypes(session, doctypes, policy)
    write_artifact(data, sink)
    return data
