"""Persisted access token for an instance."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import CorruptCredential


@dataclass(frozen=True)
class Credential:
    token: str


def read_credential(path: Path) -> Optional[Credential]:
    """Return the stored credential, or ``None`` when there is no token file.

    A file that exists but does not hold ``{"token": "<string>"}`` raises
    :class:`CorruptCredential`; callers must not treat it as a missing token.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise CorruptCredential(path, str(e)) from e
    if not isinstance(data, dict):
        raise CorruptCredential(path, "expected a JSON object")
    token = data.get("token", data.get("accessToken"))
    if not isinstance(token, str) or not token:
        raise CorruptCredential(path, "no token field")
    return Credential(token=token)


def write_credential(path: Path, credential: Credential) -> None:
    """Atomically replace the token file at *path*, readable by the owner only."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        os.chmod(tmp, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump({"token": credential.token}, fh)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
