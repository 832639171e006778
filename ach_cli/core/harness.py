"""Registry and runner for migration scripts.

Scripts are the modules of the :mod:`ach_cli.scripts` package.  A script
module exposes::

    def get_doctypes() -> list[str]: ...
    async def run(session, dry_run: bool, args: list[str]) -> None: ...

``get_doctypes`` is called before any session exists because the OAuth scope
is fixed when the client is registered.  ``run`` receives the session
explicitly.  Without ``--execute`` the script runs with ``dry_run=True`` and
is expected to print the changes it would make instead of making them; the
runner does not check this, reviewing scripts is how it is enforced.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from .errors import ScriptNotFound
from .session import Session, create_session

log = logging.getLogger(__name__)

SCRIPTS_PACKAGE = "ach_cli.scripts"


@dataclass(frozen=True)
class ScriptUnit:
    name: str
    get_doctypes: Callable[[], Sequence[str]]
    run: Callable[[Session, bool, List[str]], Awaitable[None]]


def load_registry(package: str = SCRIPTS_PACKAGE) -> Dict[str, ScriptUnit]:
    """Import every script module of *package* and index it by module name.

    Modules whose name starts with ``_`` or that lack ``get_doctypes``/``run``
    are skipped.
    """
    pkg = importlib.import_module(package)
    registry: Dict[str, ScriptUnit] = {}
    for info in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda i: i.name):
        if info.name.startswith("_"):
            continue
        module = importlib.import_module(f"{package}.{info.name}")
        get_doctypes = getattr(module, "get_doctypes", None)
        run = getattr(module, "run", None)
        if not callable(get_doctypes) or not callable(run):
            log.warning("Skipping %s: it does not define get_doctypes() and run()", info.name)
            continue
        registry[info.name] = ScriptUnit(info.name, get_doctypes, run)
    return registry


def scripts_location(package: str = SCRIPTS_PACKAGE) -> str:
    pkg = importlib.import_module(package)
    return str(Path(next(iter(pkg.__path__))))


def load_script(name: str, registry: Optional[Dict[str, ScriptUnit]] = None) -> ScriptUnit:
    if registry is None:
        registry = load_registry()
    try:
        return registry[name]
    except KeyError:
        raise ScriptNotFound(name, scripts_location()) from None


def script_doctypes(script: ScriptUnit) -> List[str]:
    return [str(d) for d in script.get_doctypes()]


async def run_script(
    script: ScriptUnit,
    *,
    url: str,
    token_path: Path,
    execute: bool = False,
    args: Sequence[str] = (),
    timeout: float | None = None,
    session_factory=create_session,
) -> None:
    """Create a session scoped to the script's doctypes and run it."""
    doctypes = script_doctypes(script)
    session = await session_factory(token_path, url, doctypes, timeout=timeout)
    dry_run = not execute
    log.info("Launching script %s...", script.name)
    log.info("Dry run : %s", dry_run)
    await script.run(session, dry_run, list(args))
