"""Interactive prompts using InquirerPy."""

from __future__ import annotations

import sys
from typing import Iterable, Optional

from InquirerPy import inquirer


def _execute(prompt):
    """Execute a prompt and handle ``Ctrl-C`` gracefully."""
    try:
        return prompt.execute()
    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        sys.exit(1)


def confirm_destructive(title: str, items: Iterable[str], *, assume_yes: bool = False) -> bool:
    """Ask before a destructive operation; ``assume_yes`` skips the prompt."""
    if assume_yes:
        return True
    listing = "\n".join(f"* {x}" for x in items)
    print(f"{title}\n\n{listing}\n")
    return bool(_execute(inquirer.confirm(message="Proceed?", default=False)))


def pick_script(names: Iterable[str]) -> Optional[str]:
    """Let the user choose a script when none was given on the command line."""
    choices = list(names)
    if not choices:
        return None
    return _execute(inquirer.fuzzy(message="Script to run:", choices=choices))
