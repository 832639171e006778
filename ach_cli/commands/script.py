"""Migration script commands: ``script`` and ``ls-scripts``."""

from __future__ import annotations

import asyncio
import sys

from ..core import get_url_and_token_path, load_registry, load_script, pick_script, run_script, script_doctypes


def cmd_script(args):
    registry = load_registry()
    name = args.name
    if not name:
        name = pick_script(registry)
        if not name:
            print("No scripts available", file=sys.stderr)
            return 1
    script = load_script(name, registry)

    if args.doctypes:
        print(" ".join(script_doctypes(script)))
        return 0

    url, token_path = get_url_and_token_path(args)
    asyncio.run(
        run_script(
            script,
            url=url,
            token_path=token_path,
            execute=args.execute,
            args=args.script_args,
            timeout=args.auth_timeout,
        )
    )
    return 0


def cmd_ls_scripts(_args):
    for name in load_registry():
        print(name)
    return 0
