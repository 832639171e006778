"""Command line entry point for ach CLI."""

from __future__ import annotations

import argparse
import logging
import os
import sys

# Prefer absolute imports so the module works when installed as a package.
# When running directly from a source checkout fall back to relative imports.
try:  # pragma: no cover - exercised indirectly in tests
    from ach_cli import __version__
    from ach_cli.core import DEFAULT_URL, AchError, PlatformError
    from ach_cli.commands import (
        cmd_export,
        cmd_import,
        cmd_drop,
        cmd_delete,
        cmd_script,
        cmd_ls_scripts,
    )
except ModuleNotFoundError:  # pragma: no cover
    if __package__ in (None, ""):
        sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        __package__ = "ach_cli"
    from . import __version__
    from .core import DEFAULT_URL, AchError, PlatformError
    from .commands import (
        cmd_export,
        cmd_import,
        cmd_drop,
        cmd_delete,
        cmd_script,
        cmd_ls_scripts,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ach", description="Admin CLI for Cozy-style document platforms")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("-t", "--token", help="Token file to use (created by the OAuth flow when missing)")
    parser.add_argument("-u", "--url", help=f"URL of the instance to use (default: {DEFAULT_URL})")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation on sensitive operations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--auth-timeout",
        type=float,
        default=None,
        help="Give up waiting for the OAuth redirect after this many seconds (default: wait forever)",
    )
    sub = parser.add_subparsers(dest="cmd")

    p_exp = sub.add_parser("export", help="Export doctypes (comma separated) to a JSON file, '-' for stdout")
    p_exp.add_argument("doctypes", help="Doctypes separated by commas")
    p_exp.add_argument("filename", help="Output file, '-' for stdout")
    p_exp.set_defaults(func=cmd_export)

    p_imp = sub.add_parser("import", help="Import documents from an export file")
    p_imp.add_argument("filepath", help="JSON file mapping doctypes to documents")
    p_imp.set_defaults(func=cmd_import)

    p_drop = sub.add_parser("drop", help="Delete all documents of the given doctypes. For real.")
    p_drop.add_argument("doctypes", nargs="+")
    p_drop.set_defaults(func=cmd_drop)

    p_del = sub.add_parser("delete", help="Delete document(s)")
    p_del.add_argument("doctype")
    p_del.add_argument("ids", nargs="+")
    p_del.set_defaults(func=cmd_delete)

    p_script = sub.add_parser(
        "script",
        help="Launch a migration script (dry run unless -x); script options go after --",
    )
    p_script.add_argument("name", nargs="?", help="Script name, see ls-scripts")
    p_script.add_argument("-x", "--execute", action="store_true", help="Execute the script (disable dry run)")
    p_script.add_argument("-d", "--doctypes", action="store_true", help="Print necessary doctypes (useful for automation)")
    p_script.set_defaults(func=cmd_script)

    p_ls = sub.add_parser("ls-scripts", help="List all scripts, useful for autocompletion")
    p_ls.set_defaults(func=cmd_ls_scripts)

    return parser


def _report(e: AchError) -> None:
    if isinstance(e, PlatformError) and e.status == 401:
        print(f"Authentication failed: {e.message} (remove the token file to authorize again)", file=sys.stderr)
    elif isinstance(e, PlatformError) and e.status == 403:
        print(f"Forbidden: {e.message} (is the token scoped for this doctype?)", file=sys.stderr)
    else:
        print(f"Error: {e}", file=sys.stderr)


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    # everything after "--" belongs to the script being launched
    script_args: list[str] = []
    if "--" in argv:
        idx = argv.index("--")
        argv, script_args = argv[:idx], argv[idx + 1:]

    parser = build_parser()
    args = parser.parse_args(argv)
    args.script_args = script_args

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.cmd:
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except AchError as e:
        _report(e)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
