"""Command handlers for ach CLI."""

from .export import cmd_export
from .import_cmd import cmd_import
from .drop import cmd_drop, cmd_delete
from .script import cmd_script, cmd_ls_scripts

__all__ = [
    "cmd_export",
    "cmd_import",
    "cmd_drop",
    "cmd_delete",
    "cmd_script",
    "cmd_ls_scripts",
]
