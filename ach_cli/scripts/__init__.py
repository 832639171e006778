"""Migration scripts runnable with ``ach script <name>``.

Every public module here is picked up by
:func:`ach_cli.core.harness.load_registry`.
"""
