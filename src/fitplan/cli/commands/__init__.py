"""
CLI command modules.

Importing this package registers every command on the shared Typer app.
"""

from . import editing, planning, profile, sessions  # noqa: F401
