"""
CLI entry point using Typer.

Commands:
- profile: Show or update the intake profile
- generate: Generate a weekly plan
- show: Display the plan
- log: Log a workout for a plan day
- history: Display logged workouts
- status: Current week progress
- edit: Edit the plan on a draft copy
- reset: Clear plan and profile to start a new week
"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..logger import setup_logger
from . import commands  # noqa: F401  registers every command on `app`
from .app import app


@app.callback()
def main_callback(
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log debug output to stderr"),
    ] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also write logs to this file"),
    ] = None,
) -> None:
    """
    Weekly workout planner: generate, edit and track your training week.
    """
    setup_logger("DEBUG" if debug else "WARNING", log_file)


__all__ = ["app"]


if __name__ == "__main__":
    app()
