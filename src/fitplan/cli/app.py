"""Shared Typer app object, shared option types, and session utilities."""

import asyncio
import os
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Awaitable, Callable, Optional

import typer

from ..core.config import DEFAULT_USERNAME, WEEKDAY_ALIASES, get_data_root
from ..core.errors import FitPlanError, ValidationError
from ..core.generator import TemplatePlanGenerator
from ..core.models import Profile
from ..io.profile_store import JsonProfileStore
from ..session import PlanSession
from . import views

# Shared options used across all commands
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", "-u", help="Username (default: $FITPLAN_USER or 'default')"),
]
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Storage directory (default: $FITPLAN_HOME or ~/.fitplan)"),
]

# Profile field options shared by `profile` and `generate`
NameOption = Annotated[Optional[str], typer.Option("--name", help="Your name")]
WeightOption = Annotated[Optional[str], typer.Option("--weight", help="Body weight in kg")]
HeightOption = Annotated[Optional[str], typer.Option("--height", help="Height in cm")]
FreeDaysOption = Annotated[
    Optional[str],
    typer.Option("--free-days", help="Comma-separated training days, e.g. Mon,Wed,Fri"),
]
GenderOption = Annotated[Optional[str], typer.Option("--gender", help="Gender")]
LevelOption = Annotated[
    Optional[str],
    typer.Option("--fitness-level", help="beginner, intermediate or advanced"),
]
GoalOption = Annotated[Optional[str], typer.Option("--goal", help="Primary goal, e.g. 'build muscle'")]
EquipmentOption = Annotated[
    Optional[str],
    typer.Option("--equipment", help="Available equipment, e.g. 'dumbbells, bands'"),
]
SessionTimeOption = Annotated[
    Optional[str],
    typer.Option("--max-session-time", help="Maximum minutes per session"),
]

app = typer.Typer(
    name="fitplan",
    help="Weekly workout planner: generate, edit and track your training week.",
    no_args_is_help=True,
)

SessionAction = Callable[[PlanSession], Awaitable[Optional[int]]]


def resolve_user(user: str | None) -> str:
    return user or os.environ.get("FITPLAN_USER") or DEFAULT_USERNAME


def make_session(data_dir: Path | None) -> PlanSession:
    """Build a session over the JSON store at *data_dir*."""
    root = data_dir if data_dir is not None else get_data_root()
    return PlanSession(JsonProfileStore(root), TemplatePlanGenerator(data_root=root))


def run_session(user: str | None, data_dir: Path | None, action: SessionAction) -> None:
    """
    Open the user's session, run *action*, flush writes and exit.

    *action* returns an exit code (None means 0).  A load failure prints the
    load error and exits with 1.
    """

    async def _main() -> int:
        session = make_session(data_dir)
        try:
            if not await session.open(resolve_user(user)):
                views.print_error(session.error or "Could not load your data.")
                return 1
            try:
                return await action(session) or 0
            finally:
                await session.close()
        except FitPlanError as e:
            views.print_error(str(e))
            return 1

    code = asyncio.run(_main())
    if code:
        raise typer.Exit(code)


def parse_free_days(text: str) -> list[str]:
    """
    Parse a comma-separated list of weekdays into full labels.

    Accepts full names or any prefix of at least three letters.

    Raises:
        ValidationError: If a day is not recognised
    """
    days: list[str] = []
    for raw in text.split(","):
        raw = raw.strip()
        if not raw:
            continue
        full = WEEKDAY_ALIASES.get(raw[:3].lower())
        if full is None or not full.lower().startswith(raw.lower()):
            raise ValidationError(f"Unknown day: {raw!r}")
        days.append(full)
    return days


def apply_profile_options(profile: Profile, **fields: str | None) -> Profile:
    """Return *profile* with every non-None option applied."""
    changes = {k: v for k, v in fields.items() if v is not None}
    if "free_days" in changes:
        changes["free_days"] = parse_free_days(changes["free_days"])
    if not changes:
        return profile
    return replace(profile, **changes)
