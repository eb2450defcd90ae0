"""Workout commands: log and history."""

from typing import Annotated, Optional

import typer

from ...core.errors import ValidationError
from ...core.generator import weekday_position
from ...core.models import WorkoutPlan
from ...session import PlanSession
from .. import views
from ..app import DataDirOption, UserOption, app, run_session


def resolve_day(plan: WorkoutPlan, day: str) -> int:
    """
    Resolve a 1-based day number or a day label to a 0-based plan index.

    Labels match case-insensitively, and weekday abbreviations match the
    full weekday ("wed" finds "Wednesday").

    Raises:
        ValidationError: If nothing in the plan matches
    """
    text = day.strip()
    if text.isdigit():
        index = int(text) - 1
        if not 0 <= index < len(plan.plan):
            raise ValidationError(f"Day {text} out of range (1-{len(plan.plan)})")
        return index

    labels = plan.day_labels()
    for i, label in enumerate(labels):
        if label.lower() == text.lower():
            return i
    pos = weekday_position(text)
    if pos is not None:
        for i, label in enumerate(labels):
            if weekday_position(label) == pos:
                return i
    raise ValidationError(f"No plan day matches {day!r}. Plan days: {', '.join(labels)}")


@app.command()
def log(
    day: Annotated[str, typer.Argument(help="Plan day to log: 1-based number or day name")],
    user: UserOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Log today's workout for a plan day."""

    async def action(session: PlanSession) -> int:
        if session.plan is None:
            views.print_error("No plan to log against. Run 'fitplan generate' first.")
            return 1

        index = resolve_day(session.plan, day)
        label = session.plan.plan[index].day
        already = label in session.plan.completed_days

        became_complete = await session.log_workout(index)
        if session.error:
            views.print_error(session.error)
            return 1

        views.print_success(f"Logged {label}.")
        if already:
            views.print_info(f"{label} was already marked complete; added another log entry.")
        if became_complete:
            views.print_week_complete()
        elif not session.is_week_complete:
            done = len(set(session.plan.completed_days))
            views.print_info(f"{done}/{len(session.plan.plan)} workouts done this week.")
        return 0

    run_session(user, data_dir, action)


@app.command()
def history(
    user: UserOption = None,
    data_dir: DataDirOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Show only the N most recent workouts"),
    ] = None,
) -> None:
    """Show logged workouts, most recent first."""

    async def action(session: PlanSession) -> int:
        entries = session.history if limit is None else session.history[:limit]
        views.print_history(entries)
        return 0

    run_session(user, data_dir, action)
