"""Planning commands: generate, show, status, reset."""

from typing import Annotated, Optional

import typer

from ...session import PlanSession
from .. import views
from ..app import (
    DataDirOption,
    EquipmentOption,
    FreeDaysOption,
    GenderOption,
    GoalOption,
    HeightOption,
    LevelOption,
    NameOption,
    SessionTimeOption,
    UserOption,
    WeightOption,
    app,
    apply_profile_options,
    run_session,
)


@app.command()
def generate(
    user: UserOption = None,
    data_dir: DataDirOption = None,
    name: NameOption = None,
    weight: WeightOption = None,
    height: HeightOption = None,
    free_days: FreeDaysOption = None,
    gender: GenderOption = None,
    fitness_level: LevelOption = None,
    goal: GoalOption = None,
    equipment: EquipmentOption = None,
    max_session_time: SessionTimeOption = None,
) -> None:
    """
    Generate a new weekly plan.

    Any profile option given is saved first.  The new plan replaces the
    current one and starts with no completed days.
    """

    async def action(session: PlanSession) -> int:
        updated = apply_profile_options(
            session.profile,
            name=name,
            weight=weight,
            height=height,
            free_days=free_days,
            gender=gender,
            fitness_level=fitness_level,
            goal=goal,
            equipment=equipment,
            max_session_time=max_session_time,
        )
        if updated is not session.profile:
            ok = await session.regenerate_with(updated)
        else:
            ok = await session.generate()

        if not ok:
            views.print_error(session.error or "Plan generation failed.")
            return 1

        views.print_success(f"Generated a {len(session.plan.plan)}-day plan.")
        views.print_plan(session.plan, session.active_day)
        return 0

    run_session(user, data_dir, action)


@app.command()
def show(
    user: UserOption = None,
    data_dir: DataDirOption = None,
    day: Annotated[
        Optional[int],
        typer.Option("--day", help="Plan day to show in detail (1-based)"),
    ] = None,
) -> None:
    """Show the current plan."""

    async def action(session: PlanSession) -> int:
        if session.plan is None:
            views.print_info("No plan yet. Run 'fitplan generate' to create one.")
            return 0

        if day is not None:
            index = session.select_day(day - 1)
        else:
            # Default to the first day not yet done
            done = set(session.plan.completed_days)
            pending = [i for i, d in enumerate(session.plan.plan) if d.day not in done]
            index = session.select_day(pending[0] if pending else 0)
        views.print_plan(session.plan, index)
        return 0

    run_session(user, data_dir, action)


@app.command()
def status(
    user: UserOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show plan progress for this week."""

    async def action(session: PlanSession) -> int:
        views.print_status(
            session.username or "",
            session.mode.value.replace("_", " "),
            session.plan,
            len(session.history),
        )
        return 0

    run_session(user, data_dir, action)


@app.command()
def reset(
    user: UserOption = None,
    data_dir: DataDirOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation"),
    ] = False,
) -> None:
    """
    Start a new week: clear the plan and every profile field except name.

    The workout history is kept.
    """

    async def action(session: PlanSession) -> int:
        if not yes and not views.confirm_action("Clear the current plan and start a new week?"):
            views.print_info("Cancelled.")
            return 0
        session.reset_for_new_plan()
        if session.consume_new_week_message():
            views.print_new_week_message()
        return 0

    run_session(user, data_dir, action)
