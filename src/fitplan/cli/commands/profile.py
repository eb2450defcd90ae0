"""Profile command: show or update the intake profile."""

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
def profile(
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
    Show your profile, or update any of its fields.

    Updating the profile does not change the current plan; run
    'generate' to build a new plan from it.
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
            session.update_profile(updated)
            views.print_success("Profile updated.")
        views.print_profile(session.profile)
        return 0

    run_session(user, data_dir, action)
