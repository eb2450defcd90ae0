"""
Completion tracking for the weekly plan.

Derives week-completion status and applies the rules for the
completed-day ledger.  The committed plan is never mutated in place: a
successful log produces an updated copy, which the caller installs only
after the store has accepted the log entry.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from loguru import logger

from .errors import ValidationError, WorkoutLogError
from .models import WorkoutLogEntry, WorkoutPlan

if TYPE_CHECKING:
    from ..io.profile_store import ProfileStore


@dataclass
class LogOutcome:
    """Everything a successful log action produces."""

    entry: WorkoutLogEntry
    plan: WorkoutPlan  # committed plan with the updated ledger
    already_completed: bool
    became_complete: bool
    next_day_index: int | None  # None when the logged day was the last one


def is_week_complete(plan: WorkoutPlan | None) -> bool:
    """True iff the plan has days and every day is in the ledger."""
    if plan is None or not plan.plan:
        return False
    return len(set(plan.completed_days)) == len(plan.plan)


def prepare_log(
    plan: WorkoutPlan | None,
    day_index: int,
    now: datetime | None = None,
) -> LogOutcome:
    """
    Compute the result of logging a day, without side effects.

    Logging a day that is already complete still yields a log entry, but
    the ledger is unchanged and ``became_complete`` is False.

    Args:
        plan: Committed plan
        day_index: 0-based index of the day being logged
        now: Timestamp for the log entry (default: current UTC time)

    Returns:
        LogOutcome with the new entry and the updated plan copy

    Raises:
        ValidationError: If there is no plan or day_index is out of range
    """
    if plan is None:
        raise ValidationError("No workout plan to log against")
    if not 0 <= day_index < len(plan.plan):
        raise ValidationError(
            f"Day index {day_index} out of range (0-{len(plan.plan) - 1})"
        )

    plan_day = plan.plan[day_index]
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    entry = WorkoutLogEntry(
        date=timestamp,
        day_name=plan_day.day,
        focus=plan_day.focus,
        calories_burned=plan_day.calories_burned,
    )

    completed = list(dict.fromkeys(plan.completed_days))
    already = plan_day.day in completed
    became_complete = not already and len(completed) + 1 == len(plan.plan)
    if not already:
        completed.append(plan_day.day)

    next_index = day_index + 1 if day_index < len(plan.plan) - 1 else None

    return LogOutcome(
        entry=entry,
        plan=replace(plan, completed_days=completed),
        already_completed=already,
        became_complete=became_complete,
        next_day_index=next_index,
    )


class CompletionTracker:
    """Logs workouts to the store and updates the completion ledger."""

    def __init__(self, store: "ProfileStore"):
        self.store = store

    async def log_workout(
        self,
        username: str,
        plan: WorkoutPlan | None,
        day_index: int,
        now: datetime | None = None,
    ) -> LogOutcome:
        """
        Append a log entry for one day and return the updated plan.

        The ledger change is only returned once the store append has
        succeeded, so the ledger and the stored log never diverge.

        Raises:
            ValidationError: If there is no plan or day_index is out of range
            WorkoutLogError: If the store rejects the entry
        """
        outcome = prepare_log(plan, day_index, now)
        try:
            await self.store.add_workout_log(username, outcome.entry)
        except Exception as e:
            logger.error(f"Failed to log workout for {username!r} ({outcome.entry.day_name}): {e}")
            raise WorkoutLogError(f"Could not append workout log: {e}") from e

        logger.info(
            f"Logged {outcome.entry.day_name} for {username!r}"
            f" (became_complete={outcome.became_complete})"
        )
        return outcome
