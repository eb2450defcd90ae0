"""
JSON serialization for fitplan data models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
from typing import Any

from loguru import logger

from ..core.errors import ValidationError
from ..core.models import (
    Exercise,
    MuscleGroup,
    PlanDay,
    Profile,
    StoredProfile,
    WorkoutLogEntry,
    WorkoutPlan,
)


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError(f"{context}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise ValidationError(f"{context}: missing field {key!r}")
    return data[key]


def _str_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def validate_number(value: Any, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is not a number or is negative
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    """Convert Profile to JSON-compatible dict."""
    return {
        "name": profile.name,
        "weight": profile.weight,
        "height": profile.height,
        "free_days": list(profile.free_days),
        "gender": profile.gender,
        "fitness_level": profile.fitness_level,
        "goal": profile.goal,
        "equipment": profile.equipment,
        "max_session_time": profile.max_session_time,
    }


def dict_to_profile(data: dict[str, Any]) -> Profile:
    """
    Convert dict to Profile.

    Missing text fields default to empty strings.

    Raises:
        ValidationError: If data is not an object or free_days is not a list
    """
    if not isinstance(data, dict):
        raise ValidationError(f"profile: expected an object, got {type(data).__name__}")
    return Profile(
        name=str(data.get("name", "")),
        weight=str(data.get("weight", "")),
        height=str(data.get("height", "")),
        free_days=_str_list(data.get("free_days", []), "free_days"),
        gender=str(data.get("gender", "")),
        fitness_level=str(data.get("fitness_level", "")),
        goal=str(data.get("goal", "")),
        equipment=str(data.get("equipment", "")),
        max_session_time=str(data.get("max_session_time", "")),
    )


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    return {
        "name": exercise.name,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "description": exercise.description,
        "target_muscles": list(exercise.target_muscles),
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    return Exercise(
        name=str(_require(data, "name", "exercise")),
        sets=str(data.get("sets", "")),
        reps=str(data.get("reps", "")),
        description=str(data.get("description", "")),
        target_muscles=_str_list(data.get("target_muscles", []), "target_muscles"),
    )


def plan_day_to_dict(day: PlanDay) -> dict[str, Any]:
    return {
        "day": day.day,
        "muscle_groups": [
            {"name": g.name, "exercises": [exercise_to_dict(e) for e in g.exercises]}
            for g in day.muscle_groups
        ],
        "focus": day.focus,
        "approximate_time": day.approximate_time,
        "calories_burned": day.calories_burned,
    }


def dict_to_plan_day(data: dict[str, Any]) -> PlanDay:
    label = str(_require(data, "day", "plan day"))
    groups_raw = data.get("muscle_groups", [])
    if not isinstance(groups_raw, list):
        raise ValidationError("plan day: muscle_groups must be a list")
    groups = []
    for g in groups_raw:
        exercises_raw = _require(g, "exercises", "muscle group")
        if not isinstance(exercises_raw, list):
            raise ValidationError("muscle group: exercises must be a list")
        groups.append(
            MuscleGroup(
                name=str(_require(g, "name", "muscle group")),
                exercises=[dict_to_exercise(e) for e in exercises_raw],
            )
        )
    return PlanDay(
        day=label,
        muscle_groups=groups,
        focus=str(data.get("focus", "")),
        approximate_time=str(data.get("approximate_time", "")),
        calories_burned=validate_number(data.get("calories_burned", 0), "calories_burned"),
    )


def workout_plan_to_dict(plan: WorkoutPlan) -> dict[str, Any]:
    """Convert WorkoutPlan to JSON-compatible dict."""
    return {
        "plan": [plan_day_to_dict(d) for d in plan.plan],
        "summary": plan.summary,
        "total_weekly_time": plan.total_weekly_time,
        "total_weekly_calories_burned": plan.total_weekly_calories_burned,
        "completed_days": list(plan.completed_days),
    }


def dict_to_workout_plan(data: dict[str, Any]) -> WorkoutPlan:
    """
    Convert dict to WorkoutPlan.

    The completion ledger is repaired rather than rejected: duplicates
    collapse, and labels that are not plan days are dropped with a warning.

    Raises:
        ValidationError: If the plan structure is invalid
    """
    days_raw = _require(data, "plan", "workout plan")
    if not isinstance(days_raw, list):
        raise ValidationError("workout plan: plan must be a list")
    days = [dict_to_plan_day(d) for d in days_raw]

    labels = {d.day for d in days}
    completed = list(dict.fromkeys(_str_list(data.get("completed_days", []), "completed_days")))
    unknown = [c for c in completed if c not in labels]
    if unknown:
        logger.warning(f"Dropping completed days not in plan: {unknown}")
        completed = [c for c in completed if c in labels]

    return WorkoutPlan(
        plan=days,
        summary=str(data.get("summary", "")),
        total_weekly_time=str(data.get("total_weekly_time", "")),
        total_weekly_calories_burned=validate_number(
            data.get("total_weekly_calories_burned", 0), "total_weekly_calories_burned"
        ),
        completed_days=completed,
    )


# ---------------------------------------------------------------------------
# Stored profile and log entries
# ---------------------------------------------------------------------------


def stored_profile_to_dict(stored: StoredProfile) -> dict[str, Any]:
    return {
        "username": stored.username,
        "user_data": profile_to_dict(stored.user_data),
        "workout_plan": (
            workout_plan_to_dict(stored.workout_plan) if stored.workout_plan is not None else None
        ),
    }


def dict_to_stored_profile(data: dict[str, Any]) -> StoredProfile:
    plan_raw = data.get("workout_plan") if isinstance(data, dict) else None
    return StoredProfile(
        username=str(_require(data, "username", "stored profile")),
        user_data=dict_to_profile(_require(data, "user_data", "stored profile")),
        workout_plan=dict_to_workout_plan(plan_raw) if plan_raw is not None else None,
    )


def log_entry_to_dict(entry: WorkoutLogEntry) -> dict[str, Any]:
    return {
        "date": entry.date,
        "day_name": entry.day_name,
        "focus": entry.focus,
        "calories_burned": entry.calories_burned,
    }


def dict_to_log_entry(data: dict[str, Any]) -> WorkoutLogEntry:
    return WorkoutLogEntry(
        date=str(_require(data, "date", "workout log")),
        day_name=str(_require(data, "day_name", "workout log")),
        focus=str(data.get("focus", "")),
        calories_burned=validate_number(data.get("calories_burned", 0), "calories_burned"),
    )


def log_entry_to_json_line(entry: WorkoutLogEntry, username: str) -> str:
    """Serialize a log entry as one JSONL line (without newline)."""
    data = log_entry_to_dict(entry)
    data["username"] = username
    return json.dumps(data, separators=(",", ":"))
