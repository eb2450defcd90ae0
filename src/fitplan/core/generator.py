"""
Plan generation.

The lifecycle controller depends only on the PlanGenerator protocol: an
async callable that turns a profile and its BMI into a WorkoutPlan, and
may fail with any exception.  TemplatePlanGenerator is the bundled
implementation: a deterministic, offline generator driven by the YAML
exercise library.
"""

from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from .config import (
    DEFAULT_BODYWEIGHT_KG,
    DEFAULT_SESSION_MINUTES,
    MIN_EXERCISES_PER_DAY,
    MIN_SESSION_MINUTES,
    SET_DURATION_MINUTES,
    WARMUP_MINUTES,
    WEEKDAY_ALIASES,
    WEEKDAYS,
)
from .engine.config_loader import load_library_config
from .errors import GenerationError
from .metrics import format_minutes, parse_minutes, parse_number
from .models import Exercise, MuscleGroup, PlanDay, Profile, WorkoutPlan


class PlanGenerator(Protocol):
    """Anything that can turn a profile into a weekly plan."""

    async def generate(self, profile: Profile, bmi: float) -> WorkoutPlan: ...


def weekday_position(label: str) -> int | None:
    """Return 0 for Monday ... 6 for Sunday, or None for an unknown label."""
    full = WEEKDAY_ALIASES.get(label.strip()[:3].lower())
    return WEEKDAYS.index(full) if full is not None else None


def order_days(free_days: list[str]) -> list[str]:
    """
    Order day labels Monday to Sunday.

    Labels that are not weekdays keep their relative order after the
    weekdays.  Labels themselves are returned unchanged.
    """
    def key(item: tuple[int, str]) -> tuple[int, int]:
        pos = weekday_position(item[1])
        return (pos, 0) if pos is not None else (len(WEEKDAYS), item[0])

    return [label for _, label in sorted(enumerate(free_days), key=key)]


def match_keyword(text: str, table: dict[str, Any], default: str) -> str:
    """Return the first table key whose keywords occur in *text*."""
    lowered = (text or "").lower()
    for key, entry in table.items():
        if any(kw in lowered for kw in entry.get("keywords", [])):
            return key
    return default


def available_equipment(text: str, table: dict[str, list[str]]) -> set[str]:
    """Equipment tags granted by a free-form equipment description."""
    lowered = (text or "").lower()
    tags = {"bodyweight"}
    for tag, keywords in table.items():
        if any(kw in lowered for kw in keywords):
            tags.add(tag)
    return tags


def validate_generated_plan(plan: Any, profile: Profile) -> WorkoutPlan:
    """
    Check a generator result before it is installed.

    Raises:
        GenerationError: If the result is not a plan, is empty, repeats a
            day label, or does not have one day per free day
    """
    if not isinstance(plan, WorkoutPlan):
        raise GenerationError(f"Generator returned {type(plan).__name__}, expected WorkoutPlan")
    if not plan.plan:
        raise GenerationError("Generator returned an empty plan")
    labels = plan.day_labels()
    if len(set(labels)) != len(labels):
        raise GenerationError(f"Generator returned duplicate days: {labels}")
    if len(labels) != len(profile.free_days):
        raise GenerationError(
            f"Generator returned {len(labels)} days for {len(profile.free_days)} free days"
        )
    return plan


class TemplatePlanGenerator:
    """
    Deterministic plan generator backed by the exercise library.

    One plan day per free day.  The split is chosen by the number of
    days, exercises by the equipment the profile mentions, sets and reps
    by the goal, and the exercise count by fitness level and the maximum
    session time.
    """

    def __init__(self, library: dict[str, Any] | None = None, data_root: Path | None = None):
        self._library = library
        self._data_root = data_root

    @property
    def library(self) -> dict[str, Any]:
        if self._library is None:
            self._library = load_library_config(self._data_root)
        return self._library

    async def generate(self, profile: Profile, bmi: float) -> WorkoutPlan:
        return self.build_plan(profile, bmi)

    def _split_for(self, n_days: int) -> list[dict[str, Any]]:
        splits = self.library["splits"]
        templates = splits.get(n_days) or splits.get(str(n_days))
        if not templates:
            # More days than any template: reuse the largest one
            keys = sorted(int(k) for k in splits)
            if not keys:
                raise GenerationError("Exercise library has no split templates")
            largest = keys[-1]
            templates = splits.get(largest) or splits.get(str(largest))
        return list(templates)

    def _build_groups(
        self,
        group_keys: list[str],
        per_group: int,
        budget: int,
        tags: set[str],
        sets: int,
        reps: str,
        usage: dict[str, int],
    ) -> list[MuscleGroup]:
        """Pick exercises for one day, rotating through each group's options."""
        groups: list[MuscleGroup] = []
        for key in group_keys:
            if budget <= 0:
                break
            entry = self.library["exercises"].get(key)
            if entry is None:
                logger.warning(f"Exercise library has no group {key!r}; skipped")
                continue
            candidates = [
                item for item in entry.get("items", [])
                if item.get("equipment", "bodyweight") in tags
            ]
            if not candidates:
                continue

            count = min(per_group, len(candidates), budget)
            start = usage.get(key, 0)
            chosen = [candidates[(start + i) % len(candidates)] for i in range(count)]
            usage[key] = start + count
            budget -= count

            groups.append(
                MuscleGroup(
                    name=entry.get("label", key.title()),
                    exercises=[
                        Exercise(
                            name=item["name"],
                            sets=str(sets),
                            reps=str(item.get("reps", reps)),
                            description=item.get("description", ""),
                            target_muscles=list(item.get("target_muscles", [])),
                        )
                        for item in chosen
                    ],
                )
            )
        return groups

    def build_plan(self, profile: Profile, bmi: float) -> WorkoutPlan:
        """
        Build the weekly plan synchronously.

        Args:
            profile: Intake data (free days, goal, level, equipment, ...)
            bmi: Body mass index, 0.0 when unknown

        Returns:
            WorkoutPlan with an empty completion ledger

        Raises:
            GenerationError: If the profile has no free days or the library
                is unusable
        """
        days = order_days(profile.free_days)
        if not days:
            raise GenerationError("No free days to plan")

        lib = self.library
        goal_key = match_keyword(profile.goal, lib["goals"], lib.get("default_goal", "general"))
        level_key = match_keyword(
            profile.fitness_level, lib["levels"], lib.get("default_level", "intermediate")
        )
        goal = lib["goals"][goal_key]
        level = lib["levels"][level_key]

        sets = max(1, int(goal["sets"]) + int(level.get("set_delta", 0)))
        per_group = max(1, int(level.get("exercises_per_group", 2)))

        session_minutes = parse_minutes(profile.max_session_time) or DEFAULT_SESSION_MINUTES
        session_minutes = max(session_minutes, MIN_SESSION_MINUTES)
        minutes_per_exercise = sets * SET_DURATION_MINUTES
        budget = max(
            MIN_EXERCISES_PER_DAY,
            int((session_minutes - WARMUP_MINUTES) // minutes_per_exercise),
        )

        tags = available_equipment(profile.equipment, lib.get("equipment", {}))
        templates = self._split_for(len(days))
        weight_kg = parse_number(profile.weight) or DEFAULT_BODYWEIGHT_KG
        met = float(goal.get("met", 5.0))

        usage: dict[str, int] = {}
        plan_days: list[PlanDay] = []
        for i, label in enumerate(days):
            template = templates[i % len(templates)]
            groups = self._build_groups(
                template["groups"], per_group, budget, tags, sets, str(goal["reps"]), usage
            )
            n_exercises = sum(len(g.exercises) for g in groups)
            minutes = min(
                session_minutes,
                int(round(WARMUP_MINUTES + n_exercises * minutes_per_exercise)),
            )
            plan_days.append(
                PlanDay(
                    day=label,
                    muscle_groups=groups,
                    focus=template["focus"],
                    approximate_time=format_minutes(minutes),
                    calories_burned=int(round(met * weight_kg * minutes / 60)),
                )
            )

        total_minutes = sum(parse_minutes(d.approximate_time) for d in plan_days)
        total_calories = sum(d.calories_burned for d in plan_days)

        bmi_note = f" (BMI {bmi:.1f})" if bmi > 0 else ""
        equipment_note = profile.equipment.strip() or "bodyweight only"
        summary = (
            f"A {len(plan_days)}-day {goal['label']} plan for a {level['label']} trainee"
            f"{bmi_note}. Sessions stay within {session_minutes} minutes"
            f" using {equipment_note}."
        )

        logger.debug(
            f"Template plan: goal={goal_key} level={level_key} days={len(plan_days)}"
            f" sets={sets} budget={budget} tags={sorted(tags)}"
        )

        return WorkoutPlan(
            plan=plan_days,
            summary=summary,
            total_weekly_time=format_minutes(total_minutes),
            total_weekly_calories_burned=total_calories,
            completed_days=[],
        )
