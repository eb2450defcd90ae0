"""
Pure metric computation functions.

All functions are pure and tolerate the free-form strings stored in
profiles and plans.
"""

import re

from .models import WorkoutPlan

_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")


def parse_number(text: str) -> float | None:
    """
    Extract the first number from a free-form string.

    Args:
        text: e.g. "82", "82.5 kg", "45-60 minutes"

    Returns:
        The first number found, or None if there is none
    """
    match = _NUMBER_RE.search(text or "")
    if match is None:
        return None
    return float(match.group(0).replace(",", "."))


def calculate_bmi(weight: str, height: str) -> float:
    """
    Calculate body mass index.

    BMI = weight_kg / (height_m)^2

    Args:
        weight: Body weight in kilograms
        height: Height in centimetres

    Returns:
        BMI rounded to one decimal, or 0.0 if either value is missing,
        malformed or non-positive
    """
    weight_kg = parse_number(weight)
    height_cm = parse_number(height)
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        return 0.0
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def parse_minutes(text: str) -> int:
    """
    Parse a duration like "45 minutes" or "1 hour 15 minutes" into minutes.

    A bare number is taken as minutes.  Returns 0 when nothing parses.
    """
    text = (text or "").lower()
    hours = re.search(r"(\d+(?:\.\d+)?)\s*(?:h|hr|hrs|hour|hours)\b", text)
    mins = re.search(r"(\d+)\s*(?:m|min|mins|minute|minutes)\b", text)
    if hours or mins:
        total = 0.0
        if hours:
            total += float(hours.group(1)) * 60
        if mins:
            total += int(mins.group(1))
        return int(round(total))
    value = parse_number(text)
    return int(round(value)) if value is not None else 0


def format_minutes(minutes: int) -> str:
    """Format minutes as "50 minutes" or "3 hours 20 minutes"."""
    if minutes < 60:
        return f"{minutes} minutes"
    hours, rest = divmod(minutes, 60)
    unit = "hour" if hours == 1 else "hours"
    if rest == 0:
        return f"{hours} {unit}"
    return f"{hours} {unit} {rest} minutes"


def plan_totals(plan: WorkoutPlan) -> tuple[int, float]:
    """
    Sum the per-day duration and calories of a plan.

    Returns:
        (total minutes, total calories burned)
    """
    minutes = sum(parse_minutes(d.approximate_time) for d in plan.plan)
    calories = sum(float(d.calories_burned or 0) for d in plan.plan)
    return minutes, calories


def completion_ratio(plan: WorkoutPlan) -> float:
    """Fraction of plan days marked complete (0.0 for an empty plan)."""
    if not plan.plan:
        return 0.0
    return len(set(plan.completed_days)) / len(plan.plan)
