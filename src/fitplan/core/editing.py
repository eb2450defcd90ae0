"""
Edit overlay for the committed plan.

Editing happens on a draft: a deep, independent copy of the committed
plan.  The draft is changed only through a closed set of typed edit
commands plus add/delete of exercises, and replaces the committed plan
only on commit.  At most one draft exists at a time.

Edit targets:
    SetPlanField      summary, total_weekly_time, total_weekly_calories_burned
    SetDayField       focus, approximate_time, calories_burned
    SetGroupName      muscle group name
    SetExerciseField  name, sets, reps, description, target_muscles

Day labels are not editable: the completion ledger is keyed by them.
"""

import math
from dataclasses import dataclass
from typing import Any, Sequence, Union

from loguru import logger

from .config import (
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_EXERCISE_NAME,
    PLACEHOLDER_REPS,
    PLACEHOLDER_SETS,
    PLACEHOLDER_TARGET_MUSCLES,
)
from .errors import ValidationError
from .models import Exercise, MuscleGroup, PlanDay, WorkoutPlan

PLAN_TEXT_FIELDS = frozenset({"summary", "total_weekly_time"})
PLAN_NUMBER_FIELDS = frozenset({"total_weekly_calories_burned"})
DAY_TEXT_FIELDS = frozenset({"focus", "approximate_time"})
DAY_NUMBER_FIELDS = frozenset({"calories_burned"})
EXERCISE_TEXT_FIELDS = frozenset({"name", "sets", "reps", "description"})
EXERCISE_LIST_FIELDS = frozenset({"target_muscles"})


def _parse_number(value: Any, name: str) -> int | float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got {value!r}") from None


def _as_number(value: Any, name: str) -> int | float:
    """
    Coerce a value to a finite, non-negative int, falling back to float.

    Same rules the store applies on load, so a committed edit always reloads.
    """
    number = _parse_number(value, name)
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    if number < 0:
        raise ValidationError(f"{name} must be non-negative, got {number}")
    return number


def _as_label_list(value: Any) -> list[str]:
    """Accept a list of labels or a comma-separated string."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ValidationError(f"target_muscles must be a list or string, got {value!r}")
    return [item.strip() for item in items if item.strip()]


def _coerce(name: str, value: Any) -> Any:
    if name in PLAN_NUMBER_FIELDS or name in DAY_NUMBER_FIELDS:
        return _as_number(value, name)
    if name in EXERCISE_LIST_FIELDS:
        return _as_label_list(value)
    return str(value)


@dataclass(frozen=True)
class SetPlanField:
    field: str
    value: Any

    def __post_init__(self) -> None:
        if self.field not in PLAN_TEXT_FIELDS | PLAN_NUMBER_FIELDS:
            raise ValidationError(f"Plan field {self.field!r} is not editable")


@dataclass(frozen=True)
class SetDayField:
    day_index: int
    field: str
    value: Any

    def __post_init__(self) -> None:
        if self.field not in DAY_TEXT_FIELDS | DAY_NUMBER_FIELDS:
            raise ValidationError(f"Day field {self.field!r} is not editable")


@dataclass(frozen=True)
class SetGroupName:
    day_index: int
    group_index: int
    value: Any


@dataclass(frozen=True)
class SetExerciseField:
    day_index: int
    group_index: int
    exercise_index: int
    field: str
    value: Any

    def __post_init__(self) -> None:
        if self.field not in EXERCISE_TEXT_FIELDS | EXERCISE_LIST_FIELDS:
            raise ValidationError(f"Exercise field {self.field!r} is not editable")


EditCommand = Union[SetPlanField, SetDayField, SetGroupName, SetExerciseField]


def _index(part: Any) -> int:
    if isinstance(part, bool):
        raise ValidationError(f"Expected an index, got {part!r}")
    if isinstance(part, int):
        return part
    if isinstance(part, str) and part.lstrip("-").isdigit():
        return int(part)
    raise ValidationError(f"Expected an index, got {part!r}")


def parse_edit_path(path: Sequence[Any], value: Any) -> EditCommand:
    """
    Turn a key/index path into a typed edit command.

    Accepted shapes:
        (field,)
        ("plan", day, field)
        ("plan", day, "muscle_groups", group, "name")
        ("plan", day, "muscle_groups", group, "exercises", exercise, field)

    Args:
        path: Keys and indices locating the value in the plan
        value: New value

    Returns:
        The matching edit command

    Raises:
        ValidationError: If the path does not name an editable field
    """
    parts = list(path)
    n = len(parts)

    if n == 1:
        return SetPlanField(str(parts[0]), value)
    if n >= 3 and parts[0] == "plan":
        day = _index(parts[1])
        if n == 3:
            return SetDayField(day, str(parts[2]), value)
        if n == 5 and parts[2] == "muscle_groups" and parts[4] == "name":
            return SetGroupName(day, _index(parts[3]), value)
        if n == 7 and parts[2] == "muscle_groups" and parts[4] == "exercises":
            return SetExerciseField(day, _index(parts[3]), _index(parts[5]), str(parts[6]), value)

    raise ValidationError(f"Not an editable plan path: {'.'.join(str(p) for p in parts)}")


def split_path(text: str) -> tuple[Any, ...]:
    """Split a dotted path ("plan.0.focus") into keys and integer indices."""
    parts: list[Any] = []
    for raw in text.strip().split("."):
        if not raw:
            raise ValidationError(f"Empty segment in path {text!r}")
        parts.append(int(raw) if raw.isdigit() else raw)
    return tuple(parts)


def _in_range(index: int, seq: Sequence) -> bool:
    return 0 <= index < len(seq)


def new_placeholder_exercise() -> Exercise:
    """Exercise appended by add_exercise."""
    return Exercise(
        name=PLACEHOLDER_EXERCISE_NAME,
        sets=PLACEHOLDER_SETS,
        reps=PLACEHOLDER_REPS,
        description=PLACEHOLDER_DESCRIPTION,
        target_muscles=list(PLACEHOLDER_TARGET_MUSCLES),
    )


class EditOverlay:
    """
    Owns the single edit draft of the committed plan.

    All mutators return True when the change was applied and False when
    it was ignored (no draft, or an index out of range).
    """

    def __init__(self) -> None:
        self.draft: WorkoutPlan | None = None

    @property
    def is_editing(self) -> bool:
        return self.draft is not None

    def start_edit(self, committed: WorkoutPlan | None) -> WorkoutPlan | None:
        """
        Create a draft from the committed plan.

        A stale draft is discarded first, never merged.  Does nothing when
        there is no committed plan.

        Returns:
            The new draft, or None when there is no committed plan
        """
        if committed is None:
            return None
        if self.draft is not None:
            logger.debug("Discarding stale draft before starting a new edit")
        self.draft = committed.clone()
        return self.draft

    def discard(self) -> None:
        """Drop the draft.  The committed plan is unaffected."""
        self.draft = None

    def commit(self) -> WorkoutPlan | None:
        """
        Hand over the draft as the new committed plan and drop the reference.

        Returns:
            The committed plan, or None if no edit was in progress

        Raises:
            ValidationError: If the draft violates a plan invariant
        """
        draft = self.draft
        if draft is None:
            return None
        try:
            draft.check_invariants()
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.draft = None
        return draft

    # -- mutations ---------------------------------------------------------

    def _day(self, day_index: int) -> PlanDay | None:
        if self.draft is None or not _in_range(day_index, self.draft.plan):
            return None
        return self.draft.plan[day_index]

    def _group(self, day_index: int, group_index: int) -> MuscleGroup | None:
        day = self._day(day_index)
        if day is None or not _in_range(group_index, day.muscle_groups):
            return None
        return day.muscle_groups[group_index]

    def _ignored(self, what: str) -> bool:
        if self.draft is None:
            logger.debug(f"{what}: no edit in progress")
        else:
            logger.debug(f"{what}: index out of range, ignored")
        return False

    def apply(self, command: EditCommand) -> bool:
        """Apply one typed edit command to the draft."""
        if isinstance(command, SetPlanField):
            if self.draft is None:
                return self._ignored("set plan field")
            setattr(self.draft, command.field, _coerce(command.field, command.value))
            return True

        if isinstance(command, SetDayField):
            day = self._day(command.day_index)
            if day is None:
                return self._ignored("set day field")
            setattr(day, command.field, _coerce(command.field, command.value))
            return True

        if isinstance(command, SetGroupName):
            group = self._group(command.day_index, command.group_index)
            if group is None:
                return self._ignored("set group name")
            group.name = str(command.value)
            return True

        if isinstance(command, SetExerciseField):
            group = self._group(command.day_index, command.group_index)
            if group is None or not _in_range(command.exercise_index, group.exercises):
                return self._ignored("set exercise field")
            exercise = group.exercises[command.exercise_index]
            setattr(exercise, command.field, _coerce(command.field, command.value))
            return True

        raise ValidationError(f"Unknown edit command: {command!r}")

    def set_field(self, path: Sequence[Any], value: Any) -> bool:
        """Replace the value at ``path`` in the draft (see parse_edit_path)."""
        return self.apply(parse_edit_path(path, value))

    def delete_exercise(self, day_index: int, group_index: int, exercise_index: int) -> bool:
        """Remove one exercise; out-of-range coordinates leave the draft unchanged."""
        group = self._group(day_index, group_index)
        if group is None or not _in_range(exercise_index, group.exercises):
            return self._ignored("delete exercise")
        del group.exercises[exercise_index]
        return True

    def add_exercise(self, day_index: int, group_index: int) -> bool:
        """Append a placeholder exercise to a muscle group."""
        group = self._group(day_index, group_index)
        if group is None:
            return self._ignored("add exercise")
        group.exercises.append(new_placeholder_exercise())
        return True
