"""
Data models for fitplan.

Dataclasses for the user's profile, the weekly workout plan and the
workout log.  Free-form fields (weight, height, sets, reps, ...) are plain
strings, as entered by the user or returned by the generator; field-level
validation belongs to whatever collects the input.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum


class LifecycleMode(str, Enum):
    """Top-level state of the plan lifecycle."""

    COLLECTING_INPUT = "collecting_input"
    VIEWING_PLAN = "viewing_plan"


class ActiveSection(str, Enum):
    """Which section of the plan view is active.  Never persisted."""

    PLAN = "plan"
    DIET = "diet"  # reserved for a diet view; no command selects it yet
    PROGRESS = "progress"
    PROFILE = "profile"
    EDITING = "editing"


@dataclass
class Profile:
    """
    User intake data driving plan generation.

    ``free_days`` holds distinct weekday labels; duplicates are dropped on
    construction, first occurrence wins.
    """

    name: str = ""
    weight: str = ""  # kg
    height: str = ""  # cm
    free_days: list[str] = field(default_factory=list)
    gender: str = ""
    fitness_level: str = ""
    goal: str = ""
    equipment: str = ""
    max_session_time: str = ""  # minutes

    def __post_init__(self) -> None:
        self.free_days = list(dict.fromkeys(self.free_days))

    @classmethod
    def blank(cls, name: str = "") -> "Profile":
        """Empty skeleton used when a user has no stored profile."""
        return cls(name=name)

    def cleared(self) -> "Profile":
        """Return a copy with every field except ``name`` reset."""
        return Profile(name=self.name)


@dataclass
class Exercise:
    """A single exercise prescription within a muscle group."""

    name: str
    sets: str
    reps: str
    description: str = ""
    target_muscles: list[str] = field(default_factory=list)


@dataclass
class MuscleGroup:
    """Exercises for one muscle group on a plan day, in order."""

    name: str
    exercises: list[Exercise] = field(default_factory=list)


@dataclass
class PlanDay:
    """One training day of the weekly plan."""

    day: str
    muscle_groups: list[MuscleGroup] = field(default_factory=list)
    focus: str = ""
    approximate_time: str = ""
    calories_burned: float = 0


@dataclass
class WorkoutPlan:
    """
    A weekly workout plan.

    The same shape is returned by the generator, held as the committed
    plan, and copied into the edit draft.  ``completed_days`` is the
    completion ledger: day labels marked done, with set semantics.
    """

    plan: list[PlanDay] = field(default_factory=list)
    summary: str = ""
    total_weekly_time: str = ""
    total_weekly_calories_burned: float = 0
    completed_days: list[str] = field(default_factory=list)

    def clone(self) -> "WorkoutPlan":
        """Return a fully independent deep copy."""
        return copy.deepcopy(self)

    def day_labels(self) -> list[str]:
        """Day labels in plan order."""
        return [d.day for d in self.plan]

    def check_invariants(self) -> None:
        """
        Check the plan's structural invariants.

        Raises:
            ValueError: If day labels repeat, or the completion ledger has
                duplicates or labels not present in the plan
        """
        labels = self.day_labels()
        if len(set(labels)) != len(labels):
            raise ValueError(f"Duplicate day labels in plan: {labels}")
        if len(set(self.completed_days)) != len(self.completed_days):
            raise ValueError(f"Duplicate entries in completed_days: {self.completed_days}")
        unknown = set(self.completed_days) - set(labels)
        if unknown:
            raise ValueError(f"completed_days not in plan: {sorted(unknown)}")


@dataclass(frozen=True)
class WorkoutLogEntry:
    """A logged workout.  Append-only, never modified."""

    date: str  # ISO-8601 timestamp
    day_name: str
    focus: str
    calories_burned: float


@dataclass
class StoredProfile:
    """The durable record for one user, written with overwrite semantics."""

    username: str
    user_data: Profile
    workout_plan: WorkoutPlan | None = None


@dataclass
class LoadedUserData:
    """Result of loading a user: profile (None if absent), plan and history."""

    profile: Profile | None
    workout_plan: WorkoutPlan | None
    history: list[WorkoutLogEntry] = field(default_factory=list)
