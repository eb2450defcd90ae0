"""
Configuration constants for fitplan.

All adjustable parameters are centralized here.  The exercise library
used by the template generator lives in exercises.yaml and is loaded by
engine/config_loader.py.
"""

import os
from pathlib import Path
from typing import Final

from .errors import ErrorKind

# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

ERROR_MESSAGES: Final[dict[ErrorKind, str]] = {
    ErrorKind.VALIDATION: "Please select at least one free day for your workout.",
    ErrorKind.GENERATION: (
        "Failed to generate workout plan. Please check your inputs or try again later."
    ),
    ErrorKind.LOAD: "Could not load your data. Please try again.",
    ErrorKind.LOG_WORKOUT: "Could not save your workout log.",
}

NEW_WEEK_MESSAGE: Final[str] = (
    "A new week has started! Update your details and generate a fresh plan."
)

# =============================================================================
# PLACEHOLDER EXERCISE (added by the editor)
# =============================================================================

PLACEHOLDER_EXERCISE_NAME: Final[str] = "New Exercise"
PLACEHOLDER_SETS: Final[str] = "3"
PLACEHOLDER_REPS: Final[str] = "10"
PLACEHOLDER_DESCRIPTION: Final[str] = "Enter a short description of the exercise."
PLACEHOLDER_TARGET_MUSCLES: Final[tuple[str, ...]] = ("Primary Muscle", "Secondary Muscle")

# =============================================================================
# WEEKDAYS
# =============================================================================

WEEKDAYS: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Short forms accepted on input and mapped to the full label
WEEKDAY_ALIASES: Final[dict[str, str]] = {
    day[:3].lower(): day for day in WEEKDAYS
}

# =============================================================================
# PERSISTENCE
# =============================================================================

SAVE_MAX_ATTEMPTS: Final[int] = 2  # per snapshot, then the snapshot is dropped
PROFILE_FILENAME: Final[str] = "profile.json"
WORKOUT_LOG_FILENAME: Final[str] = "workout_log.jsonl"
USERS_DIRNAME: Final[str] = "users"
LIBRARY_FILENAME: Final[str] = "exercises.yaml"

DEFAULT_USERNAME: Final[str] = "default"

# =============================================================================
# TEMPLATE GENERATOR
# =============================================================================

SET_DURATION_MINUTES: Final[float] = 2.5  # one working set plus rest
WARMUP_MINUTES: Final[int] = 10
DEFAULT_SESSION_MINUTES: Final[int] = 60
MIN_SESSION_MINUTES: Final[int] = 15
DEFAULT_BODYWEIGHT_KG: Final[float] = 70.0
MIN_EXERCISES_PER_DAY: Final[int] = 2


def get_data_root() -> Path:
    """Return the storage root: $FITPLAN_HOME or ~/.fitplan."""
    env = os.environ.get("FITPLAN_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".fitplan"
