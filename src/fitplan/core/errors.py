"""
Exception types and error categories for fitplan.

Every failure the engine can surface belongs to one ErrorKind.  The
user-facing text for each kind is generic (see config.ERROR_MESSAGES);
the underlying cause is only ever logged.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a user-visible error."""

    VALIDATION = "validation"
    GENERATION = "generation"
    LOAD = "load"
    LOG_WORKOUT = "log_workout"


class FitPlanError(Exception):
    """Base class for all fitplan errors."""

    pass


class ValidationError(FitPlanError):
    """Raised when input data or an operation precondition is invalid."""

    pass


class GenerationError(FitPlanError):
    """Raised when the plan generator fails or returns a malformed plan."""

    pass


class StoreError(FitPlanError):
    """Base class for profile store failures."""

    pass


class StoreLoadError(StoreError):
    """Raised when stored user data cannot be read or parsed."""

    pass


class StoreWriteError(StoreError):
    """Raised when user data cannot be written."""

    pass


class WorkoutLogError(FitPlanError):
    """Raised when a workout log entry could not be appended to the store."""

    pass


class SessionNotLoadedError(FitPlanError):
    """Raised when an operation needs user data that has not been loaded."""

    pass
