# tracker/errors.py
"""
Error types shared by the duration codec, the analytics engine and the task store.

Parse and validation errors are raised to the immediate caller (CLI / form
validation). "No data" states in analytics are not errors: they are reported
through the falsy InsufficientData signal attached to results.
"""
from dataclasses import dataclass


class TaskTrackerError(Exception):
    """Base class for all task tracker errors."""
    pass


class ValidationError(TaskTrackerError, ValueError):
    """Raised when input validation fails."""
    pass


class InvalidDurationFormat(ValidationError):
    """Duration text matches none of the recognized shapes."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Invalid duration format: {text!r}. "
            "Use formats like: 30m, 45, 2h, 1.5h, 1h30m, 90 minutes, 2 hours"
        )


class DurationOutOfRange(ValidationError):
    """Duration parsed but falls outside [1, 1440] minutes."""

    def __init__(self, minutes: int, text: str = ''):
        self.minutes = minutes
        self.text = text
        super().__init__(
            f"Duration must be between 1 minute and 24 hours (got {minutes} minutes)"
        )


class TaskNotFoundError(TaskTrackerError, LookupError):
    """Raised when a task id does not exist in the store."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


@dataclass(frozen=True)
class InsufficientData:
    """Typed "no qualifying data" marker.

    Attached to analytics results instead of raising, so callers can tell
    "no data" apart from a real zero. Always falsy.
    """
    reason: str

    def __bool__(self) -> bool:
        return False
