"""Exception types for HabitLog.

Every failure is local and recoverable: callers surface the message to the
user and let them retry.
"""

from __future__ import annotations


class HabitLogError(Exception):
    """Base class for all HabitLog errors."""


class ValidationError(HabitLogError, ValueError):
    """Malformed or missing input, rejected before any mutation."""


class RuleViolation(HabitLogError, ValueError):
    """A business rule refused the change (no state was modified)."""


class EntryExistsError(RuleViolation):
    """A journal entry already exists for the date and overwrite was not confirmed."""


class NotFoundError(HabitLogError, LookupError):
    """Referenced habit, fine or entry does not exist."""


class StorageError(HabitLogError, OSError):
    """The backing store could not be read or written."""
