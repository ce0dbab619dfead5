"""Exceptions raised by the journal entry and streak services."""

from __future__ import annotations


class JournalError(Exception):
    """Base class for journal service failures."""


class EntryValidationError(JournalError, ValueError):
    """The submitted entry content or date is not acceptable."""


class FutureEntryError(EntryValidationError):
    """Entries cannot be written for a day that has not started yet."""


class EntryExistsError(JournalError):
    """An entry already exists for this user and day."""


class EntryNotFoundError(JournalError, LookupError):
    """No visible entry exists for this user and day."""


class UserNotFoundError(JournalError, LookupError):
    """The referenced user does not exist."""


class StreakUpdateError(JournalError):
    """Recomputing or persisting a user's streak summary failed."""


__all__ = [
    "JournalError",
    "EntryValidationError",
    "FutureEntryError",
    "EntryExistsError",
    "EntryNotFoundError",
    "UserNotFoundError",
    "StreakUpdateError",
]
