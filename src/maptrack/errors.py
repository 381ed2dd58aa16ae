"""Error kinds raised by the maptrack core."""

from __future__ import annotations

VALIDATION_MESSAGE = "Inputs have to be positive numbers!"


class MaptrackError(Exception):
    """Base class for maptrack errors."""


class ValidationError(MaptrackError, ValueError):
    """User input is not a finite positive number (or otherwise unusable)."""

    def __init__(self, message: str = VALIDATION_MESSAGE) -> None:
        super().__init__(message)


class PersistenceParseError(MaptrackError, ValueError):
    """Stored text is absent or cannot be parsed into activity records."""


class UnknownVariantError(MaptrackError, ValueError):
    """A record or request names an activity type that is not registered."""

    def __init__(self, activity_type: object) -> None:
        super().__init__(f"Unknown activity type: {activity_type!r}")
        self.activity_type = activity_type


class DuplicateIdError(MaptrackError, ValueError):
    """An activity with the same id is already held by the store."""

    def __init__(self, activity_id: str) -> None:
        super().__init__(f"Activity {activity_id} is already in the store")
        self.activity_id = activity_id


class ActivityNotFoundError(MaptrackError, KeyError):
    """No activity with the requested id exists."""

    def __init__(self, activity_id: str) -> None:
        super().__init__(activity_id)
        self.activity_id = activity_id

    def __str__(self) -> str:
        return f"Activity not found: {self.activity_id}"
