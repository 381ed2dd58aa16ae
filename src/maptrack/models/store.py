"""In-memory activity store.

Holds activities in insertion order with an id index for lookups.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import overload

from maptrack.errors import DuplicateIdError
from maptrack.models.activity import Activity


class ActivityView(Sequence[Activity]):
    """Read-only, restartable view over a store's activities.

    The view reflects the store as it is when iterated; it has no mutating
    methods of its own.
    """

    def __init__(self, activities: list[Activity]) -> None:
        self._activities = activities

    @overload
    def __getitem__(self, index: int) -> Activity: ...

    @overload
    def __getitem__(self, index: slice) -> list[Activity]: ...

    def __getitem__(self, index: int | slice) -> Activity | list[Activity]:
        return self._activities[index]

    def __len__(self) -> int:
        return len(self._activities)

    def __iter__(self) -> Iterator[Activity]:
        return iter(self._activities)

    def __repr__(self) -> str:
        return f"ActivityView({len(self)} activities)"


class ActivityStore:
    """Ordered collection of activities with unique ids."""

    def __init__(self) -> None:
        self._activities: list[Activity] = []
        self._index: dict[str, Activity] = {}

    def add(self, activity: Activity) -> None:
        """Append an activity.

        Args:
            activity: Activity to add.

        Raises:
            DuplicateIdError: If an activity with the same id is present.
                The store is left unchanged.
        """
        if activity.id in self._index:
            raise DuplicateIdError(activity.id)
        self._activities.append(activity)
        self._index[activity.id] = activity

    def find_by_id(self, activity_id: str) -> Activity | None:
        """Get an activity by id.

        Args:
            activity_id: Activity id.

        Returns:
            Activity or None if not found.
        """
        return self._index.get(activity_id)

    def all(self) -> ActivityView:
        """Get a read-only view of all activities in insertion order."""
        return ActivityView(self._activities)

    def reset(self) -> None:
        """Remove all activities."""
        self._activities.clear()
        self._index.clear()

    def __len__(self) -> int:
        return len(self._activities)

    def __iter__(self) -> Iterator[Activity]:
        return iter(self._activities)

    def __contains__(self, activity_id: object) -> bool:
        return activity_id in self._index
