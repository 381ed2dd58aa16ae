"""Activity tracking service for maptrack.

Turns create and select requests into store mutations, keeps the storage
slot in sync with the store, and hands out marker and list records.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from maptrack.config import Config, ensure_data_dir
from maptrack.errors import ActivityNotFoundError
from maptrack.models.activity import Activity, create_activity
from maptrack.models.storage import FileStorage, PersistenceAdapter
from maptrack.models.store import ActivityStore
from maptrack.views.listing import list_entry
from maptrack.views.map import activity_marker

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("maptrack.tracker")


class ActivityTracker:
    """Service owning the activity store and its persistence."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        marker_callback: Callable[[dict[str, Any]], None] | None = None,
        log_callback: Callable[[str, int], None] | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            adapter: Persistence adapter for the storage slot.
            marker_callback: Called with a marker record for every created
                or restored activity.
            log_callback: Optional callback for progress messages.
        """
        self.adapter = adapter
        self.store = ActivityStore()
        self.marker_callback = marker_callback
        self.log_callback = log_callback

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> ActivityTracker:
        """Create a tracker backed by the configured data directory.

        Args:
            config: Application configuration.
            **kwargs: Passed to the constructor.

        Returns:
            ActivityTracker instance (not yet loaded).
        """
        storage = FileStorage(ensure_data_dir(config))
        return cls(PersistenceAdapter(storage, key=config.storage.key), **kwargs)

    def _log(self, msg: str, level: int = 0) -> None:
        if self.log_callback:
            self.log_callback(msg, level)

    def _emit_marker(self, activity: Activity) -> None:
        if self.marker_callback:
            self.marker_callback(activity_marker(activity))

    def _persist(self) -> None:
        """Write the whole store to storage; failures are logged, not raised."""
        try:
            self.adapter.save(self.store)
        except OSError as e:
            logger.error("Failed to save activities: %s", e)
            self._log(f"Warning: activities could not be saved ({e})")

    def load(self) -> ActivityStore:
        """Restore the store from storage.

        Returns:
            The restored store.
        """
        self.store = self.adapter.load()
        logger.info("Loaded %d activities", len(self.store))
        self._log(f"Loaded {len(self.store)} activities", 1)

        for activity in self.store:
            self._emit_marker(activity)
        return self.store

    def create_activity(
        self,
        activity_type: str,
        coords: tuple[float, float],
        distance: float,
        duration: float,
        value: float,
    ) -> Activity:
        """Create, store and persist a new activity.

        Args:
            activity_type: "running" or "cycling".
            coords: (latitude, longitude) picked on the map.
            distance: Distance in km.
            duration: Duration in minutes.
            value: Cadence (running) or elevation gain (cycling).

        Returns:
            The new activity.

        Raises:
            ValidationError: If the inputs are not valid; the store is unchanged.
            UnknownVariantError: If the activity type is not known.
        """
        activity = create_activity(activity_type, coords, distance, duration, value)
        self.store.add(activity)
        logger.info("Created %s activity %s", activity.type, activity.id)

        self._persist()
        self._emit_marker(activity)
        return activity

    def select(self, activity_id: str) -> Activity:
        """Select an activity from the list.

        Bumps its click count and persists the store. Callers centre the
        map on the returned activity's coordinates.

        Args:
            activity_id: Activity id.

        Returns:
            The selected activity.

        Raises:
            ActivityNotFoundError: If no activity has this id.
        """
        activity = self.store.find_by_id(activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id)

        activity.mark_selected()
        logger.debug("Selected activity %s (%d clicks)", activity.id, activity.clicks)
        self._persist()
        return activity

    def markers(self) -> list[dict[str, Any]]:
        """Get marker records for all activities in store order."""
        return [activity_marker(activity) for activity in self.store.all()]

    def entries(self) -> list[dict[str, Any]]:
        """Get list entries for all activities in store order."""
        return [list_entry(activity) for activity in self.store.all()]

    def reset(self) -> None:
        """Delete all stored activities and reload from the emptied storage."""
        self.adapter.clear()
        self.store.reset()
        logger.info("Reset activity storage")
        self.load()
