"""Activity models.

Defines the abstract Activity base and its running and cycling variants,
their derived metrics, and the conversion to and from storage records.
"""

from __future__ import annotations

import math
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Any, ClassVar

from maptrack.errors import UnknownVariantError, ValidationError

# fmt: off
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
# fmt: on


def new_activity_id() -> str:
    """Generate an opaque activity id.

    Ids are random UUID4 hex strings. Uniqueness is practical, not
    guaranteed; collisions are not detected here (the store rejects them).

    Returns:
        32-character hex string.
    """
    return uuid.uuid4().hex


def _check_finite(value: Any) -> float:
    """Return value as float, rejecting booleans, non-numbers and NaN/inf."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError()
    try:
        number = float(value)
    except OverflowError:
        raise ValidationError() from None
    if not math.isfinite(number):
        raise ValidationError()
    return number


def _check_positive(value: Any) -> float:
    """Return value as float if it is finite and strictly positive."""
    number = _check_finite(value)
    if number <= 0:
        raise ValidationError()
    return number


def _check_coords(coords: Any) -> tuple[float, float]:
    """Validate a (latitude, longitude) pair."""
    message = "Coordinates must be a (latitude, longitude) pair"
    try:
        lat, lng = coords
        lat = _check_finite(lat)
        lng = _check_finite(lng)
    except (TypeError, ValueError):
        raise ValidationError(message) from None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError(message)
    return (lat, lng)


@dataclass
class Activity(ABC):
    """A logged exercise session at a map location.

    Only the concrete variants can be instantiated. Everything except
    ``clicks`` is fixed once construction finishes.
    """

    coords: tuple[float, float]
    distance: float  # km
    duration: float  # min
    id: str = field(default_factory=new_activity_id, kw_only=True)
    created_at: datetime = field(default_factory=datetime.now, kw_only=True)
    description: str = field(default="", kw_only=True)
    clicks: int = field(default=0, kw_only=True)

    type: ClassVar[str]
    icon: ClassVar[str]
    variant_field: ClassVar[str]
    metric_field: ClassVar[str]

    _MUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"clicks"})

    def __post_init__(self) -> None:
        self.coords = _check_coords(self.coords)
        self.distance = _check_positive(self.distance)
        self.duration = _check_positive(self.duration)
        self._validate_variant()
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError("Activity id must be a non-empty string")
        if not isinstance(self.created_at, datetime):
            raise ValidationError("Activity creation time must be a datetime")
        if not isinstance(self.description, str):
            raise ValidationError("Activity description must be a string")
        if isinstance(self.clicks, bool) or not isinstance(self.clicks, int) or self.clicks < 0:
            raise ValidationError("Click count must be a non-negative integer")

        self.compute_metric()
        if not self.description:
            self.description = self._build_description()
        object.__setattr__(self, "_frozen", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False) and name not in self._MUTABLE_FIELDS:
            raise AttributeError(f"{name} cannot be changed after creation")
        super().__setattr__(name, value)

    @abstractmethod
    def _validate_variant(self) -> None:
        """Check and normalize the variant-specific input field."""

    @abstractmethod
    def compute_metric(self) -> float:
        """Compute, cache and return the variant metric (pace or speed)."""

    @property
    def metric(self) -> float:
        """Cached variant metric."""
        return float(getattr(self, self.metric_field))

    @property
    def variant_value(self) -> float:
        """Raw variant-specific input (cadence or elevation gain)."""
        return getattr(self, self.variant_field)

    def _build_description(self) -> str:
        month = MONTHS[self.created_at.month - 1]
        return f"{self.type.capitalize()} on {month} {self.created_at.day}"

    def mark_selected(self) -> None:
        """Record that the activity was selected in the list."""
        self.clicks += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert activity to a storage record.

        The record always carries the ``type`` discriminator and every raw
        input. The derived metric is included for readability only.

        Returns:
            Dictionary representation.
        """
        return {
            "type": self.type,
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "coords": list(self.coords),
            "distance": self.distance,
            "duration": self.duration,
            self.variant_field: self.variant_value,
            "description": self.description,
            "clicks": self.clicks,
            self.metric_field: self.metric,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Activity:
        """Restore an activity of this variant from a storage record.

        Identity, creation time, description and click count are taken
        verbatim; the metric is recomputed from the raw inputs.

        Args:
            data: Storage record.

        Returns:
            Activity instance.

        Raises:
            ValidationError: If the record is incomplete or holds invalid values.
        """
        try:
            created_at = data["created_at"]
            if isinstance(created_at, str):
                try:
                    created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
                except ValueError:
                    raise ValidationError(f"Invalid creation time: {created_at!r}") from None

            return cls(
                data["coords"],
                data["distance"],
                data["duration"],
                data[cls.variant_field],
                id=data["id"],
                created_at=created_at,
                description=data.get("description", ""),
                clicks=data.get("clicks", 0),
            )
        except KeyError as e:
            raise ValidationError(f"Record is missing field {e.args[0]!r}") from None


@dataclass
class RunningActivity(Activity):
    """A run; derives pace in min/km."""

    cadence: int  # steps/min
    pace: float = field(init=False, default=0.0)

    type: ClassVar[str] = "running"
    icon: ClassVar[str] = "🏃‍♂️"
    variant_field: ClassVar[str] = "cadence"
    metric_field: ClassVar[str] = "pace"

    def _validate_variant(self) -> None:
        cadence = _check_positive(self.cadence)
        if not cadence.is_integer():
            raise ValidationError()
        self.cadence = int(cadence)

    def compute_metric(self) -> float:
        object.__setattr__(self, "pace", self.duration / self.distance)
        return self.pace


@dataclass
class CyclingActivity(Activity):
    """A ride; derives speed in km/h. Elevation gain may be negative."""

    elevation_gain: float  # m
    speed: float = field(init=False, default=0.0)

    type: ClassVar[str] = "cycling"
    icon: ClassVar[str] = "🚴‍♀️"
    variant_field: ClassVar[str] = "elevation_gain"
    metric_field: ClassVar[str] = "speed"

    def _validate_variant(self) -> None:
        self.elevation_gain = _check_finite(self.elevation_gain)

    def compute_metric(self) -> float:
        object.__setattr__(self, "speed", self.distance / (self.duration / 60))
        return self.speed


ACTIVITY_TYPES: dict[str, type[Activity]] = {
    RunningActivity.type: RunningActivity,
    CyclingActivity.type: CyclingActivity,
}


def get_activity_class(activity_type: Any) -> type[Activity]:
    """Look up the variant class for a discriminator.

    Args:
        activity_type: Variant label ("running" or "cycling").

    Returns:
        Activity subclass.

    Raises:
        UnknownVariantError: If the label is not registered.
    """
    if not isinstance(activity_type, str) or activity_type not in ACTIVITY_TYPES:
        raise UnknownVariantError(activity_type)
    return ACTIVITY_TYPES[activity_type]


def create_activity(
    activity_type: str,
    coords: tuple[float, float],
    distance: float,
    duration: float,
    value: float,
) -> Activity:
    """Create a new activity of the given type.

    Args:
        activity_type: "running" or "cycling".
        coords: (latitude, longitude).
        distance: Distance in km.
        duration: Duration in minutes.
        value: Cadence (running) or elevation gain (cycling).

    Returns:
        Newly created activity with a fresh id.
    """
    cls = get_activity_class(activity_type)
    return cls(coords, distance, duration, value)


def activity_from_dict(data: dict[str, Any]) -> Activity:
    """Restore an activity from a storage record, dispatching on ``type``.

    Args:
        data: Storage record.

    Returns:
        Activity of the variant named by the record.

    Raises:
        UnknownVariantError: If the discriminator is missing or unknown.
        ValidationError: If the record is malformed.
    """
    if not isinstance(data, dict):
        raise ValidationError("Record is not an object")
    return get_activity_class(data.get("type")).from_dict(data)
