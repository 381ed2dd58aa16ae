"""Activity list rendering.

Builds per-activity list entries and renders them as a text table or as
HTML list items.
"""

from __future__ import annotations

import html
from typing import Any

from maptrack.models.activity import Activity, CyclingActivity, RunningActivity


def _format_number(value: float) -> str:
    """Format a raw input without a trailing ``.0`` for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def list_entry(activity: Activity) -> dict[str, Any]:
    """Build the list entry for an activity.

    Derived metrics are formatted to one decimal place.

    Args:
        activity: Activity to describe.

    Returns:
        Dictionary with the fields the list shows.
    """
    entry: dict[str, Any] = {
        "id": activity.id,
        "type": activity.type,
        "description": activity.description,
        "icon": activity.icon,
        "distance": activity.distance,
        "duration": activity.duration,
        "clicks": activity.clicks,
    }
    if isinstance(activity, RunningActivity):
        entry["pace"] = f"{activity.pace:.1f}"
        entry["cadence"] = activity.cadence
    elif isinstance(activity, CyclingActivity):
        entry["speed"] = f"{activity.speed:.1f}"
        entry["elevation_gain"] = activity.elevation_gain
    return entry


def _entry_details(entry: dict[str, Any]) -> list[tuple[str, str, str]]:
    """Get (icon, value, unit) triples for an entry."""
    details = [
        (entry["icon"], _format_number(entry["distance"]), "km"),
        ("⏱", _format_number(entry["duration"]), "min"),
    ]
    if entry["type"] == RunningActivity.type:
        details.append(("⚡️", entry["pace"], "min/km"))
        details.append(("🦶🏼", str(entry["cadence"]), "spm"))
    elif entry["type"] == CyclingActivity.type:
        details.append(("⚡️", entry["speed"], "km/h"))
        details.append(("⛰", _format_number(entry["elevation_gain"]), "m"))
    return details


def format_entries(entries: list[dict[str, Any]]) -> str:
    """Format list entries as plain text.

    Args:
        entries: Entries from list_entry.

    Returns:
        Multi-line text, one block per activity.
    """
    if not entries:
        return "No activities recorded yet."

    lines: list[str] = []
    for entry in entries:
        lines.append(f"{entry['description']}  [{entry['id']}]")
        details = "  ".join(f"{value} {unit}" for _icon, value, unit in _entry_details(entry))
        lines.append(f"    {details}")
    return "\n".join(lines)


def render_entry_html(entry: dict[str, Any]) -> str:
    """Render a list entry as an HTML ``<li>`` element.

    Args:
        entry: Entry from list_entry.

    Returns:
        HTML fragment.
    """
    activity_type = html.escape(entry["type"], quote=True)
    parts = [
        f'<li class="workout workout--{activity_type}" data-id="{html.escape(entry["id"], quote=True)}">',
        f'  <h2 class="workout__title">{html.escape(entry["description"])}</h2>',
    ]
    for icon, value, unit in _entry_details(entry):
        parts.append(
            '  <div class="workout__details">'
            f'<span class="workout__icon">{icon}</span>'
            f'<span class="workout__value">{html.escape(value)}</span>'
            f'<span class="workout__unit">{unit}</span>'
            "</div>"
        )
    parts.append("</li>")
    return "\n".join(parts)
