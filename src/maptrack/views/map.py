"""Map visualization for maptrack.

Builds marker records for activities and renders them, together with the
activity list, as a standalone Leaflet.js page.
"""

from __future__ import annotations

import json
from typing import Any

from maptrack.config import DEFAULT_MAP_ZOOM, DEFAULT_TILE_URL
from maptrack.models.activity import Activity
from maptrack.views.listing import render_entry_html


def activity_marker(activity: Activity) -> dict[str, Any]:
    """Build the marker record for an activity.

    Args:
        activity: Activity to place on the map.

    Returns:
        Dictionary with coordinates, popup text and styling.
    """
    return {
        "id": activity.id,
        "coords": list(activity.coords),
        "type": activity.type,
        "description": activity.description,
        "icon": activity.icon,
        "popup_class": f"{activity.type}-popup",
    }


def _map_view(
    markers: list[dict[str, Any]],
    zoom: int,
    center: tuple[float, float] | None,
) -> tuple[list[float], int]:
    """Pick the initial map centre and zoom level."""
    if center is not None:
        return [center[0], center[1]], zoom
    if not markers:
        return [0.0, 0.0], 2

    # Start on the most recent activity
    lat, lng = markers[-1]["coords"]
    return [lat, lng], zoom


def _script_json(data: Any) -> str:
    """Encode data as JSON that is safe to embed in a script element."""
    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def generate_map(
    markers: list[dict[str, Any]],
    entries: list[dict[str, Any]],
    zoom: int = DEFAULT_MAP_ZOOM,
    tile_url: str = DEFAULT_TILE_URL,
    center: tuple[float, float] | None = None,
) -> str:
    """Generate the HTML map page.

    Every marker gets an open popup with its icon and description. The
    sidebar lists the activities; clicking one pans the map to its marker.

    Args:
        markers: Marker records from activity_marker.
        entries: List entries from listing.list_entry.
        zoom: Zoom level used when centering on an activity.
        tile_url: Tile layer URL template.
        center: Explicit initial centre (defaults to the latest activity).

    Returns:
        HTML content as string.
    """
    map_center, map_zoom = _map_view(markers, zoom, center)
    # Newest first, as the list is built by inserting after the form
    list_html = "\n".join(render_entry_html(entry) for entry in reversed(entries))
    if not list_html:
        list_html = '<li class="empty">No activities recorded yet.</li>'

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>maptrack</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
    <style>
        body {{ margin: 0; padding: 0; display: flex; height: 100vh; font-family: Arial, Helvetica, sans-serif; }}
        .sidebar {{ flex-basis: 340px; overflow-y: auto; background: #2d3439; color: #ececec; padding: 16px; }}
        .workouts {{ list-style: none; margin: 0; padding: 0; }}
        .workout {{ background: #42484d; border-radius: 5px; padding: 10px 14px; margin-bottom: 12px; cursor: pointer; }}
        .workout--running {{ border-left: 5px solid #00c46a; }}
        .workout--cycling {{ border-left: 5px solid #ffb545; }}
        .workout__title {{ font-size: 15px; margin: 0 0 6px; }}
        .workout__details {{ display: inline-block; margin-right: 12px; font-size: 13px; }}
        .workout__unit {{ color: #aaa; margin-left: 2px; }}
        .empty {{ color: #aaa; }}
        #map {{ flex: 1; }}
        .running-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #00c46a; }}
        .cycling-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #ffb545; }}
    </style>
</head>
<body>
    <div class="sidebar">
        <ul class="workouts">
{list_html}
        </ul>
    </div>
    <div id="map"></div>
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <script>
        var markers = {_script_json(markers)};
        var mapZoomLevel = {zoom};

        var map = L.map('map').setView({json.dumps(map_center)}, {map_zoom});
        L.tileLayer({_script_json(tile_url)}, {{
            attribution: '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
        }}).addTo(map);

        var byId = {{}};
        markers.forEach(function(m) {{
            byId[m.id] = m;
            L.marker(m.coords)
                .addTo(map)
                .bindPopup(L.popup({{
                    maxWidth: 250,
                    minWidth: 100,
                    autoClose: false,
                    closeOnClick: false,
                    className: m.popup_class
                }}))
                .setPopupContent(m.icon + ' ' + m.description)
                .openPopup();
        }});

        document.querySelector('.workouts').addEventListener('click', function(e) {{
            var el = e.target.closest('.workout');
            if (!el || !byId[el.dataset.id]) return;
            map.setView(byId[el.dataset.id].coords, mapZoomLevel, {{
                animate: true,
                pan: {{ duration: 1 }}
            }});
        }});
    </script>
</body>
</html>"""

