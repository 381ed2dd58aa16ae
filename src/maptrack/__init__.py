"""Map-based workout logger.

Records running and cycling activities at map coordinates, derives pace and
speed, persists them to a local storage slot, and renders them as a list and
as Leaflet map markers.
"""

__version__ = "0.1.0"
__author__ = "maptrack contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
