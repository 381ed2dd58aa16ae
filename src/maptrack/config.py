"""Configuration management for maptrack.

Handles loading configuration from TOML files and environment variables
with proper precedence.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from maptrack.models.storage import DEFAULT_STORAGE_KEY

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "maptrack" / "config.toml"
LOCAL_CONFIG_NAME = ".maptrack.toml"
DEFAULT_DATA_DIR = Path("./data")
DEFAULT_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
DEFAULT_MAP_ZOOM = 13


@dataclass
class StorageConfig:
    """Activity storage configuration."""

    directory: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    key: str = DEFAULT_STORAGE_KEY


@dataclass
class MapConfig:
    """Map rendering configuration."""

    zoom: int = DEFAULT_MAP_ZOOM
    tile_url: str = DEFAULT_TILE_URL


@dataclass
class Config:
    """Main configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    map: MapConfig = field(default_factory=MapConfig)
    config_path: Path | None = None


def _get_env_value(key: str, default: str = "") -> str:
    """Get environment variable value."""
    return os.environ.get(key, default)


def _find_config_path() -> Path:
    """Locate the configuration file when none is given explicitly."""
    if env_config := _get_env_value("MAPTRACK_CONFIG"):
        return Path(env_config)

    local_config = Path(LOCAL_CONFIG_NAME)
    if local_config.exists():
        return local_config

    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    The file is the explicit path if given, else $MAPTRACK_CONFIG, else
    ./.maptrack.toml if present, else ~/.config/maptrack/config.toml.

    Args:
        config_path: Path to configuration file.

    Returns:
        Populated Config object.
    """
    config = Config()

    if config_path is None:
        config_path = _find_config_path()

    config.config_path = config_path

    if config_path.exists():
        config = _load_from_file(config_path, config)

    config = _apply_env_overrides(config)

    return config


def _load_from_file(path: Path, config: Config) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to TOML file.
        config: Existing config to update.

    Returns:
        Updated Config object.

    Raises:
        ValueError: If the file is not valid TOML or holds invalid values.
    """
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid configuration file {path}: {e}") from e

    if "storage" in data:
        storage = data["storage"]
        if "directory" in storage:
            config.storage.directory = Path(storage["directory"])
        config.storage.key = storage.get("key", config.storage.key)

    if "map" in data:
        map_section = data["map"]
        zoom = map_section.get("zoom", config.map.zoom)
        if isinstance(zoom, bool) or not isinstance(zoom, int) or not 0 <= zoom <= 19:
            raise ValueError(f"Invalid map zoom in {path}: {zoom!r}")
        config.map.zoom = zoom
        config.map.tile_url = map_section.get("tile_url", config.map.tile_url)

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to configuration.

    Args:
        config: Config to update.

    Returns:
        Updated Config object.
    """
    if data_dir := _get_env_value("MAPTRACK_DATA_DIR"):
        config.storage.directory = Path(data_dir)
    if key := _get_env_value("MAPTRACK_STORAGE_KEY"):
        config.storage.key = key

    return config


def ensure_data_dir(config: Config) -> Path:
    """Ensure data directory exists and return its path.

    Args:
        config: Configuration with data directory setting.

    Returns:
        Path to data directory.
    """
    data_dir = config.storage.directory.resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
