"""Durable storage for the activity store.

The whole store is kept as one JSON document in a single named slot and
rewritten on every save. Restoring dispatches each record on its ``type``
discriminator so activities come back as their proper variant.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from maptrack.errors import (
    DuplicateIdError,
    PersistenceParseError,
    UnknownVariantError,
    ValidationError,
)
from maptrack.models.activity import activity_from_dict
from maptrack.models.store import ActivityStore

logger = logging.getLogger("maptrack.storage")

DEFAULT_STORAGE_KEY = "activities"


class Storage(Protocol):
    """Key/value slots holding text."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Storage kept in a dictionary."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileStorage:
    """Storage with one ``<key>.json`` file per slot in a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def get_slot_path(self, key: str) -> Path:
        """Get path of the file backing a slot.

        Args:
            key: Slot name.

        Returns:
            Path to the slot file.
        """
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self.get_slot_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceParseError(f"Stored activities in {path} are not valid UTF-8: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.get_slot_path(key)

        # Write to a sibling temp file first so the slot is replaced whole
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self.get_slot_path(key).unlink(missing_ok=True)


def serialize_store(store: ActivityStore) -> str:
    """Encode a store as JSON text.

    Args:
        store: Store to encode.

    Returns:
        JSON array of activity records in store order.
    """
    return json.dumps([activity.to_dict() for activity in store.all()], indent=2, ensure_ascii=False)


def _parse_records(text: str | None) -> list[Any]:
    """Parse stored text into a list of raw records.

    Raises:
        PersistenceParseError: If the text is absent, empty or not a JSON array.
    """
    if text is None or not text.strip():
        raise PersistenceParseError("Nothing stored")
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        # Oversized integer literals and deep nesting fail outside JSONDecodeError
        raise PersistenceParseError(f"Stored activities are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise PersistenceParseError(f"Expected a list of activities, got {type(data).__name__}")
    return data


def deserialize_store(text: str | None) -> ActivityStore:
    """Rebuild a store from JSON text.

    Absent or unparseable text gives an empty store. Records with an
    unknown type, invalid fields or an id already restored are skipped;
    the remaining records are still restored.

    Args:
        text: Text previously produced by serialize_store.

    Returns:
        Restored store.
    """
    store = ActivityStore()

    try:
        records = _parse_records(text)
    except PersistenceParseError as e:
        if text is None or not text.strip():
            logger.debug("%s, starting with an empty store", e)
        else:
            logger.warning("%s, starting with an empty store", e)
        return store

    for position, record in enumerate(records):
        try:
            store.add(activity_from_dict(record))
        except UnknownVariantError as e:
            logger.warning("Skipping record %d: %s", position, e)
        except DuplicateIdError as e:
            logger.warning("Skipping record %d: %s", position, e)
        except ValidationError as e:
            logger.warning("Skipping invalid record %d: %s", position, e)

    logger.debug("Restored %d of %d activities", len(store), len(records))
    return store


class PersistenceAdapter:
    """Saves and restores an ActivityStore through a storage slot."""

    def __init__(self, storage: Storage, key: str = DEFAULT_STORAGE_KEY) -> None:
        """Initialize the adapter.

        Args:
            storage: Backend holding the slot.
            key: Name of the slot.
        """
        self.storage = storage
        self.key = key

    def serialize(self, store: ActivityStore) -> str:
        return serialize_store(store)

    def deserialize(self, text: str | None) -> ActivityStore:
        return deserialize_store(text)

    def save(self, store: ActivityStore) -> None:
        """Overwrite the slot with the whole store."""
        self.storage.set_item(self.key, self.serialize(store))
        logger.debug("Saved %d activities to slot %r", len(store), self.key)

    def load(self) -> ActivityStore:
        """Read the slot and restore the store from it.

        Unreadable slot contents are treated like corrupt text and give an
        empty store.
        """
        try:
            text = self.storage.get_item(self.key)
        except PersistenceParseError as e:
            logger.warning("%s, starting with an empty store", e)
            return ActivityStore()
        return self.deserialize(text)

    def clear(self) -> None:
        """Remove the slot."""
        self.storage.remove_item(self.key)
        logger.info("Cleared stored activities")
