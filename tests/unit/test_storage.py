"""Unit tests for activity persistence."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from maptrack.errors import PersistenceParseError
from maptrack.models.activity import CyclingActivity, RunningActivity
from maptrack.models.storage import (
    FileStorage,
    MemoryStorage,
    PersistenceAdapter,
    deserialize_store,
    serialize_store,
)
from maptrack.models.store import ActivityStore


class TestSerializeStore:
    """Tests for serialize_store / deserialize_store."""

    def test_round_trip(self, sample_store: ActivityStore) -> None:
        """Test restoring keeps order, identity, inputs, clicks and behavior."""
        sample_store.all()[1].mark_selected()

        restored = deserialize_store(serialize_store(sample_store))

        assert [a.id for a in restored.all()] == [a.id for a in sample_store.all()]
        for original, copy in zip(sample_store.all(), restored.all()):
            assert type(copy) is type(original)
            assert copy.type == original.type
            assert copy.coords == original.coords
            assert copy.distance == original.distance
            assert copy.duration == original.duration
            assert copy.variant_value == original.variant_value
            assert copy.description == original.description
            assert copy.created_at == original.created_at
            assert copy.clicks == original.clicks
            assert copy.compute_metric() == original.compute_metric()

    def test_serialized_records_are_discriminated(self, sample_store: ActivityStore) -> None:
        """Test every record carries its type."""
        records = json.loads(serialize_store(sample_store))

        assert [r["type"] for r in records] == ["running", "cycling"]
        assert records[0]["cadence"] == 178
        assert records[1]["elevation_gain"] == 523

    @pytest.mark.parametrize(
        "text",
        [None, "", "   ", "not json", "{}", '"activities"', "[1, 2", "[" + "1" * 5000 + "]", "[" * 100_000],
    )
    def test_unusable_text_gives_empty_store(self, text: str | None) -> None:
        """Test absent or corrupt text restores as an empty store."""
        store = deserialize_store(text)

        assert len(store) == 0

    def test_corrupt_text_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test corrupt text is reported as a warning."""
        with caplog.at_level(logging.WARNING, logger="maptrack.storage"):
            deserialize_store("not json")

        assert "not valid JSON" in caplog.text

    def test_unknown_type_skipped(self, sample_run: RunningActivity) -> None:
        """Test a record with an unknown type is skipped, others restored."""
        swim = sample_run.to_dict() | {"type": "swimming", "id": "swim-1"}
        text = json.dumps([swim, sample_run.to_dict()])

        store = deserialize_store(text)

        assert len(store) == 1
        restored = store.all()[0]
        assert isinstance(restored, RunningActivity)
        assert restored.id == sample_run.id

    def test_invalid_records_skipped(self, sample_run: RunningActivity, sample_ride: CyclingActivity) -> None:
        """Test malformed records do not abort the batch."""
        no_type = {k: v for k, v in sample_ride.to_dict().items() if k != "type"}
        negative = sample_run.to_dict() | {"id": "neg", "distance": -3}
        missing = {"type": "cycling", "id": "partial"}
        huge = sample_run.to_dict() | {"id": "big", "distance": 10**400}
        text = json.dumps([no_type, "junk", negative, missing, huge, sample_ride.to_dict()])

        store = deserialize_store(text)

        assert [a.id for a in store.all()] == [sample_ride.id]

    def test_duplicate_ids_keep_first(self, sample_run: RunningActivity) -> None:
        """Test a repeated id restores only the first record."""
        second = sample_run.to_dict() | {"distance": 10.0}
        text = json.dumps([sample_run.to_dict(), second])

        store = deserialize_store(text)

        assert len(store) == 1
        assert store.all()[0].distance == 5.2

    def test_stored_metric_is_recomputed(self, sample_run: RunningActivity) -> None:
        """Test a stale derived value in storage is ignored."""
        record = sample_run.to_dict() | {"pace": 99.0}

        store = deserialize_store(json.dumps([record]))

        assert store.all()[0].pace == 24 / 5.2

    def test_description_not_recomputed(self) -> None:
        """Test the stored description survives restore unchanged."""
        run = RunningActivity((1, 1), 5, 30, 170, created_at=datetime(2023, 12, 31, 23, 0))
        record = run.to_dict() | {"description": "Running on New Year's Eve"}

        store = deserialize_store(json.dumps([record]))

        assert store.all()[0].description == "Running on New Year's Eve"

    def test_legacy_records_without_clicks(self, sample_ride: CyclingActivity) -> None:
        """Test records missing optional fields restore with defaults."""
        record = sample_ride.to_dict()
        del record["clicks"]
        del record["speed"]

        store = deserialize_store(json.dumps([record]))

        ride = store.all()[0]
        assert ride.clicks == 0
        assert ride.speed == pytest.approx(17.05, abs=1e-2)


class TestFileStorage:
    """Tests for FileStorage."""

    def test_missing_slot(self, temp_data_dir: Path) -> None:
        """Test reading an unwritten slot gives None."""
        storage = FileStorage(temp_data_dir)

        assert storage.get_item("activities") is None

    def test_set_get_remove(self, tmp_path: Path) -> None:
        """Test a slot is written, overwritten and removed."""
        storage = FileStorage(tmp_path / "nested" / "data")

        storage.set_item("activities", "[1]")
        storage.set_item("activities", "[2]")

        assert storage.get_item("activities") == "[2]"
        assert storage.get_slot_path("activities").name == "activities.json"
        assert [p.name for p in storage.directory.iterdir()] == ["activities.json"]

        storage.remove_item("activities")
        storage.remove_item("activities")
        assert storage.get_item("activities") is None

    def test_undecodable_slot(self, temp_data_dir: Path) -> None:
        """Test a slot that is not UTF-8 is reported as unparseable."""
        storage = FileStorage(temp_data_dir)
        storage.get_slot_path("activities").write_bytes(b"\xff\xfe")

        with pytest.raises(PersistenceParseError):
            storage.get_item("activities")


class TestPersistenceAdapter:
    """Tests for PersistenceAdapter."""

    def test_save_and_load(self, sample_store: ActivityStore, temp_data_dir: Path) -> None:
        """Test the store is written to a single slot and read back."""
        adapter = PersistenceAdapter(FileStorage(temp_data_dir))

        adapter.save(sample_store)
        restored = adapter.load()

        assert (temp_data_dir / "activities.json").exists()
        assert [a.id for a in restored] == [a.id for a in sample_store]

    def test_load_undecodable_slot(self, temp_data_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Test a slot with invalid bytes restores as an empty store."""
        (temp_data_dir / "activities.json").write_bytes(b"\xff\xfe")
        adapter = PersistenceAdapter(FileStorage(temp_data_dir))

        with caplog.at_level(logging.WARNING, logger="maptrack.storage"):
            store = adapter.load()

        assert len(store) == 0
        assert "not valid UTF-8" in caplog.text

    def test_load_without_data(self, memory_adapter: PersistenceAdapter) -> None:
        """Test loading before anything was saved gives an empty store."""
        assert len(memory_adapter.load()) == 0

    def test_custom_key(self, sample_store: ActivityStore) -> None:
        """Test the slot name is configurable."""
        storage = MemoryStorage()
        adapter = PersistenceAdapter(storage, key="workouts")

        adapter.save(sample_store)

        assert list(storage.items) == ["workouts"]

    def test_clear(self, sample_store: ActivityStore, memory_adapter: PersistenceAdapter) -> None:
        """Test clear removes the stored data."""
        memory_adapter.save(sample_store)
        memory_adapter.clear()

        assert memory_adapter.storage.get_item(memory_adapter.key) is None
        assert len(memory_adapter.load()) == 0

    def test_save_overwrites_whole_slot(self, sample_store: ActivityStore, memory_adapter: PersistenceAdapter) -> None:
        """Test each save replaces the previous contents."""
        memory_adapter.save(sample_store)
        memory_adapter.save(ActivityStore())

        assert json.loads(memory_adapter.storage.get_item("activities")) == []
