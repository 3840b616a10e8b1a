"""Unit tests for novelty persistence backends."""

import json
from datetime import timedelta
from pathlib import Path

import pytest

from src.data_model.errors import NoveltyPersistenceError
from src.novelty.models import NoveltyRecord
from src.novelty.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    NoveltyStorage,
    evict_oldest,
)
from tests.helpers.time import FIXED_NOW


def _record(item_id: str, age_hours: float = 0.0, seen_count: int = 1) -> NoveltyRecord:
    seen = FIXED_NOW - timedelta(hours=age_hours)
    return NoveltyRecord(
        item_id=item_id,
        first_seen=seen,
        last_seen=seen,
        seen_count=seen_count,
        metadata={"title": f"Item {item_id}"},
    )


class TestEvictOldest:
    """Tests for evict_oldest()."""

    def test_no_eviction_under_cap(self) -> None:
        """Nothing is removed while under the cap."""
        data = {"a": _record("a")}
        assert evict_oldest(data, 5) == 0
        assert set(data) == {"a"}

    def test_evicts_least_recently_seen(self) -> None:
        """Records with the oldest last_seen go first."""
        data = {
            "old": _record("old", age_hours=48),
            "mid": _record("mid", age_hours=24),
            "new": _record("new", age_hours=1),
        }
        assert evict_oldest(data, 2) == 1
        assert set(data) == {"mid", "new"}


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_round_trip_and_clear(self) -> None:
        """Saved records load back until cleared."""
        storage = MemoryStorage()
        storage.save([_record("a")])

        assert storage.load(["a", "b"]) == {"a": _record("a")}
        storage.clear()
        assert storage.load(["a"]) == {}

    def test_satisfies_protocol(self) -> None:
        """MemoryStorage is a NoveltyStorage."""
        assert isinstance(MemoryStorage(), NoveltyStorage)


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """A store that was never saved has no records."""
        storage = JsonFileStorage(tmp_path / "novelty.json")
        assert storage.load(["a"]) == {}

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """Records survive a new storage instance on the same file."""
        path = tmp_path / "nested" / "novelty.json"
        JsonFileStorage(path).save([_record("a", seen_count=3)])

        loaded = JsonFileStorage(path).load(["a"])

        assert loaded["a"].seen_count == 3
        assert loaded["a"].first_seen == _record("a").first_seen

    def test_file_is_json_object_keyed_by_id(self, tmp_path: Path) -> None:
        """The file format is one JSON object keyed by item id."""
        path = tmp_path / "novelty.json"
        JsonFileStorage(path).save([_record("a"), _record("b")])

        payload = json.loads(path.read_text(encoding="utf-8"))

        assert set(payload) == {"a", "b"}
        assert payload["a"]["item_id"] == "a"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Atomic writes clean up after themselves."""
        path = tmp_path / "novelty.json"
        JsonFileStorage(path).save([_record("a")])
        assert [p.name for p in tmp_path.iterdir()] == ["novelty.json"]

    def test_cap_evicts_oldest(self, tmp_path: Path) -> None:
        """Saving beyond the cap drops the least recently seen."""
        storage = JsonFileStorage(tmp_path / "novelty.json", max_entries=2)
        storage.save(
            [
                _record("old", age_hours=10),
                _record("mid", age_hours=5),
                _record("new", age_hours=1),
            ]
        )
        assert len(storage) == 2
        assert set(storage.load(["old", "mid", "new"])) == {"mid", "new"}

    def test_corrupt_file_raises(self, tmp_path: Path) -> None:
        """Unparseable content is a persistence error."""
        path = tmp_path / "novelty.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(NoveltyPersistenceError) as exc_info:
            JsonFileStorage(path).load(["a"])
        assert exc_info.value.operation == "load"
        assert exc_info.value.retryable

    def test_non_object_payload_raises(self, tmp_path: Path) -> None:
        """A JSON list is not a valid store."""
        path = tmp_path / "novelty.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(NoveltyPersistenceError, match="expected a JSON object"):
            JsonFileStorage(path).load(["a"])

    def test_clear_truncates_file(self, tmp_path: Path) -> None:
        """clear() leaves an empty object behind."""
        path = tmp_path / "novelty.json"
        storage = JsonFileStorage(path)
        storage.save([_record("a")])
        storage.clear()

        assert json.loads(path.read_text(encoding="utf-8")) == {}

    def test_failed_write_keeps_durable_view(self, tmp_path: Path) -> None:
        """Records from a failed save are not visible afterwards."""
        path = tmp_path / "novelty.json"
        storage = JsonFileStorage(path, max_entries=1)
        storage.save([_record("old", age_hours=3)])
        path.unlink()
        path.mkdir()

        with pytest.raises(NoveltyPersistenceError) as exc_info:
            storage.save([_record("new")])

        assert exc_info.value.operation == "save"
        assert storage.load(["new"]) == {}
        assert set(storage.load(["old"])) == {"old"}


class TestKeyValueStorage:
    """Tests for KeyValueStorage."""

    def test_in_memory_round_trip(self) -> None:
        """The default in-memory database works for one instance."""
        storage = KeyValueStorage()
        storage.save([_record("a")])

        assert storage.load(["a"])["a"].item_id == "a"
        storage.close()

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        """Records survive reopening the database file."""
        db_path = tmp_path / "kv.sqlite"
        first = KeyValueStorage(db_path)
        first.save([_record("a", seen_count=2)])
        first.close()

        second = KeyValueStorage(db_path)
        assert second.load(["a"])["a"].seen_count == 2
        second.close()

    def test_keys_are_isolated(self, tmp_path: Path) -> None:
        """Different keys hold independent record sets."""
        db_path = tmp_path / "kv.sqlite"
        KeyValueStorage(db_path, key="one").save([_record("a")])

        assert KeyValueStorage(db_path, key="two").load(["a"]) == {}

    def test_cap_evicts_oldest(self) -> None:
        """The key/value backend shares the eviction policy."""
        storage = KeyValueStorage(max_entries=1)
        storage.save([_record("old", age_hours=3), _record("new")])

        assert set(storage.load(["old", "new"])) == {"new"}

    def test_clear_removes_value(self, tmp_path: Path) -> None:
        """clear() deletes the stored value."""
        db_path = tmp_path / "kv.sqlite"
        storage = KeyValueStorage(db_path)
        storage.save([_record("a")])
        storage.clear()
        storage.close()

        assert KeyValueStorage(db_path).load(["a"]) == {}

    def test_corrupt_value_raises(self, tmp_path: Path) -> None:
        """A malformed stored value is a persistence error."""
        db_path = tmp_path / "kv.sqlite"
        storage = KeyValueStorage(db_path)
        storage.save([_record("a")])
        storage._put("not json")
        storage.close()

        with pytest.raises(NoveltyPersistenceError):
            KeyValueStorage(db_path).load(["a"])

    def test_failed_write_keeps_durable_view(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Records from a failed save are not visible afterwards."""
        storage = KeyValueStorage()
        storage.save([_record("a")])

        def fail(value: str) -> None:
            raise NoveltyPersistenceError("save", "disk full")

        monkeypatch.setattr(storage, "_put", fail)

        with pytest.raises(NoveltyPersistenceError):
            storage.save([_record("b")])

        assert storage.load(["b"]) == {}
        assert set(storage.load(["a"])) == {"a"}
        storage.close()

    def test_unusable_directory_raises(self, tmp_path: Path) -> None:
        """A database path below a regular file is a persistence error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = KeyValueStorage(blocker / "nested" / "kv.sqlite")

        with pytest.raises(NoveltyPersistenceError) as exc_info:
            storage.load(["a"])
        assert exc_info.value.operation == "connect"
