"""Persistence backends for novelty records.

Every backend satisfies the two-method ``NoveltyStorage`` protocol so the
decay logic in NoveltyStore never depends on where records live.
"""

import json
import sqlite3
import tempfile
import threading
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog
from pydantic import ValidationError

from src.data_model.errors import NoveltyPersistenceError
from src.novelty.constants import (
    DEFAULT_FILE_MAX_ENTRIES,
    DEFAULT_KV_KEY,
    DEFAULT_KV_MAX_ENTRIES,
)
from src.novelty.models import NoveltyRecord


logger = structlog.get_logger()


@runtime_checkable
class NoveltyStorage(Protocol):
    """Protocol for novelty record persistence.

    Implementations may additionally provide ``clear()``.
    """

    def load(self, item_ids: Sequence[str]) -> dict[str, NoveltyRecord]:
        """Load records for the given ids.

        Args:
            item_ids: Ids to look up.

        Returns:
            Mapping of id to record for ids that are known.
        """
        ...

    def save(self, records: Sequence[NoveltyRecord]) -> None:
        """Persist records, overwriting any stored record with the same id.

        Args:
            records: Records to save.
        """
        ...


def _select(
    data: Mapping[str, NoveltyRecord], item_ids: Iterable[str]
) -> dict[str, NoveltyRecord]:
    return {item_id: data[item_id] for item_id in item_ids if item_id in data}


def evict_oldest(data: dict[str, NoveltyRecord], max_entries: int) -> int:
    """Remove the least recently seen records beyond a cap.

    Args:
        data: Records keyed by id, modified in place.
        max_entries: Maximum records to keep.

    Returns:
        Number of records removed.
    """
    overflow = len(data) - max_entries
    if overflow <= 0:
        return 0

    oldest = sorted(data.values(), key=lambda r: r.recency_key)[:overflow]
    for record in oldest:
        del data[record.item_id]
    return overflow


def _decode_records(payload: str, where: str) -> dict[str, NoveltyRecord]:
    """Decode a JSON object of records keyed by id.

    Args:
        payload: JSON text.
        where: Description of the origin for error messages.

    Returns:
        Records keyed by id.

    Raises:
        NoveltyPersistenceError: If the payload is malformed.
    """
    try:
        raw: Any = json.loads(payload) if payload.strip() else {}
        if not isinstance(raw, dict):
            msg = f"expected a JSON object in {where}"
            raise NoveltyPersistenceError("load", msg)
        return {
            item_id: NoveltyRecord.model_validate(value)
            for item_id, value in raw.items()
        }
    except (json.JSONDecodeError, ValidationError) as e:
        raise NoveltyPersistenceError("load", f"{where}: {e}") from e


def _encode_records(data: Mapping[str, NoveltyRecord]) -> str:
    return json.dumps(
        {item_id: record.model_dump(mode="json") for item_id, record in data.items()},
        indent=2,
        ensure_ascii=False,
        sort_keys=True,
    )


class MemoryStorage:
    """In-process storage. Default backend; nothing survives a restart."""

    def __init__(self) -> None:
        self._data: dict[str, NoveltyRecord] = {}

    def __len__(self) -> int:
        return len(self._data)

    def load(self, item_ids: Sequence[str]) -> dict[str, NoveltyRecord]:
        """Load records for the given ids."""
        return _select(self._data, item_ids)

    def save(self, records: Sequence[NoveltyRecord]) -> None:
        """Store records in memory."""
        for record in records:
            self._data[record.item_id] = record

    def clear(self) -> None:
        """Drop all records."""
        self._data.clear()


class JsonFileStorage:
    """Single JSON file holding every record, keyed by item id.

    The file is read lazily on first access and rewritten atomically
    (temp file + rename) on every save. When the entry cap is exceeded
    the least recently seen records are evicted.
    """

    def __init__(
        self,
        path: Path | str,
        max_entries: int = DEFAULT_FILE_MAX_ENTRIES,
    ) -> None:
        """Initialize the file backend.

        Args:
            path: JSON file path; created on first save.
            max_entries: Maximum records kept on disk.
        """
        self._path = Path(path)
        self._max_entries = max_entries
        self._data: dict[str, NoveltyRecord] | None = None
        self._log = logger.bind(
            component="novelty", backend="file", path=str(self._path)
        )

    @property
    def path(self) -> Path:
        """Get the storage file path."""
        return self._path

    def __len__(self) -> int:
        return len(self._ensure_loaded())

    def _ensure_loaded(self) -> dict[str, NoveltyRecord]:
        if self._data is not None:
            return self._data

        try:
            payload = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._data = {}
            return self._data
        except OSError as e:
            raise NoveltyPersistenceError("load", str(e)) from e

        self._data = _decode_records(payload, str(self._path))
        self._log.debug("novelty_file_loaded", records=len(self._data))
        return self._data

    def load(self, item_ids: Sequence[str]) -> dict[str, NoveltyRecord]:
        """Load records for the given ids.

        Raises:
            NoveltyPersistenceError: If the file cannot be read or parsed.
        """
        return _select(self._ensure_loaded(), item_ids)

    def save(self, records: Sequence[NoveltyRecord]) -> None:
        """Merge records and rewrite the file.

        Raises:
            NoveltyPersistenceError: If the file cannot be written.
        """
        data = dict(self._ensure_loaded())
        for record in records:
            data[record.item_id] = record

        evicted = evict_oldest(data, self._max_entries)
        if evicted:
            self._log.info("novelty_records_evicted", evicted=evicted, kept=len(data))

        self._write(_encode_records(data))
        self._data = data

    def clear(self) -> None:
        """Drop all records and truncate the file to an empty object."""
        self._write("{}")
        self._data = {}

    def _write(self, content: str) -> None:
        """Write content to the storage file with atomic semantics."""
        temp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f"{self._path.stem}_",
                suffix=".json.tmp",
                delete=False,
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(content)

            temp_path.replace(self._path)
            temp_path = None
        except OSError as e:
            raise NoveltyPersistenceError("save", str(e)) from e
        finally:
            if temp_path and temp_path.exists():
                temp_path.unlink()


class KeyValueStorage:
    """Local key/value store in the style of browser localStorage.

    All records are serialized as one JSON value under a single key in a
    SQLite ``kv_store`` table. Shares the cap and eviction policy of
    JsonFileStorage. Use ``":memory:"`` for a throwaway store.
    """

    def __init__(
        self,
        db_path: Path | str = ":memory:",
        key: str = DEFAULT_KV_KEY,
        max_entries: int = DEFAULT_KV_MAX_ENTRIES,
    ) -> None:
        """Initialize the key/value backend.

        Args:
            db_path: SQLite database path or ":memory:".
            key: Key under which records are stored.
            max_entries: Maximum records kept.
        """
        self._db_path = str(db_path)
        self._key = key
        self._max_entries = max_entries
        self._conn: sqlite3.Connection | None = None
        self._data: dict[str, NoveltyRecord] | None = None
        self._lock = threading.Lock()
        self._log = logger.bind(component="novelty", backend="kv", key=key)

    @property
    def key(self) -> str:
        """Get the storage key."""
        return self._key

    def __len__(self) -> int:
        with self._lock:
            return len(self._ensure_loaded())

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        if self._db_path != ":memory:":
            try:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise NoveltyPersistenceError("connect", str(e)) from e

        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.execute(
            "CREATE TABLE IF NOT EXISTS kv_store "
            "(key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        )
        conn.commit()
        self._conn = conn
        return conn

    def _ensure_loaded(self) -> dict[str, NoveltyRecord]:
        if self._data is not None:
            return self._data

        try:
            row = (
                self._connect()
                .execute("SELECT value FROM kv_store WHERE key = ?", (self._key,))
                .fetchone()
            )
        except sqlite3.Error as e:
            raise NoveltyPersistenceError("load", str(e)) from e

        self._data = _decode_records(row[0], f"key '{self._key}'") if row else {}
        return self._data

    def load(self, item_ids: Sequence[str]) -> dict[str, NoveltyRecord]:
        """Load records for the given ids.

        Raises:
            NoveltyPersistenceError: If the store cannot be read or parsed.
        """
        with self._lock:
            return _select(self._ensure_loaded(), item_ids)

    def save(self, records: Sequence[NoveltyRecord]) -> None:
        """Merge records and rewrite the stored value.

        Raises:
            NoveltyPersistenceError: If the store cannot be written.
        """
        with self._lock:
            data = dict(self._ensure_loaded())
            for record in records:
                data[record.item_id] = record

            evicted = evict_oldest(data, self._max_entries)
            if evicted:
                self._log.info(
                    "novelty_records_evicted", evicted=evicted, kept=len(data)
                )

            self._put(_encode_records(data))
            self._data = data

    def clear(self) -> None:
        """Drop all records and remove the stored value."""
        with self._lock:
            try:
                conn = self._connect()
                with conn:
                    conn.execute("DELETE FROM kv_store WHERE key = ?", (self._key,))
            except sqlite3.Error as e:
                raise NoveltyPersistenceError("clear", str(e)) from e
            self._data = {}

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _put(self, value: str) -> None:
        try:
            conn = self._connect()
            with conn:
                conn.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (self._key, value),
                )
        except sqlite3.Error as e:
            raise NoveltyPersistenceError("save", str(e)) from e
