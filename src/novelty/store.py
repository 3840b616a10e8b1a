"""Decay-based novelty tracking over pluggable storage.

Novelty is anchored to the first sighting of an item: something seen
once a week ago still decays toward staleness, and re-surfacing does
not reset the clock. This separates items that are actually new from
items that are perpetually trending.
"""

import math
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from src.data_model.models import Item
from src.novelty.constants import (
    DEFAULT_HALF_LIFE_DAYS,
    MIN_NOVELTY_SCORE,
    SECONDS_PER_DAY,
)
from src.novelty.models import NoveltyRecord, NoveltyStats
from src.novelty.storage import MemoryStorage, NoveltyStorage


logger = structlog.get_logger()

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class NoveltyStore:
    """Tracks first/last sightings and computes decayed novelty scores.

    Reads go through an in-memory cache warmed by load_batch(). Writes are
    buffered and only reach storage on flush(), so a crash loses at most
    the sightings since the last flush.
    """

    def __init__(
        self,
        storage: NoveltyStorage | None = None,
        *,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        min_score: float = MIN_NOVELTY_SCORE,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            storage: Persistence backend (default: MemoryStorage).
            half_life_days: Days for novelty to halve.
            min_score: Floor for novelty scores.
            clock: Time source returning aware datetimes (default: UTC now).

        Raises:
            ValueError: If half_life_days or min_score is out of range.
        """
        if half_life_days <= 0:
            msg = "half_life_days must be positive"
            raise ValueError(msg)
        if not 0.0 <= min_score <= 1.0:
            msg = "min_score must be in [0, 1]"
            raise ValueError(msg)

        self._storage: NoveltyStorage = (
            storage if storage is not None else MemoryStorage()
        )
        self._half_life_days = half_life_days
        self._min_score = min_score
        self._clock = clock or _utc_now
        self._cache: dict[str, NoveltyRecord] = {}
        self._pending: dict[str, NoveltyRecord] = {}
        self._log = logger.bind(component="novelty")

    @property
    def storage(self) -> NoveltyStorage:
        """Get the persistence backend."""
        return self._storage

    @property
    def half_life_days(self) -> float:
        """Get the decay half-life in days."""
        return self._half_life_days

    @property
    def min_score(self) -> float:
        """Get the novelty floor."""
        return self._min_score

    @property
    def pending_count(self) -> int:
        """Get the number of records awaiting flush."""
        return len(self._pending)

    def load_batch(self, item_ids: Sequence[str]) -> None:
        """Pre-warm the cache from storage.

        Unknown ids are ignored. Records already touched in this session
        are not overwritten by stored copies.

        Args:
            item_ids: Ids about to be scored.

        Raises:
            NoveltyPersistenceError: If the backend fails to load.
        """
        if not item_ids:
            return

        unique_ids = list(dict.fromkeys(item_ids))
        loaded = self._storage.load(unique_ids)
        for item_id, record in loaded.items():
            if item_id not in self._pending:
                self._cache[item_id] = record

        self._log.debug(
            "novelty_batch_loaded", requested=len(unique_ids), found=len(loaded)
        )

    def get_record(self, item_id: str) -> NoveltyRecord | None:
        """Get the cached record for an item, if any."""
        return self._cache.get(item_id)

    def has_seen(self, item_id: str) -> bool:
        """Check whether an item has a known sighting."""
        return item_id in self._cache

    def novelty_score(self, item_id: str) -> float:
        """Compute the decayed novelty of an item.

        Args:
            item_id: Item identifier.

        Returns:
            1.0 for unseen items, otherwise
            max(min_score, exp(-ln 2 / half_life * days_since_first_seen)).
        """
        record = self._cache.get(item_id)
        if record is None:
            return 1.0

        elapsed = self._clock() - record.first_seen
        days = max(0.0, elapsed.total_seconds() / SECONDS_PER_DAY)
        decay_rate = math.log(2) / self._half_life_days
        return max(self._min_score, math.exp(-decay_rate * days))

    def mark_seen(
        self, item_id: str, metadata: Mapping[str, Any] | None = None
    ) -> NoveltyRecord:
        """Record a sighting. Buffered until flush().

        Args:
            item_id: Item identifier.
            metadata: Caller metadata stored with a new record.

        Returns:
            The created or updated record.
        """
        now = self._clock()
        existing = self._cache.get(item_id)

        if existing is None:
            record = NoveltyRecord(
                item_id=item_id,
                first_seen=now,
                last_seen=now,
                seen_count=1,
                metadata=dict(metadata or {}),
            )
        else:
            record = existing.model_copy(
                update={"last_seen": now, "seen_count": existing.seen_count + 1}
            )

        self._cache[item_id] = record
        self._pending[item_id] = record
        return record

    def process_items(self, items: Sequence[Item]) -> dict[str, float]:
        """Score then mark each item, in input order.

        Args:
            items: Items to process.

        Returns:
            Mapping of item id to novelty score before marking.
        """
        scores: dict[str, float] = {}
        for item in items:
            scores[item.id] = self.novelty_score(item.id)
            self.mark_seen(item.id, {"title": item.title, "source": item.source})
        return scores

    def flush(self) -> int:
        """Persist all records touched since the last flush.

        An empty pending set does not touch the backend. If the backend
        fails the pending set is kept so a later flush can retry.

        Returns:
            Number of records written.

        Raises:
            NoveltyPersistenceError: If the backend fails to save.
        """
        if not self._pending:
            return 0

        records = list(self._pending.values())
        self._storage.save(records)
        self._pending.clear()

        self._log.info("novelty_flushed", records=len(records))
        return len(records)

    def stats(self) -> NoveltyStats:
        """Summarize cached records."""
        now = self._clock()
        one_day_ago = now - timedelta(days=1)
        one_week_ago = now - timedelta(days=7)

        return NoveltyStats(
            total=len(self._cache),
            new_today=sum(
                1 for r in self._cache.values() if r.first_seen > one_day_ago
            ),
            new_this_week=sum(
                1 for r in self._cache.values() if r.first_seen > one_week_ago
            ),
            pending_updates=len(self._pending),
        )
