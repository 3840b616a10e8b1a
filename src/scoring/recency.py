"""Timestamp resolution and recency scoring."""

import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from src.data_model.models import Item
from src.scoring.constants import (
    DEFAULT_RECENCY_HALF_LIFE_DAYS,
    DEFAULT_TIMESTAMP_FIELDS,
    FALLBACK_TIMESTAMP_FIELDS,
    MISSING_TIMESTAMP_SCORE,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
)
from src.scoring.models import RankedSignal, TimeRange


T = TypeVar("T", bound=RankedSignal)

_TIME_RANGE_WINDOWS: dict[TimeRange, timedelta] = {
    TimeRange.LAST_24H: timedelta(hours=24),
    TimeRange.LAST_7D: timedelta(days=7),
    TimeRange.LAST_30D: timedelta(days=30),
}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp-like value into an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), epoch seconds and
    ISO 8601 strings, including a trailing "Z".

    Args:
        value: Raw value from item metadata.

    Returns:
        Parsed datetime, or None if the value is empty or unparseable.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    if isinstance(value, int | float):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    return None


def _first_timestamp(meta: Mapping[str, Any], fields: Sequence[str]) -> datetime | None:
    for field_name in fields:
        parsed = parse_timestamp(meta.get(field_name))
        if parsed is not None:
            return parsed
    return None


def get_relevant_timestamp(
    item: Item,
    timestamp_fields: Mapping[str, Sequence[str]] | None = None,
) -> datetime | None:
    """Resolve the timestamp that best reflects an item's activity.

    Custom per-source fields are tried first, then the source's default
    metadata fields (e.g. last push for GitHub), then fetched_at, then the
    generic "timestamp" and "date" metadata fields.

    Args:
        item: Item to inspect.
        timestamp_fields: Optional metadata field overrides per source.

    Returns:
        Aware UTC datetime, or None if nothing usable is present.
    """
    meta = item.metadata

    custom_fields = (timestamp_fields or {}).get(item.source)
    if custom_fields:
        found = _first_timestamp(meta, custom_fields)
        if found is not None:
            return found

    found = _first_timestamp(meta, DEFAULT_TIMESTAMP_FIELDS.get(item.source, ()))
    if found is not None:
        return found

    if item.fetched_at is not None:
        return parse_timestamp(item.fetched_at)

    return _first_timestamp(meta, FALLBACK_TIMESTAMP_FIELDS)


def calculate_recency_score(
    timestamp: datetime | None,
    now: datetime,
    half_life_days: float = DEFAULT_RECENCY_HALF_LIFE_DAYS,
) -> float:
    """Score how recent a timestamp is with exponential decay.

    Args:
        timestamp: Activity time, or None if unknown.
        now: Reference time.
        half_life_days: Days for the score to halve.

    Returns:
        100 * exp(-ln 2 / half_life * age_days) clamped to [0, 100];
        50 when the timestamp is unknown.
    """
    if timestamp is None:
        return MISSING_TIMESTAMP_SCORE

    age_days = (now - timestamp).total_seconds() / SECONDS_PER_DAY
    decay_rate = math.log(2) / half_life_days
    score = 100.0 * math.exp(-decay_rate * age_days)
    return max(0.0, min(100.0, score))


def get_recency_label(timestamp: datetime | None, now: datetime) -> str:
    """Render a human readable age such as "3h ago" or "Last week".

    Args:
        timestamp: Activity time, or None if unknown.
        now: Reference time.

    Returns:
        Short label; "Unknown" when the timestamp is missing.
    """
    if timestamp is None:
        return "Unknown"

    elapsed = (now - timestamp).total_seconds()
    hours = elapsed / SECONDS_PER_HOUR
    days = elapsed / SECONDS_PER_DAY

    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{math.floor(hours)}h ago"
    if days < 2:
        return "Yesterday"
    if days < 7:
        return f"{math.floor(days)}d ago"
    if days < 14:
        return "Last week"
    if days < 30:
        return f"{math.floor(days / 7)}w ago"
    if days < 60:
        return "Last month"
    return f"{math.floor(days / 30)}mo ago"


def filter_by_time_range(
    signals: Sequence[T],
    since: TimeRange | str,
    now: datetime,
    timestamp_fields: Mapping[str, Sequence[str]] | None = None,
) -> list[T]:
    """Keep signals whose relevant timestamp falls inside a window.

    Signals without a resolvable timestamp are dropped for every window
    except "all".

    Args:
        signals: Signals to filter.
        since: One of "24h", "7d", "30d" or "all".
        now: Reference time.
        timestamp_fields: Optional metadata field overrides per source.

    Returns:
        Matching signals in their original order.

    Raises:
        ValueError: If since is not a known window.
    """
    time_range = TimeRange(since)
    if time_range is TimeRange.ALL:
        return list(signals)

    cutoff = now - _TIME_RANGE_WINDOWS[time_range]
    kept: list[T] = []
    for signal in signals:
        timestamp = get_relevant_timestamp(signal.item, timestamp_fields)
        if timestamp is not None and timestamp >= cutoff:
            kept.append(signal)
    return kept
