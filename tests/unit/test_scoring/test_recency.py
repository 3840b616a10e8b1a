"""Unit tests for timestamp resolution, recency scores and labels."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from src.data_model.models import Item
from src.scoring.models import ScoreBreakdown
from src.scoring.recency import (
    calculate_recency_score,
    filter_by_time_range,
    get_recency_label,
    get_relevant_timestamp,
    parse_timestamp,
)
from tests.helpers.time import FIXED_NOW


@dataclass(frozen=True)
class _Ranked:
    item: Item
    composite_score: int = 0
    score_breakdown: ScoreBreakdown = ScoreBreakdown(0, 0, 0)


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


class TestParseTimestamp:
    """Tests for parse_timestamp()."""

    def test_iso_with_z(self) -> None:
        """A trailing Z is read as UTC."""
        assert parse_timestamp("2025-03-14T12:00:00Z") == FIXED_NOW

    def test_iso_with_offset(self) -> None:
        """Offsets are preserved as aware datetimes."""
        parsed = parse_timestamp("2025-03-14T14:00:00+02:00")
        assert parsed == FIXED_NOW

    def test_naive_values_are_utc(self) -> None:
        """Naive strings and datetimes are taken as UTC."""
        assert parse_timestamp("2025-03-14T12:00:00") == FIXED_NOW
        assert parse_timestamp(datetime(2025, 3, 14, 12)) == FIXED_NOW

    def test_epoch_seconds(self) -> None:
        """Numbers are epoch seconds."""
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)
        assert parse_timestamp(FIXED_NOW.timestamp()) == FIXED_NOW

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, math.nan, [1]])
    def test_unusable_values(self, value: object) -> None:
        """Empty, malformed and non-timestamp values give None."""
        assert parse_timestamp(value) is None


class TestGetRelevantTimestamp:
    """Tests for get_relevant_timestamp()."""

    def test_source_field_beats_fetched_at(self) -> None:
        """GitHub items use their last push time."""
        pushed = FIXED_NOW - timedelta(days=3)
        item = Item(
            id="1",
            source="github",
            metadata={"pushed_at": _iso(pushed)},
            fetched_at=FIXED_NOW,
        )
        assert get_relevant_timestamp(item) == pushed

    def test_source_fields_in_order(self) -> None:
        """The second default field is used when the first is missing."""
        updated = FIXED_NOW - timedelta(days=1)
        item = Item(id="1", source="github", metadata={"updated_at": _iso(updated)})
        assert get_relevant_timestamp(item) == updated

    def test_reddit_epoch_field(self) -> None:
        """Reddit timestamps are epoch seconds."""
        item = Item(
            id="1",
            source="reddit",
            metadata={"created_utc": FIXED_NOW.timestamp()},
        )
        assert get_relevant_timestamp(item) == FIXED_NOW

    def test_custom_fields_first(self) -> None:
        """Per-source overrides take precedence over defaults."""
        released = FIXED_NOW - timedelta(days=10)
        item = Item(
            id="1",
            source="github",
            metadata={
                "released_at": _iso(released),
                "pushed_at": _iso(FIXED_NOW),
            },
        )
        found = get_relevant_timestamp(item, {"github": ["released_at"]})
        assert found == released

    def test_fetched_at_before_generic_fields(self) -> None:
        """fetched_at is preferred to generic date fields."""
        item = Item(
            id="1",
            metadata={"date": "2020-01-01"},
            fetched_at=FIXED_NOW,
        )
        assert get_relevant_timestamp(item) == FIXED_NOW

    def test_generic_fields_last(self) -> None:
        """Generic timestamp and date fields are the final fallback."""
        item = Item(id="1", metadata={"date": "2025-03-14T12:00:00Z"})
        assert get_relevant_timestamp(item) == FIXED_NOW

    def test_top_level_date_fallback(self) -> None:
        """A date given beside the item fields is still found."""
        item = Item.model_validate({"id": "1", "date": "2025-03-14T12:00:00Z"})
        assert get_relevant_timestamp(item) == FIXED_NOW

    def test_nothing_usable(self) -> None:
        """Items without any timestamp resolve to None."""
        item = Item(id="1", metadata={"date": "soon"})
        assert get_relevant_timestamp(item) is None


class TestCalculateRecencyScore:
    """Tests for calculate_recency_score()."""

    def test_now_is_full_score(self) -> None:
        """A timestamp equal to now scores 100."""
        assert calculate_recency_score(FIXED_NOW, FIXED_NOW) == pytest.approx(100.0)

    def test_half_life(self) -> None:
        """The score halves every half-life."""
        week_ago = FIXED_NOW - timedelta(days=7)
        assert calculate_recency_score(week_ago, FIXED_NOW) == pytest.approx(50.0)
        assert calculate_recency_score(
            week_ago, FIXED_NOW, half_life_days=3.5
        ) == pytest.approx(25.0)

    def test_future_is_capped(self) -> None:
        """Future timestamps are clamped to 100."""
        tomorrow = FIXED_NOW + timedelta(days=1)
        assert calculate_recency_score(tomorrow, FIXED_NOW) == 100.0

    def test_missing_is_neutral(self) -> None:
        """Unknown timestamps score 50."""
        assert calculate_recency_score(None, FIXED_NOW) == 50.0


class TestGetRecencyLabel:
    """Tests for get_recency_label()."""

    @pytest.mark.parametrize(
        ("age", "label"),
        [
            (timedelta(minutes=30), "Just now"),
            (timedelta(hours=3, minutes=20), "3h ago"),
            (timedelta(hours=30), "Yesterday"),
            (timedelta(days=3, hours=5), "3d ago"),
            (timedelta(days=10), "Last week"),
            (timedelta(days=21), "3w ago"),
            (timedelta(days=45), "Last month"),
            (timedelta(days=95), "3mo ago"),
        ],
    )
    def test_labels(self, age: timedelta, label: str) -> None:
        """Ages render as short human labels."""
        assert get_recency_label(FIXED_NOW - age, FIXED_NOW) == label

    def test_unknown(self) -> None:
        """A missing timestamp is labelled Unknown."""
        assert get_recency_label(None, FIXED_NOW) == "Unknown"


class TestFilterByTimeRange:
    """Tests for filter_by_time_range()."""

    @pytest.fixture
    def signals(self) -> list[_Ranked]:
        """Signals aged one hour, three days, twenty days and unknown."""
        return [
            _Ranked(Item(id="fresh", fetched_at=FIXED_NOW - timedelta(hours=1))),
            _Ranked(Item(id="days", fetched_at=FIXED_NOW - timedelta(days=3))),
            _Ranked(Item(id="weeks", fetched_at=FIXED_NOW - timedelta(days=20))),
            _Ranked(Item(id="undated")),
        ]

    @pytest.mark.parametrize(
        ("since", "expected"),
        [
            ("24h", ["fresh"]),
            ("7d", ["fresh", "days"]),
            ("30d", ["fresh", "days", "weeks"]),
            ("all", ["fresh", "days", "weeks", "undated"]),
        ],
    )
    def test_windows(
        self, signals: list[_Ranked], since: str, expected: list[str]
    ) -> None:
        """Each window keeps dated signals inside it, in input order."""
        kept = filter_by_time_range(signals, since, FIXED_NOW)
        assert [s.item.id for s in kept] == expected

    def test_unknown_window(self, signals: list[_Ranked]) -> None:
        """Unknown windows are rejected."""
        with pytest.raises(ValueError, match="1y"):
            filter_by_time_range(signals, "1y", FIXED_NOW)
