"""Unit tests for the Item model."""

import pytest
from pydantic import ValidationError

from src.data_model.models import Item
from tests.helpers.time import FIXED_NOW


class TestItem:
    """Tests for Item validation and derived text."""

    def test_minimal(self) -> None:
        """Only an id is required."""
        item = Item(id="1")
        assert item.source == "unknown"
        assert item.text == ""
        assert item.metadata == {}

    def test_numeric_id_coerced(self) -> None:
        """Numeric ids become strings."""
        assert Item.model_validate({"id": 42}).id == "42"

    @pytest.mark.parametrize("raw", [{}, {"id": ""}, {"id": None}])
    def test_missing_id(self, raw: dict[str, object]) -> None:
        """Missing and empty ids are rejected."""
        with pytest.raises(ValidationError):
            Item.model_validate(raw)

    def test_extra_fields_ignored(self) -> None:
        """Unknown top-level fields are dropped."""
        item = Item.model_validate({"id": "1", "score": 99})
        assert not hasattr(item, "score")

    def test_text(self) -> None:
        """Text joins title and description."""
        item = Item(id="1", title="Foo", description="ships v2")
        assert item.text == "Foo ships v2"
        assert Item(id="2", description="only body").text == "only body"

    def test_fetched_at_parsed(self) -> None:
        """ISO strings become aware datetimes."""
        item = Item.model_validate({"id": "1", "fetched_at": "2025-03-14T12:00:00Z"})
        assert item.fetched_at == FIXED_NOW

    def test_frozen(self) -> None:
        """Items are immutable."""
        item = Item(id="1")
        with pytest.raises(ValidationError):
            item.title = "changed"  # type: ignore[misc]

    def test_top_level_time_fields_lifted(self) -> None:
        """Top-level timestamp and date land in metadata."""
        raw = {"id": "1", "timestamp": 1700000000, "date": "2025-03-14"}

        item = Item.model_validate(raw)

        assert item.metadata == {"timestamp": 1700000000, "date": "2025-03-14"}
        assert "metadata" not in raw

    def test_metadata_time_fields_win(self) -> None:
        """Metadata values are kept over top-level ones."""
        item = Item.model_validate(
            {"id": "1", "date": "2020-01-01", "metadata": {"date": "2025-03-14"}}
        )
        assert item.metadata == {"date": "2025-03-14"}
