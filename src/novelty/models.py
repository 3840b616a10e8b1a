"""Data models for novelty tracking."""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from pydantic import Field

from src.data_model.models import StrictBaseModel


class NoveltyRecord(StrictBaseModel):
    """Sighting history of a single item.

    Attributes:
        item_id: Item identifier.
        first_seen: First sighting; never changes after creation.
        last_seen: Most recent sighting.
        seen_count: Number of sightings.
        metadata: Caller metadata captured at first sighting.
    """

    item_id: Annotated[str, Field(min_length=1)]
    first_seen: datetime
    last_seen: datetime
    seen_count: Annotated[int, Field(ge=1)] = 1
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def recency_key(self) -> datetime:
        """Timestamp used for oldest-first eviction."""
        return self.last_seen or self.first_seen


@dataclass(frozen=True)
class NoveltyStats:
    """Statistics about records known to a NoveltyStore.

    Attributes:
        total: Records currently cached.
        new_today: Records first seen within the last day.
        new_this_week: Records first seen within the last week.
        pending_updates: Records awaiting flush.
    """

    total: int
    new_today: int
    new_this_week: int
    pending_updates: int
