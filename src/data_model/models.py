"""Shared Pydantic models for feed items."""

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Generic time fields some adapters put on the item instead of in metadata.
TOP_LEVEL_TIME_FIELDS = ("timestamp", "date")


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class Item(BaseModel):
    """A normalized content item produced by a feed source adapter.

    Unknown top-level fields are ignored, except ``timestamp`` and ``date``
    which are moved into metadata unless metadata already defines them.

    Attributes:
        id: Caller-supplied identifier, unique within a run.
        source: Source name (github, hackernews, reddit, ...).
        title: Item title.
        description: Item description or summary.
        url: Canonical URL.
        metadata: Open source-specific fields (stars, points, timestamps).
        fetched_at: When the adapter fetched the item.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: Annotated[str, Field(min_length=1)]
    source: str = "unknown"
    title: str = ""
    description: str = ""
    url: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_time_fields(cls, data: Any) -> Any:
        """Copy top-level time fields into metadata without mutating input."""
        if not isinstance(data, Mapping):
            return data

        lifted = {
            name: data[name]
            for name in TOP_LEVEL_TIME_FIELDS
            if data.get(name) is not None
        }
        metadata = data.get("metadata") or {}
        if not lifted or not isinstance(metadata, Mapping):
            return data

        return {**data, "metadata": {**lifted, **metadata}}

    @property
    def text(self) -> str:
        """Text used for embedding and keyword matching."""
        return f"{self.title} {self.description}".strip()
