"""Data models for signal scoring."""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Protocol

from pydantic import Field, model_validator

from src.data_model.models import Item, StrictBaseModel
from src.scoring.constants import (
    DEFAULT_ENGAGEMENT_WEIGHT,
    DEFAULT_RECENCY_WEIGHT,
    DEFAULT_RELEVANCE_WEIGHT,
)


class SortKey(str, Enum):
    """Orderings supported by sort_signals."""

    SCORE = "score"
    RECENCY = "recency"
    ENGAGEMENT = "engagement"
    RELEVANCE = "relevance"


class TimeRange(str, Enum):
    """Windows supported by filter_by_time_range."""

    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    ALL = "all"


class ScoringWeights(StrictBaseModel):
    """Weights of the composite score components.

    Attributes:
        relevance: Weight of context relevance.
        recency: Weight of recency.
        engagement: Weight of engagement.
    """

    relevance: Annotated[float, Field(ge=0.0, le=1.0)] = DEFAULT_RELEVANCE_WEIGHT
    recency: Annotated[float, Field(ge=0.0, le=1.0)] = DEFAULT_RECENCY_WEIGHT
    engagement: Annotated[float, Field(ge=0.0, le=1.0)] = DEFAULT_ENGAGEMENT_WEIGHT

    @model_validator(mode="after")
    def _check_total(self) -> "ScoringWeights":
        if self.relevance + self.recency + self.engagement <= 0:
            msg = "at least one scoring weight must be positive"
            raise ValueError(msg)
        return self


@dataclass(frozen=True)
class ScoreBreakdown:
    """Rounded component scores, each in [0, 100].

    Attributes:
        relevance: Context relevance component.
        recency: Recency component.
        engagement: Engagement component.
    """

    relevance: int
    recency: int
    engagement: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of component name to value.
        """
        return {
            "relevance": self.relevance,
            "recency": self.recency,
            "engagement": self.engagement,
        }


@dataclass(frozen=True)
class ScoreOutcome:
    """Composite score and its components.

    Attributes:
        composite: Weighted sum rounded half-up, in [0, 100].
        breakdown: Rounded component scores.
    """

    composite: int
    breakdown: ScoreBreakdown


class RankedSignal(Protocol):
    """Anything sort_signals and filter_by_time_range can order."""

    @property
    def item(self) -> Item: ...

    @property
    def composite_score(self) -> int: ...

    @property
    def score_breakdown(self) -> ScoreBreakdown: ...
