"""Composite signal strength scoring."""

import math
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import TypeVar

from src.classifier.models import Confidence
from src.data_model.models import Item
from src.scoring.constants import (
    CONFIDENCE_SCORES,
    DEFAULT_RECENCY_HALF_LIFE_DAYS,
)
from src.scoring.engagement import calculate_engagement_score
from src.scoring.models import (
    RankedSignal,
    ScoreBreakdown,
    ScoreOutcome,
    ScoringWeights,
    SortKey,
)
from src.scoring.recency import calculate_recency_score, get_relevant_timestamp


T = TypeVar("T", bound=RankedSignal)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def _clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


class SignalScorer:
    """Computes 0-100 composite scores for items.

    Scoring formula:
        composite = relevance * w_relevance
                  + recency * w_recency
                  + engagement * w_engagement

    Where:
        - relevance: similarity scaled to 0-100, or a fixed value per
          confidence band when no similarity is available
        - recency: exponential decay from the item's relevant timestamp
        - engagement: source-specific normalization against baselines
    """

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        *,
        engagement_baselines: Mapping[str, Mapping[str, float]] | None = None,
        timestamp_fields: Mapping[str, Sequence[str]] | None = None,
        recency_half_life_days: float = DEFAULT_RECENCY_HALF_LIFE_DAYS,
    ) -> None:
        """Initialize the scorer.

        Args:
            weights: Component weights (default 0.45/0.35/0.20).
            engagement_baselines: Per-source baseline overrides.
            timestamp_fields: Per-source timestamp field overrides.
            recency_half_life_days: Days for the recency score to halve.
        """
        if recency_half_life_days <= 0:
            msg = "recency_half_life_days must be positive"
            raise ValueError(msg)

        self._weights = weights or ScoringWeights()
        self._baselines = engagement_baselines or {}
        self._timestamp_fields = timestamp_fields or {}
        self._half_life_days = recency_half_life_days

    @property
    def weights(self) -> ScoringWeights:
        """Get the component weights."""
        return self._weights

    def relevant_timestamp(self, item: Item) -> datetime | None:
        """Resolve an item's timestamp using this scorer's field overrides."""
        return get_relevant_timestamp(item, self._timestamp_fields)

    def score(
        self,
        item: Item,
        relevance: float | None,
        now: datetime,
        confidence: Confidence | None = None,
    ) -> ScoreOutcome:
        """Score a single item.

        Args:
            item: Item to score.
            relevance: Similarity in [0, 1], or None if unavailable.
            now: Reference time for recency.
            confidence: Band used when relevance is None (default medium).

        Returns:
            ScoreOutcome with the composite and rounded components.
        """
        if relevance is None:
            relevance_score = float(
                CONFIDENCE_SCORES[confidence or Confidence.MEDIUM]
            )
        else:
            relevance_score = max(0.0, min(100.0, relevance * 100.0))

        recency_score = calculate_recency_score(
            self.relevant_timestamp(item), now, self._half_life_days
        )
        engagement_score = calculate_engagement_score(item, self._baselines)

        composite = (
            relevance_score * self._weights.relevance
            + recency_score * self._weights.recency
            + engagement_score * self._weights.engagement
        )

        return ScoreOutcome(
            composite=_clamp_score(composite),
            breakdown=ScoreBreakdown(
                relevance=_clamp_score(relevance_score),
                recency=_clamp_score(recency_score),
                engagement=_clamp_score(engagement_score),
            ),
        )


_SORT_KEYS: dict[SortKey, Callable[[RankedSignal], int]] = {
    SortKey.SCORE: lambda s: s.composite_score,
    SortKey.RECENCY: lambda s: s.score_breakdown.recency,
    SortKey.ENGAGEMENT: lambda s: s.score_breakdown.engagement,
    SortKey.RELEVANCE: lambda s: s.score_breakdown.relevance,
}


def sort_signals(
    signals: Sequence[T], sort_by: SortKey | str = SortKey.SCORE
) -> list[T]:
    """Sort signals descending by the chosen key.

    The sort is stable: ties keep their input order.

    Args:
        signals: Scored signals.
        sort_by: "score", "recency", "engagement" or "relevance".

    Returns:
        New sorted list.

    Raises:
        ValueError: If sort_by is not a known key.
    """
    key = _SORT_KEYS[SortKey(sort_by)]
    return sorted(signals, key=key, reverse=True)
