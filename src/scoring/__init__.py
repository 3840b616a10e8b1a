"""Composite scoring and ordering of signals."""

from src.scoring.engagement import (
    ENGAGEMENT_FORMULAS,
    calculate_engagement_score,
    normalize_metric,
    weighted_formula,
)
from src.scoring.models import (
    RankedSignal,
    ScoreBreakdown,
    ScoreOutcome,
    ScoringWeights,
    SortKey,
    TimeRange,
)
from src.scoring.recency import (
    calculate_recency_score,
    filter_by_time_range,
    get_recency_label,
    get_relevant_timestamp,
    parse_timestamp,
)
from src.scoring.scorer import SignalScorer, round_half_up, sort_signals


__all__ = [
    "ENGAGEMENT_FORMULAS",
    "RankedSignal",
    "ScoreBreakdown",
    "ScoreOutcome",
    "ScoringWeights",
    "SignalScorer",
    "SortKey",
    "TimeRange",
    "calculate_engagement_score",
    "calculate_recency_score",
    "filter_by_time_range",
    "get_recency_label",
    "get_relevant_timestamp",
    "normalize_metric",
    "parse_timestamp",
    "round_half_up",
    "sort_signals",
    "weighted_formula",
]
