"""Per-source engagement normalization.

Each known source maps to a formula in ENGAGEMENT_FORMULAS. A formula
normalizes every metric against the source's baseline (a metric at its
baseline scores 50, capped at 100) and combines them by weight. Adding a
source means adding one table entry.
"""

import math
from collections.abc import Callable, Mapping
from typing import Any

from src.data_model.models import Item
from src.scoring.constants import (
    BASELINE_SCORE,
    DEFAULT_ENGAGEMENT_BASELINES,
    DEFAULT_ENGAGEMENT_SCORE,
    GENERIC_ENGAGEMENT_DIVISOR,
    GENERIC_ENGAGEMENT_FIELDS,
    MAX_SUBSCORE,
)


EngagementFormula = Callable[[Mapping[str, Any], Mapping[str, float]], float]


def _metric(meta: Mapping[str, Any], name: str) -> float:
    value = meta.get(name)
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def normalize_metric(value: float, baseline: float) -> float:
    """Scale a metric so its baseline maps to 50, capped at 100.

    Args:
        value: Raw metric value.
        baseline: Median value for the source; non-positive means 1.

    Returns:
        min(100, value / baseline * 50).
    """
    if baseline <= 0:
        baseline = 1.0
    return min(MAX_SUBSCORE, value / baseline * BASELINE_SCORE)


def weighted_formula(*metrics: tuple[str, float]) -> EngagementFormula:
    """Build a formula combining normalized metrics by weight.

    Args:
        *metrics: (metadata field, weight) pairs. The field name is also
            the baseline key.

    Returns:
        Formula taking (metadata, baselines) and returning a score.
    """

    def formula(meta: Mapping[str, Any], baselines: Mapping[str, float]) -> float:
        return sum(
            normalize_metric(_metric(meta, name), baselines.get(name, 1.0)) * weight
            for name, weight in metrics
        )

    return formula


ENGAGEMENT_FORMULAS: dict[str, EngagementFormula] = {
    "github": weighted_formula(("stars", 0.7), ("forks", 0.3)),
    "hackernews": weighted_formula(("points", 0.6), ("comments", 0.4)),
    "reddit": weighted_formula(("score", 0.6), ("comments", 0.4)),
    "lobsters": weighted_formula(("score", 0.6), ("comments", 0.4)),
    "devto": weighted_formula(("reactions", 0.6), ("comments", 0.4)),
    "huggingface": weighted_formula(("likes", 0.5), ("downloads", 0.5)),
    "producthunt": weighted_formula(("votes", 0.7), ("comments", 0.3)),
}


def generic_engagement(meta: Mapping[str, Any]) -> float:
    """Heuristic for sources without a formula.

    Args:
        meta: Item metadata.

    Returns:
        First non-zero likes-like field divided by 10, capped at 100,
        or the default score when none is present.
    """
    for name in GENERIC_ENGAGEMENT_FIELDS:
        value = _metric(meta, name)
        if value:
            return min(MAX_SUBSCORE, value / GENERIC_ENGAGEMENT_DIVISOR)
    return DEFAULT_ENGAGEMENT_SCORE


def resolve_baselines(
    source: str,
    custom_baselines: Mapping[str, Mapping[str, float]] | None = None,
) -> dict[str, float]:
    """Merge custom baselines for a source over the defaults."""
    merged = dict(DEFAULT_ENGAGEMENT_BASELINES.get(source, {}))
    merged.update((custom_baselines or {}).get(source, {}))
    return merged


def calculate_engagement_score(
    item: Item,
    baselines: Mapping[str, Mapping[str, float]] | None = None,
) -> float:
    """Score an item's engagement relative to its source.

    Args:
        item: Item to score.
        baselines: Optional per-source baseline overrides.

    Returns:
        Engagement score in [0, 100].
    """
    formula = ENGAGEMENT_FORMULAS.get(item.source)
    if formula is None:
        score = generic_engagement(item.metadata)
    else:
        score = formula(item.metadata, resolve_baselines(item.source, baselines))

    if math.isnan(score):
        return DEFAULT_ENGAGEMENT_SCORE
    return max(0.0, min(MAX_SUBSCORE, score))
