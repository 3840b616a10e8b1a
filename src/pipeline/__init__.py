"""Filter pipeline: validation, thresholds, classification and ranking."""

from src.pipeline.filter import SignalFilter, filter_items
from src.pipeline.metrics import FilterMetrics
from src.pipeline.models import (
    DEFAULT_NOVELTY_THRESHOLD,
    DEFAULT_RELEVANCE_THRESHOLD,
    FilterOptions,
    FilterRunResult,
    Signal,
    SignalResult,
    SourceStats,
)
from src.pipeline.state_machine import FilterState, FilterStateMachine


__all__ = [
    "DEFAULT_NOVELTY_THRESHOLD",
    "DEFAULT_RELEVANCE_THRESHOLD",
    "FilterMetrics",
    "FilterOptions",
    "FilterRunResult",
    "FilterState",
    "FilterStateMachine",
    "Signal",
    "SignalFilter",
    "SignalResult",
    "SourceStats",
    "filter_items",
]
