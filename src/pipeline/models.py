"""Data models for filtering runs."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field, field_validator

from src.classifier.classifier import GLOBAL_KEYWORDS_KEY
from src.classifier.models import Confidence, SignalType
from src.data_model.models import Item, StrictBaseModel
from src.scoring.models import ScoreBreakdown, ScoringWeights, SortKey
from src.similarity.constants import DEFAULT_CONCURRENCY


if TYPE_CHECKING:
    from src.settings.app import FilterSettings


DEFAULT_RELEVANCE_THRESHOLD = 0.30
DEFAULT_NOVELTY_THRESHOLD = 0.5

_USER_KEYWORD_KEYS = frozenset({GLOBAL_KEYWORDS_KEY, *(t.value for t in SignalType)})


class FilterOptions(StrictBaseModel):
    """Options for one filtering run.

    Attributes:
        relevance_threshold: Minimum similarity to keep an item.
        novelty_threshold: Minimum novelty to keep an item (decay mode).
        concurrency: Width of each concurrent similarity group.
        user_keywords: Keyword overrides keyed by "global" or a category.
        existing_ids: Ids treated as already seen when no novelty store
            is supplied.
        sort_by: Output ordering.
        weights: Composite score weights.
        engagement_baselines: Per-source engagement baseline overrides.
        timestamp_fields: Per-source timestamp field overrides.
        explain_matches: Attach the best matching context point to signals.
        embed_timeout_s: Per-item similarity wait limit, if any.
        verbose: Promote per-item and progress logs from debug to info.
    """

    relevance_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = (
        DEFAULT_RELEVANCE_THRESHOLD
    )
    novelty_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = (
        DEFAULT_NOVELTY_THRESHOLD
    )
    concurrency: Annotated[int, Field(ge=1)] = DEFAULT_CONCURRENCY
    user_keywords: dict[str, list[str]] = Field(default_factory=dict)
    existing_ids: frozenset[str] = frozenset()
    sort_by: SortKey = SortKey.SCORE
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    engagement_baselines: dict[str, dict[str, float]] = Field(default_factory=dict)
    timestamp_fields: dict[str, list[str]] = Field(default_factory=dict)
    explain_matches: bool = True
    embed_timeout_s: Annotated[float, Field(gt=0)] | None = None
    verbose: bool = False

    @field_validator("user_keywords")
    @classmethod
    def _check_keyword_keys(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        unknown = sorted(set(value) - _USER_KEYWORD_KEYS)
        if unknown:
            msg = (
                f"unknown user_keywords keys {unknown}; "
                f"expected any of {sorted(_USER_KEYWORD_KEYS)}"
            )
            raise ValueError(msg)
        return value

    @classmethod
    def from_settings(
        cls, settings: "FilterSettings", **overrides: Any
    ) -> "FilterOptions":
        """Build options from environment settings.

        Args:
            settings: Loaded settings.
            **overrides: Fields that take precedence over settings.

        Returns:
            Validated options.
        """
        values: dict[str, Any] = {
            "relevance_threshold": settings.relevance_threshold,
            "novelty_threshold": settings.novelty_threshold,
            "concurrency": settings.concurrency,
            "embed_timeout_s": settings.embed_timeout_s,
            "verbose": settings.verbose,
        }
        values.update(overrides)
        return cls.model_validate(values)


@dataclass(frozen=True)
class SignalResult:
    """Derived annotations for an item that passed both thresholds.

    Attributes:
        signal_type: Assigned category.
        confidence: Relevance band of the similarity value.
        keyword_confidence: Confidence of the keyword classification.
        matched_keyword: Keyword that decided the category, if any.
        is_watched: True if a user global keyword matched.
        reason: Templated one-sentence explanation.
        match_explanation: Closest context point, if explanations are on.
        relevance_score: Similarity scaled to 0-100.
        novelty_score: Novelty scaled to 0-100.
        composite_score: Final 0-100 ranking value.
        score_breakdown: Rounded composite components.
    """

    signal_type: SignalType
    confidence: Confidence
    keyword_confidence: Confidence
    matched_keyword: str | None
    is_watched: bool
    reason: str
    match_explanation: str | None
    relevance_score: int
    novelty_score: int
    composite_score: int
    score_breakdown: ScoreBreakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Returns:
            JSON-compatible dictionary.
        """
        return {
            "signal_type": self.signal_type.value,
            "confidence": self.confidence.value,
            "keyword_confidence": self.keyword_confidence.value,
            "matched_keyword": self.matched_keyword,
            "is_watched": self.is_watched,
            "reason": self.reason,
            "match_explanation": self.match_explanation,
            "relevance_score": self.relevance_score,
            "novelty_score": self.novelty_score,
            "composite_score": self.composite_score,
            "score_breakdown": self.score_breakdown.to_dict(),
        }


@dataclass(frozen=True)
class Signal:
    """An item annotated with its filter result.

    Attributes:
        item: The original, unmodified item.
        result: Filter annotations.
        filtered_at: When the run produced this signal.
        recency_label: Human readable age of the item.
    """

    item: Item
    result: SignalResult
    filtered_at: datetime
    recency_label: str

    @property
    def composite_score(self) -> int:
        """Get the composite score."""
        return self.result.composite_score

    @property
    def score_breakdown(self) -> ScoreBreakdown:
        """Get the composite components."""
        return self.result.score_breakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Returns:
            Item fields plus ``filter_result``, ``filtered_at``, ``score``
            and ``recency_label``.
        """
        return {
            **self.item.model_dump(mode="json"),
            "filter_result": self.result.to_dict(),
            "filtered_at": self.filtered_at.isoformat(),
            "score": self.result.composite_score,
            "recency_label": self.recency_label,
        }


@dataclass
class SourceStats:
    """Pass-rate statistics for one source.

    Attributes:
        total: Valid items from the source.
        passed: Items that passed both thresholds.
        relevance_sum: Sum of similarity values over all items.
    """

    total: int = 0
    passed: int = 0
    relevance_sum: float = 0.0

    @property
    def avg_relevance(self) -> float:
        """Get the mean similarity, 0.0 when empty."""
        return self.relevance_sum / self.total if self.total else 0.0

    @property
    def pass_rate(self) -> float:
        """Get the fraction of items that passed, 0.0 when empty."""
        return self.passed / self.total if self.total else 0.0

    def record(self, relevance: float, passed: bool) -> None:
        """Count one item.

        Args:
            relevance: Item similarity.
            passed: Whether the item passed both thresholds.
        """
        self.total += 1
        self.relevance_sum += relevance
        if passed:
            self.passed += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "passed": self.passed,
            "avg_relevance": round(self.avg_relevance, 4),
            "pass_rate": round(self.pass_rate, 4),
        }


@dataclass
class FilterRunResult:
    """Outcome of a filtering run.

    Attributes:
        run_id: Identifier of the run.
        signals: Signals in output order.
        stats: Per-source statistics.
        items_in: Items supplied by the caller.
        items_valid: Items that passed validation.
        duration_ms: Wall time of the run.
    """

    run_id: str
    signals: list[Signal] = field(default_factory=list)
    stats: dict[str, SourceStats] = field(default_factory=dict)
    items_in: int = 0
    items_valid: int = 0
    duration_ms: float = 0.0

    @property
    def items_dropped(self) -> int:
        """Get the number of items dropped during validation."""
        return self.items_in - self.items_valid

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "run_id": self.run_id,
            "signals": [s.to_dict() for s in self.signals],
            "stats": {source: s.to_dict() for source, s in self.stats.items()},
            "items_in": self.items_in,
            "items_valid": self.items_valid,
            "duration_ms": self.duration_ms,
        }


def stats_summary(stats: Mapping[str, SourceStats]) -> dict[str, str]:
    """Render per-source stats as "passed/total (rate%)" strings."""
    return {
        source: f"{s.passed}/{s.total} ({round(s.pass_rate * 100)}%)"
        for source, s in stats.items()
    }
