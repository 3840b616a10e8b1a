"""Metrics collection for filtering runs."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class FilterMetrics:
    """Metrics for filter pipeline operations.

    Counters accumulate across runs until reset().

    Attributes:
        runs_total: Completed runs.
        runs_failed: Runs that raised.
        items_in: Items supplied by callers.
        items_valid: Items that passed validation.
        items_passed: Items emitted as signals.
        dropped_by_reason: Drop count per reason (invalid, relevance, novelty).
        passed_by_source: Signal count per source.
        phase_durations_ms: Accumulated time per run phase.
        score_values: Composite scores for percentile calculation.
    """

    runs_total: int = 0
    runs_failed: int = 0
    items_in: int = 0
    items_valid: int = 0
    items_passed: int = 0
    dropped_by_reason: dict[str, int] = field(default_factory=dict)
    passed_by_source: dict[str, int] = field(default_factory=dict)
    phase_durations_ms: dict[str, float] = field(default_factory=dict)
    score_values: list[int] = field(default_factory=list)

    _instance: ClassVar["FilterMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FilterMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_items(self, items_in: int, items_valid: int) -> None:
        """Record input and validated item counts.

        Args:
            items_in: Items supplied.
            items_valid: Items that passed validation.
        """
        self.items_in += items_in
        self.items_valid += items_valid
        if items_in > items_valid:
            self.record_drop("invalid", items_in - items_valid)

    def record_drop(self, reason: str, count: int = 1) -> None:
        """Record dropped items.

        Args:
            reason: Why the items were dropped.
            count: Number of items.
        """
        self.dropped_by_reason[reason] = self.dropped_by_reason.get(reason, 0) + count

    def record_signal(self, source: str, score: int) -> None:
        """Record an emitted signal.

        Args:
            source: Item source.
            score: Composite score.
        """
        self.items_passed += 1
        self.passed_by_source[source] = self.passed_by_source.get(source, 0) + 1
        self.score_values.append(score)

    def record_phase(self, phase: str, duration_ms: float) -> None:
        """Accumulate time spent in a run phase.

        Args:
            phase: Phase name.
            duration_ms: Duration in milliseconds.
        """
        self.phase_durations_ms[phase] = (
            self.phase_durations_ms.get(phase, 0.0) + duration_ms
        )

    def record_run(self, *, failed: bool) -> None:
        """Record a finished run.

        Args:
            failed: Whether the run raised.
        """
        if failed:
            self.runs_failed += 1
        else:
            self.runs_total += 1

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate composite score percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.score_values:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        sorted_scores = sorted(self.score_values)
        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return float(sorted_scores[min(idx, n - 1)])

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "runs_total": self.runs_total,
            "runs_failed": self.runs_failed,
            "items_in": self.items_in,
            "items_valid": self.items_valid,
            "items_passed": self.items_passed,
            "dropped_by_reason": dict(self.dropped_by_reason),
            "passed_by_source": dict(self.passed_by_source),
            "phase_durations_ms": dict(self.phase_durations_ms),
            "score_percentiles": self.get_score_percentiles(),
        }
