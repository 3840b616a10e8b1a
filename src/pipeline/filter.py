"""Signal filter orchestrator."""

import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from src.classifier.classifier import SignalClassifier, relevance_confidence
from src.classifier.context_parser import parse_context
from src.classifier.models import Classification
from src.data_model.errors import InputValidationError, ItemDefectError
from src.data_model.models import Item
from src.novelty.store import NoveltyStore
from src.pipeline.metrics import FilterMetrics
from src.pipeline.models import (
    FilterOptions,
    FilterRunResult,
    Signal,
    SignalResult,
    SourceStats,
    stats_summary,
)
from src.pipeline.state_machine import FilterState, FilterStateMachine
from src.scoring.recency import get_recency_label
from src.scoring.scorer import SignalScorer, round_half_up, sort_signals
from src.similarity.constants import DEFAULT_CACHE_SIZE
from src.similarity.engine import SimilarityEngine
from src.similarity.provider import EmbeddingProvider, default_provider


logger = structlog.get_logger()

# Progress is logged every this many items in verbose mode
_PROGRESS_LOG_EVERY = 50


@dataclass(frozen=True)
class _Candidate:
    """An item that passed both thresholds, awaiting classification."""

    item: Item
    relevance: float
    novelty: float


def _defect_reason(error: ValidationError) -> str:
    for detail in error.errors():
        if detail.get("loc") == ("id",):
            return "missing_id"
    if any(detail.get("type") == "model_type" for detail in error.errors()):
        return "not_an_object"
    return "invalid_fields"


class SignalFilter:
    """Ranks a batch of items against a context document.

    Implements a state machine flow:
        INIT -> CONTEXT_BOUND -> SCORING -> CLASSIFYING -> SCORED -> DONE

    Any exception moves the run to FAILED and propagates. Items failing
    the relevance or novelty threshold are dropped before classification.
    """

    def __init__(
        self,
        options: FilterOptions | None = None,
        *,
        engine: SimilarityEngine | None = None,
        provider: EmbeddingProvider | None = None,
        novelty_store: NoveltyStore | None = None,
        run_id: str | None = None,
        now: datetime | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
        metrics: FilterMetrics | None = None,
    ) -> None:
        """Initialize the filter.

        Args:
            options: Run options (defaults apply when omitted).
            engine: Long-lived similarity engine. When omitted a fresh
                engine with its own cache is created for every run.
            provider: Embedding provider for per-run engines (default:
                the shared fastembed provider).
            novelty_store: Decay-based novelty store. When omitted novelty
                is a binary seen/unseen check within the run.
            run_id: Run identifier for logging (default: random UUID).
            now: Fixed reference time (default: current UTC time per run).
            cache_size: Vector cache capacity for per-run engines.
            metrics: Optional metrics instance.
        """
        self._options = options or FilterOptions()
        self._engine = engine
        self._provider = provider
        self._novelty_store = novelty_store
        self._run_id = run_id or str(uuid.uuid4())
        self._now = now
        self._cache_size = cache_size
        self._metrics = metrics or FilterMetrics.get_instance()
        self._state_machine = FilterStateMachine(self._run_id)
        self._scorer = SignalScorer(
            self._options.weights,
            engagement_baselines=self._options.engagement_baselines,
            timestamp_fields=self._options.timestamp_fields,
        )

        self._log = logger.bind(component="pipeline", run_id=self._run_id)
        self._detail: Callable[..., Any] = (
            self._log.info if self._options.verbose else self._log.debug
        )

    @property
    def run_id(self) -> str:
        """Get the run identifier."""
        return self._run_id

    @property
    def options(self) -> FilterOptions:
        """Get the run options."""
        return self._options

    @property
    def state(self) -> FilterState:
        """Get the state of the current or last run."""
        return self._state_machine.state

    def run(self, items: Sequence[Any], context: Any) -> FilterRunResult:
        """Filter, classify and rank items against a context document.

        Args:
            items: Items or item mappings. Entries that fail validation
                (e.g. a missing id) are dropped, not fatal.
            context: Context document text.

        Returns:
            FilterRunResult with signals in output order and per-source
            statistics.

        Raises:
            InputValidationError: If the context is empty or not a string,
                or no items are given.
            NoveltyPersistenceError: If the novelty backend fails.
            FilterStateTransitionError: If the filter is reused mid-run.
        """
        if self._state_machine.state is not FilterState.INIT:
            self._state_machine = FilterStateMachine(self._run_id)

        start = time.perf_counter()
        try:
            result = self._run(items, context, start)
        except Exception as e:
            self._state_machine.fail()
            self._metrics.record_run(failed=True)
            self._log.error(
                "filter_failed",
                state=self._state_machine.state.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        self._metrics.record_run(failed=False)
        return result

    def _run(self, items: Sequence[Any], context: Any, start: float) -> FilterRunResult:
        now = self._now or datetime.now(UTC)
        options = self._options

        # INIT: validate inputs
        if not isinstance(context, str) or not context.strip():
            msg = "Context must be a non-empty string"
            raise InputValidationError(msg, field="context")
        if not items:
            msg = "At least one item is required"
            raise InputValidationError(msg, field="items")

        valid_items = self._validate_items(items)
        self._metrics.record_items(len(items), len(valid_items))
        self._log.info(
            "filter_started",
            items_in=len(items),
            items_valid=len(valid_items),
            novelty_mode="binary" if self._novelty_store is None else "decay",
        )

        result = FilterRunResult(
            run_id=self._run_id, items_in=len(items), items_valid=len(valid_items)
        )
        if not valid_items:
            self._transition_through_all_states()
            result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
            return result

        # CONTEXT_BOUND: baseline, keywords, context points
        phase_start = time.perf_counter()
        engine = self._engine or self._new_engine()
        engine.init()
        engine.set_baseline(context)
        parsed = parse_context(context)
        classifier = SignalClassifier(parsed, options.user_keywords)
        points = parsed.context_points if options.explain_matches else []
        engine.set_context_points(points)
        if self._novelty_store is not None:
            self._novelty_store.load_batch([item.id for item in valid_items])
        self._record_phase("context", phase_start)
        self._state_machine.to_context_bound()

        # SCORING: relevance in concurrent groups, then novelty in input order
        self._state_machine.to_scoring()
        phase_start = time.perf_counter()
        relevance = engine.batch_similarity(
            valid_items,
            concurrency=options.concurrency,
            on_progress=self._log_progress if options.verbose else None,
            timeout_s=options.embed_timeout_s,
        )
        candidates = self._apply_thresholds(valid_items, relevance, result.stats)
        self._record_phase("scoring", phase_start)

        # CLASSIFYING: survivors only
        self._state_machine.to_classifying()
        phase_start = time.perf_counter()
        classified = [
            (candidate, classifier.classify(candidate.item))
            for candidate in candidates
        ]
        self._record_phase("classifying", phase_start)

        # SCORED: composite score and ordering
        phase_start = time.perf_counter()
        signals = [
            self._build_signal(candidate, classification, classifier, engine, now)
            for candidate, classification in classified
        ]
        result.signals = sort_signals(signals, options.sort_by)
        for signal in result.signals:
            self._metrics.record_signal(signal.item.source, signal.composite_score)
        self._record_phase("scored", phase_start)
        self._state_machine.to_scored()

        # DONE: persist novelty
        if self._novelty_store is not None:
            phase_start = time.perf_counter()
            self._novelty_store.flush()
            self._record_phase("flush", phase_start)
        self._state_machine.to_done()

        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        self._log.info(
            "filter_complete",
            items_valid=len(valid_items),
            signals=len(result.signals),
            duration_ms=result.duration_ms,
            sources=stats_summary(result.stats),
        )
        return result

    def _new_engine(self) -> SimilarityEngine:
        provider = self._provider or default_provider()
        return SimilarityEngine(provider, cache_size=self._cache_size)

    def _validate_items(self, items: Sequence[Any]) -> list[Item]:
        """Coerce raw entries to Items, dropping defective ones.

        Args:
            items: Raw items.

        Returns:
            Valid items in input order.
        """
        valid: list[Item] = []
        for index, raw in enumerate(items):
            if isinstance(raw, Item):
                valid.append(raw)
                continue
            try:
                valid.append(Item.model_validate(raw))
            except ValidationError as e:
                defect = ItemDefectError(_defect_reason(e), index)
                title = raw.get("title", "") if isinstance(raw, dict) else ""
                self._detail(
                    "item_dropped",
                    index=defect.index,
                    reason=defect.reason,
                    title=str(title)[:50],
                )
        return valid

    def _apply_thresholds(
        self,
        items: Sequence[Item],
        relevance: dict[str, float],
        stats: dict[str, SourceStats],
    ) -> list[_Candidate]:
        """Resolve novelty and apply both thresholds, in input order.

        Args:
            items: Valid items.
            relevance: Similarity per item id.
            stats: Per-source statistics, updated in place.

        Returns:
            Items passing both thresholds.
        """
        options = self._options
        store = self._novelty_store
        seen: set[str] = set(options.existing_ids)
        candidates: list[_Candidate] = []

        for item in items:
            score = relevance.get(item.id, 0.0)

            if store is not None:
                novelty = store.novelty_score(item.id)
                store.mark_seen(item.id, {"title": item.title, "source": item.source})
                passes_novelty = novelty >= options.novelty_threshold
            else:
                novelty = 0.0 if item.id in seen else 1.0
                passes_novelty = novelty > 0
            seen.add(item.id)

            passes_relevance = score >= options.relevance_threshold
            passed = passes_relevance and passes_novelty
            stats.setdefault(item.source, SourceStats()).record(score, passed)

            if passed:
                candidates.append(_Candidate(item, score, novelty))
                continue

            reason = "relevance" if not passes_relevance else "novelty"
            self._metrics.record_drop(reason)
            self._detail(
                "item_filtered",
                item_id=item.id,
                reason=reason,
                relevance=round(score, 4),
                novelty=round(novelty, 4),
            )

        return candidates

    def _build_signal(
        self,
        candidate: _Candidate,
        classification: Classification,
        classifier: SignalClassifier,
        engine: SimilarityEngine,
        now: datetime,
    ) -> Signal:
        item = candidate.item
        outcome = self._scorer.score(item, candidate.relevance, now)
        explanation = (
            engine.best_matching_point(item) if self._options.explain_matches else None
        )

        result = SignalResult(
            signal_type=classification.signal_type,
            confidence=relevance_confidence(candidate.relevance),
            keyword_confidence=classification.confidence,
            matched_keyword=classification.matched_keyword,
            is_watched=classification.is_watched,
            reason=classifier.reason(classification.signal_type, item),
            match_explanation=explanation,
            relevance_score=round_half_up(candidate.relevance * 100),
            novelty_score=round_half_up(candidate.novelty * 100),
            composite_score=outcome.composite,
            score_breakdown=outcome.breakdown,
        )
        return Signal(
            item=item,
            result=result,
            filtered_at=now,
            recency_label=get_recency_label(self._scorer.relevant_timestamp(item), now),
        )

    def _log_progress(self, done: int, total: int) -> None:
        if done % _PROGRESS_LOG_EVERY == 0 or done == total:
            self._log.info("similarity_progress", done=done, total=total)

    def _record_phase(self, phase: str, phase_start: float) -> None:
        self._metrics.record_phase(phase, (time.perf_counter() - phase_start) * 1000)

    def _transition_through_all_states(self) -> None:
        """Walk an empty run through every state to DONE."""
        self._state_machine.to_context_bound()
        self._state_machine.to_scoring()
        self._state_machine.to_classifying()
        self._state_machine.to_scored()
        self._state_machine.to_done()


def filter_items(
    items: Sequence[Any],
    context: str,
    options: FilterOptions | None = None,
    *,
    engine: SimilarityEngine | None = None,
    provider: EmbeddingProvider | None = None,
    novelty_store: NoveltyStore | None = None,
    now: datetime | None = None,
) -> list[Signal]:
    """Filter items against a context document in one call.

    Args:
        items: Items or item mappings.
        context: Context document text.
        options: Run options.
        engine: Optional long-lived similarity engine.
        provider: Optional embedding provider for a per-run engine.
        novelty_store: Optional decay-based novelty store.
        now: Optional fixed reference time.

    Returns:
        Signals in output order.

    Raises:
        InputValidationError: If the context or item batch is unusable.
    """
    signal_filter = SignalFilter(
        options,
        engine=engine,
        provider=provider,
        novelty_store=novelty_store,
        now=now,
    )
    return signal_filter.run(items, context).signals
