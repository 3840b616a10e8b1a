"""State machine for a single filtering run."""

from enum import Enum

import structlog

from src.data_model.errors import FilterStateTransitionError


logger = structlog.get_logger()


class FilterState(str, Enum):
    """State of a filtering run.

    States represent the lifecycle of one run:
    - INIT: Inputs are being validated
    - CONTEXT_BOUND: Baseline and keyword sets derived from the context
    - SCORING: Relevance and novelty computed, thresholds applied
    - CLASSIFYING: Surviving items are being classified
    - SCORED: Signals have composite scores and are sorted
    - DONE: Novelty flushed, results returned
    - FAILED: The run raised and produced no result
    """

    INIT = "INIT"
    CONTEXT_BOUND = "CONTEXT_BOUND"
    SCORING = "SCORING"
    CLASSIFYING = "CLASSIFYING"
    SCORED = "SCORED"
    DONE = "DONE"
    FAILED = "FAILED"


# Valid state transitions
_VALID_TRANSITIONS: dict[FilterState, set[FilterState]] = {
    FilterState.INIT: {FilterState.CONTEXT_BOUND, FilterState.FAILED},
    FilterState.CONTEXT_BOUND: {FilterState.SCORING, FilterState.FAILED},
    FilterState.SCORING: {FilterState.CLASSIFYING, FilterState.FAILED},
    FilterState.CLASSIFYING: {FilterState.SCORED, FilterState.FAILED},
    FilterState.SCORED: {FilterState.DONE, FilterState.FAILED},
    FilterState.DONE: set(),  # Terminal state
    FilterState.FAILED: set(),  # Terminal state
}


class FilterStateMachine:
    """Manages state transitions for a filtering run.

    Enforces valid transitions and logs all state changes.
    """

    def __init__(
        self,
        run_id: str,
        initial_state: FilterState = FilterState.INIT,
    ) -> None:
        """Initialize the state machine.

        Args:
            run_id: Identifier for the current run.
            initial_state: Starting state.
        """
        self._run_id = run_id
        self._state = initial_state
        self._log = logger.bind(
            component="pipeline",
            run_id=run_id,
        )

    @property
    def run_id(self) -> str:
        """Get the run identifier."""
        return self._run_id

    @property
    def state(self) -> FilterState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return not _VALID_TRANSITIONS[self._state]

    def can_transition_to(self, target: FilterState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: FilterState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            FilterStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            error = FilterStateTransitionError(
                run_id=self._run_id,
                from_state=self._state,
                to_state=target,
            )
            self._log.error(
                "illegal_filter_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise error

        old_state = self._state
        self._state = target

        self._log.debug(
            "filter_state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_context_bound(self) -> None:
        """Transition to CONTEXT_BOUND state."""
        self.transition_to(FilterState.CONTEXT_BOUND)

    def to_scoring(self) -> None:
        """Transition to SCORING state."""
        self.transition_to(FilterState.SCORING)

    def to_classifying(self) -> None:
        """Transition to CLASSIFYING state."""
        self.transition_to(FilterState.CLASSIFYING)

    def to_scored(self) -> None:
        """Transition to SCORED state."""
        self.transition_to(FilterState.SCORED)

    def to_done(self) -> None:
        """Transition to DONE state."""
        self.transition_to(FilterState.DONE)

    def fail(self) -> None:
        """Move to FAILED unless the run already finished."""
        if not self.is_terminal:
            self.transition_to(FilterState.FAILED)
