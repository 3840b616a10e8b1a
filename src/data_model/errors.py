"""Error taxonomy for the signal filter.

Every error raised out of a filtering run derives from SignalFilterError.
The ``retryable`` class attribute tells callers whether the failure is
transient (retry), item-level (skip) or a caller mistake (abort).
"""

from enum import Enum


class SignalFilterError(Exception):
    """Base exception for all signal filter errors."""

    retryable: bool = False


class InputValidationError(SignalFilterError):
    """Raised when run-level input is unusable.

    Covers an empty or non-string context document and an empty item
    batch. Nothing partial is returned when this is raised.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            field: Name of the offending input, if any.
        """
        self.field = field
        super().__init__(message)


class ItemDefectError(SignalFilterError):
    """Describes why a single item was dropped during validation.

    Never raised out of a run; instances are logged and counted.
    """

    def __init__(self, reason: str, index: int) -> None:
        """Initialize the defect record.

        Args:
            reason: Short reason code (e.g. ``missing_id``).
            index: Position of the item in the input batch.
        """
        self.reason = reason
        self.index = index
        super().__init__(f"Item at index {index} dropped: {reason}")


class EmbeddingProviderError(SignalFilterError):
    """Raised when the embedding capability fails for a piece of text."""

    retryable = True

    def __init__(self, message: str, text_key: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            text_key: Cache key of the text that failed, if known.
        """
        self.text_key = text_key
        super().__init__(message)


class BaselineNotSetError(SignalFilterError):
    """Raised when similarity is requested before a baseline exists."""

    def __init__(self) -> None:
        super().__init__("Baseline embedding not set. Call set_baseline() first.")


class NoveltyPersistenceError(SignalFilterError):
    """Raised when a novelty storage backend fails to load or save."""

    retryable = True

    def __init__(self, operation: str, message: str) -> None:
        """Initialize the error.

        Args:
            operation: Backend operation that failed (load, save, clear, connect).
            message: Underlying failure description.
        """
        self.operation = operation
        super().__init__(f"Novelty storage {operation} failed: {message}")


class FilterStateTransitionError(SignalFilterError):
    """Raised when an illegal filter run state transition is attempted."""

    def __init__(self, run_id: str, from_state: Enum, to_state: Enum) -> None:
        """Initialize the transition error.

        Args:
            run_id: Identifier of the run.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.run_id = run_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal filter state transition for run '{run_id}': "
            f"{from_state.value} -> {to_state.value}"
        )
