"""Data models for signal classification."""

from dataclasses import dataclass, field
from enum import Enum

from src.similarity.context_points import ContextPoint


class SignalType(str, Enum):
    """Why an item matters. Order is the category precedence order."""

    COMPETITIVE = "competitive"
    THESIS_CHALLENGING = "thesis-challenging"
    OPPORTUNITY = "opportunity"
    TECHNICAL = "technical"
    TREND = "trend"


class Confidence(str, Enum):
    """Discrete confidence band."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class KeywordSet:
    """Keywords for one category.

    Attributes:
        exact: Specific terms (names, bold terms, user overrides).
        generic: Topical words and default vocabulary.
    """

    exact: list[str] = field(default_factory=list)
    generic: list[str] = field(default_factory=list)


@dataclass
class ParsedContext:
    """Structured view of a context document.

    Attributes:
        signal_keywords: Keyword sets per category, in category order.
        context_keywords: Words and proper nouns used for topic extraction.
        context_points: Statements embedded for match explanations.
    """

    signal_keywords: dict[SignalType, KeywordSet]
    context_keywords: list[str] = field(default_factory=list)
    context_points: list[ContextPoint] = field(default_factory=list)


@dataclass(frozen=True)
class Classification:
    """Result of classifying a single item.

    Attributes:
        signal_type: Assigned category.
        confidence: Keyword confidence of the assignment.
        matched_keyword: Keyword that decided the category, if any.
        is_watched: Whether a user global keyword appears in the item.
    """

    signal_type: SignalType
    confidence: Confidence
    matched_keyword: str | None
    is_watched: bool
