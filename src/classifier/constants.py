"""Constants for signal classification."""

from src.classifier.models import SignalType


STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "have", "been",
        "will", "what", "when", "where", "which", "about", "into", "more",
        "some", "could", "would", "should", "being", "through", "also",
        "just", "like", "make", "made", "using", "used", "want", "need",
    }
)  # fmt: skip

# Fallback vocabulary per category, merged after terms parsed from context
DEFAULT_GENERIC_KEYWORDS: dict[SignalType, tuple[str, ...]] = {
    SignalType.COMPETITIVE: (
        "competitor",
        "alternative",
        "similar to",
        "competes with",
    ),
    SignalType.THESIS_CHALLENGING: (
        "contradicts",
        "challenges",
        "disproves",
        "questions",
    ),
    SignalType.OPPORTUNITY: (
        "pain point",
        "frustration",
        "problem",
        "gap",
        "need",
        "challenge",
        "struggle",
    ),
    SignalType.TECHNICAL: (
        "architecture",
        "pattern",
        "approach",
        "implementation",
        "method",
        "framework",
    ),
    SignalType.TREND: (
        "adoption",
        "growth",
        "rising",
        "popular",
        "trending",
        "enterprise",
    ),
}

# Section header alternatives mapped to the category their terms feed
SECTION_HEADERS: dict[SignalType, str] = {
    SignalType.COMPETITIVE: r"competitors?|watching|alternatives?|competition",
    SignalType.THESIS_CHALLENGING: (
        r"questions?|assumptions?|thesis|hypothes[ie]s|validat(?:e|ing)"
    ),
    SignalType.OPPORTUNITY: r"pain\s*points?|problems?|opportunities?|gaps?|needs?",
    SignalType.TECHNICAL: r"technolog(?:y|ies)|stack|tools?|frameworks?|libraries?",
    SignalType.TREND: r"trends?|market|industry|growth",
}

# Sections describing the user's own product feed generic technical terms
BUILDING_HEADERS: str = r"what\s*i'?m?\s*building|product|project|building"

REASON_TEMPLATES: dict[SignalType, str] = {
    SignalType.COMPETITIVE: (
        "Potential competitor or adjacent tool in the {topic} space"
    ),
    SignalType.THESIS_CHALLENGING: "May challenge assumptions about {topic}",
    SignalType.OPPORTUNITY: "Potential opportunity in {topic}",
    SignalType.TECHNICAL: "Technical approach relevant to {topic}",
    SignalType.TREND: "Emerging trend in {topic}",
}

FALLBACK_TOPIC: str = "your interests"

# Relevance bands for the confidence label of a surviving item
HIGH_RELEVANCE: float = 0.6
MEDIUM_RELEVANCE: float = 0.45

# Exact terms must be shorter than this to count as a name
MAX_NAME_LENGTH: int = 30
