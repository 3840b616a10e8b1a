"""Constants for signal scoring."""

from src.classifier.models import Confidence


# Relevance used when no similarity value is available
CONFIDENCE_SCORES: dict[Confidence, int] = {
    Confidence.HIGH: 100,
    Confidence.MEDIUM: 70,
    Confidence.LOW: 40,
}

DEFAULT_RELEVANCE_WEIGHT: float = 0.45
DEFAULT_RECENCY_WEIGHT: float = 0.35
DEFAULT_ENGAGEMENT_WEIGHT: float = 0.20

DEFAULT_RECENCY_HALF_LIFE_DAYS: float = 7.0
MISSING_TIMESTAMP_SCORE: float = 50.0

DEFAULT_ENGAGEMENT_SCORE: float = 50.0
# Generic "likes-like" fields are divided by this for unknown sources
GENERIC_ENGAGEMENT_DIVISOR: float = 10.0
GENERIC_ENGAGEMENT_FIELDS: tuple[str, ...] = ("likes", "reactions", "upvotes")
# A metric at its baseline scores this much; twice the baseline hits the cap
BASELINE_SCORE: float = 50.0
MAX_SUBSCORE: float = 100.0

# Median engagement per source, used for normalization
DEFAULT_ENGAGEMENT_BASELINES: dict[str, dict[str, float]] = {
    "github": {"stars": 1000, "forks": 100},
    "hackernews": {"points": 100, "comments": 50},
    "reddit": {"score": 100, "comments": 50},
    "arxiv": {"citations": 10},
    "lobsters": {"score": 20, "comments": 10},
    "devto": {"reactions": 50, "comments": 20},
    "huggingface": {"likes": 100, "downloads": 1000},
    "producthunt": {"votes": 200, "comments": 50},
}

# Metadata fields holding the relevant timestamp, per source
DEFAULT_TIMESTAMP_FIELDS: dict[str, tuple[str, ...]] = {
    "github": ("pushed_at", "updated_at"),
    "hackernews": ("created_at",),
    "reddit": ("created_utc",),
    "arxiv": ("published",),
}
FALLBACK_TIMESTAMP_FIELDS: tuple[str, ...] = ("timestamp", "date")

SECONDS_PER_HOUR: float = 3600.0
SECONDS_PER_DAY: float = 86400.0
