"""Keyword-driven classification of why an item matters."""

import re
from collections.abc import Mapping, Sequence

from src.classifier.constants import (
    FALLBACK_TOPIC,
    HIGH_RELEVANCE,
    MEDIUM_RELEVANCE,
    REASON_TEMPLATES,
)
from src.classifier.context_parser import parse_context
from src.classifier.keyword_matcher import KeywordMatcher
from src.classifier.models import (
    Classification,
    Confidence,
    KeywordSet,
    ParsedContext,
    SignalType,
)
from src.data_model.models import Item


GLOBAL_KEYWORDS_KEY = "global"

_TITLE_WORD = re.compile(r"\b[A-Za-z][a-z]{3,}\b")


def relevance_confidence(relevance: float) -> Confidence:
    """Map a similarity value to a confidence band.

    Args:
        relevance: Similarity in [0, 1].

    Returns:
        HIGH at 0.6 and above, MEDIUM at 0.45 and above, else LOW.
    """
    if relevance >= HIGH_RELEVANCE:
        return Confidence.HIGH
    if relevance >= MEDIUM_RELEVANCE:
        return Confidence.MEDIUM
    return Confidence.LOW


def _lowered(values: Sequence[str]) -> list[str]:
    return [v.strip().lower() for v in values if v.strip()]


class SignalClassifier:
    """Assigns exactly one signal category to an item.

    Keyword sources, in priority order:
        1. User global keywords: mark the item as watched.
        2. Exact keywords (user overrides, then context names/bold terms),
           checked across all categories.
        3. Generic keywords (context words, then defaults), checked across
           all categories.

    Classification never fails: with no match the item is technical with
    low confidence.
    """

    def __init__(
        self,
        parsed: ParsedContext,
        user_keywords: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            parsed: Parsed context document.
            user_keywords: Optional overrides keyed by "global" or a
                category value (e.g. "competitive").
        """
        user_keywords = user_keywords or {}

        self._global_keywords = _lowered(user_keywords.get(GLOBAL_KEYWORDS_KEY, []))
        self._context_keywords = list(parsed.context_keywords)

        self._keyword_sets: dict[SignalType, KeywordSet] = {}
        for signal_type in SignalType:
            parsed_set = parsed.signal_keywords.get(signal_type, KeywordSet())
            user_exact = _lowered(user_keywords.get(signal_type.value, []))
            self._keyword_sets[signal_type] = KeywordSet(
                exact=list(dict.fromkeys(user_exact + parsed_set.exact)),
                generic=list(parsed_set.generic),
            )

        self._global_matcher = KeywordMatcher(self._global_keywords)
        self._exact_matchers = {
            signal_type: KeywordMatcher(keywords.exact)
            for signal_type, keywords in self._keyword_sets.items()
        }
        self._generic_matchers = {
            signal_type: KeywordMatcher(keywords.generic)
            for signal_type, keywords in self._keyword_sets.items()
        }

    @classmethod
    def from_context(
        cls,
        context: str,
        user_keywords: Mapping[str, Sequence[str]] | None = None,
    ) -> "SignalClassifier":
        """Build a classifier straight from context text."""
        return cls(parse_context(context), user_keywords)

    @property
    def global_keywords(self) -> list[str]:
        """Get the lowercased user global keywords."""
        return list(self._global_keywords)

    @property
    def keyword_sets(self) -> dict[SignalType, KeywordSet]:
        """Get the effective keyword sets per category."""
        return dict(self._keyword_sets)

    def classify(self, item: Item) -> Classification:
        """Classify an item by keyword matches.

        Args:
            item: Item to classify.

        Returns:
            Classification with exactly one category.
        """
        text = f"{item.title} {item.description}"
        global_match = self._global_matcher.first_match(text)
        is_watched = global_match is not None

        for signal_type in SignalType:
            keyword = self._exact_matchers[signal_type].first_match(text)
            if keyword is not None:
                return Classification(
                    signal_type=signal_type,
                    confidence=Confidence.HIGH,
                    matched_keyword=keyword,
                    is_watched=is_watched,
                )

        for signal_type in SignalType:
            keyword = self._generic_matchers[signal_type].first_match(text)
            if keyword is not None:
                return Classification(
                    signal_type=signal_type,
                    confidence=Confidence.HIGH if is_watched else Confidence.MEDIUM,
                    matched_keyword=global_match or keyword,
                    is_watched=is_watched,
                )

        if global_match is not None:
            return Classification(
                signal_type=SignalType.TECHNICAL,
                confidence=Confidence.HIGH,
                matched_keyword=global_match,
                is_watched=True,
            )

        return Classification(
            signal_type=SignalType.TECHNICAL,
            confidence=Confidence.LOW,
            matched_keyword=None,
            is_watched=False,
        )

    def extract_topic(self, item: Item) -> str:
        """Name the topic an item is about.

        Args:
            item: Item to inspect.

        Returns:
            First global keyword present, else first context keyword
            present, else the first content word of the title, else a
            generic phrase.
        """
        text = f"{item.title} {item.description}".lower()

        for keyword in self._global_keywords:
            if keyword in text:
                return keyword

        for keyword in self._context_keywords:
            if keyword in text:
                return keyword

        title_words = _TITLE_WORD.findall(item.title)
        if title_words:
            return title_words[0].lower()

        return FALLBACK_TOPIC

    def reason(self, signal_type: SignalType, item: Item) -> str:
        """Render the templated explanation for a category.

        Args:
            signal_type: Assigned category.
            item: Classified item.

        Returns:
            One-sentence reason.
        """
        template = REASON_TEMPLATES.get(
            signal_type, REASON_TEMPLATES[SignalType.TECHNICAL]
        )
        return template.format(topic=self.extract_topic(item))
