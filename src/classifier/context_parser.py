"""Pure parsing of a context document into classification keywords.

The context document is free-form markdown. Labeled ``##`` sections map
to signal categories; bullets and bold terms inside them become exact or
generic keywords. Nothing here touches embeddings or I/O.
"""

import re

from src.classifier.constants import (
    BUILDING_HEADERS,
    DEFAULT_GENERIC_KEYWORDS,
    MAX_NAME_LENGTH,
    SECTION_HEADERS,
    STOP_WORDS,
)
from src.classifier.models import KeywordSet, ParsedContext, SignalType
from src.similarity.context_points import extract_context_points


_SECTION_BODY = r"\s*\n([\s\S]*?)(?=\n##|\n\Z|\Z)"

_SECTION_PATTERNS: dict[SignalType, re.Pattern[str]] = {
    signal_type: re.compile(rf"##\s*(?:{headers}){_SECTION_BODY}", re.IGNORECASE)
    for signal_type, headers in SECTION_HEADERS.items()
}
_BUILDING_PATTERN = re.compile(
    rf"##\s*(?:{BUILDING_HEADERS}){_SECTION_BODY}", re.IGNORECASE
)

_SECTION_BULLET = re.compile(r"^[-*]\s+\*?\*?([^*\n]+)\*?\*?", re.MULTILINE)
_BOLD_TERM = re.compile(r"\*\*([^*]+)\*\*")
_NAME_LIKE = re.compile(r"^[A-Z][a-zA-Z0-9.-]*(?:\s+[A-Z][a-zA-Z0-9.-]*)?$")
_WORD = re.compile(r"\b[A-Za-z][a-z]{3,}\b")

_BULLET_LINE = re.compile(r"^[-*]\s+(.+)$", re.MULTILINE)
_PROPER_NOUN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def is_stop_word(word: str) -> bool:
    """Check whether a word is too common to be a keyword."""
    return word.lower() in STOP_WORDS


def extract_section_terms(section: str) -> KeywordSet:
    """Extract keywords from the body of one labeled section.

    Bullets that look like names (capitalized, at most two words, short)
    become exact terms; other bullets contribute their content words as
    generic terms. Bold terms are always exact.

    Args:
        section: Section body text.

    Returns:
        Lowercased exact and generic terms, in document order.
    """
    terms = KeywordSet()

    for match in _SECTION_BULLET.finditer(section):
        bullet = match.group(1).strip()
        if _NAME_LIKE.match(bullet) and len(bullet) < MAX_NAME_LENGTH:
            terms.exact.append(bullet.lower())
            continue
        terms.generic.extend(
            word.lower() for word in _WORD.findall(bullet) if not is_stop_word(word)
        )

    for match in _BOLD_TERM.finditer(section):
        term = match.group(1).strip()
        if 2 < len(term) < 50:
            terms.exact.append(term.lower())

    return terms


def parse_signal_keywords(context: str) -> dict[SignalType, KeywordSet]:
    """Parse per-category keyword sets from a context document.

    Args:
        context: Context document text.

    Returns:
        Keyword sets for every category, defaults merged after parsed terms.
    """
    parsed = {signal_type: KeywordSet() for signal_type in SignalType}

    for signal_type, pattern in _SECTION_PATTERNS.items():
        for match in pattern.finditer(context):
            terms = extract_section_terms(match.group(1))
            parsed[signal_type].exact.extend(terms.exact)
            parsed[signal_type].generic.extend(terms.generic)

    for match in _BUILDING_PATTERN.finditer(context):
        parsed[SignalType.TECHNICAL].generic.extend(
            extract_section_terms(match.group(1)).generic
        )

    return {
        signal_type: KeywordSet(
            exact=_unique(parsed[signal_type].exact),
            generic=_unique(
                parsed[signal_type].generic
                + list(DEFAULT_GENERIC_KEYWORDS[signal_type])
            ),
        )
        for signal_type in SignalType
    }


def extract_context_keywords(context: str) -> list[str]:
    """Extract words and proper nouns used to name an item's topic.

    Args:
        context: Context document text.

    Returns:
        Lowercased keywords longer than three characters, without stop words.
    """
    keywords: list[str] = []

    for match in _BULLET_LINE.finditer(context):
        keywords.extend(word.lower() for word in _WORD.findall(match.group(1)))

    keywords.extend(term.lower() for term in _PROPER_NOUN.findall(context))

    return [k for k in _unique(keywords) if k not in STOP_WORDS and len(k) > 3]


def parse_context(context: str) -> ParsedContext:
    """Parse a context document into its structured keyword view.

    Args:
        context: Context document text.

    Returns:
        ParsedContext with keyword sets, topic keywords and context points.
    """
    return ParsedContext(
        signal_keywords=parse_signal_keywords(context),
        context_keywords=extract_context_keywords(context),
        context_points=extract_context_points(context),
    )
