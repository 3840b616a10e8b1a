"""Boundary-aware keyword matching for classification.

Alphanumeric keywords are compiled to ``\\b``-anchored regexes. Keywords
with punctuation or spaces ("c++", ".net", "similar to") cannot rely on
``\\b``, so they are located by substring search and their neighbours are
checked by hand.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass


_ALNUM_ONLY = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)


def _is_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


@dataclass(frozen=True)
class CompiledKeyword:
    """A keyword prepared for repeated matching.

    Attributes:
        keyword: Lowercased keyword.
        pattern: Word-boundary regex for alphanumeric keywords, else None.
    """

    keyword: str
    pattern: re.Pattern[str] | None

    def search(self, text: str, text_lower: str) -> bool:
        """Check whether the keyword occurs as a whole term.

        Args:
            text: Original text.
            text_lower: Lowercased text (same length as text).

        Returns:
            True if any occurrence is bounded by non-alphanumerics.
        """
        if self.pattern is not None:
            return self.pattern.search(text) is not None

        if not self.keyword:
            return False

        start = text_lower.find(self.keyword)
        while start != -1:
            end = start + len(self.keyword)
            before_ok = start == 0 or not _is_alnum(text[start - 1])
            after_ok = end >= len(text) or not _is_alnum(text[end])
            if before_ok and after_ok:
                return True
            start = text_lower.find(self.keyword, start + 1)
        return False


def compile_keyword(keyword: str) -> CompiledKeyword:
    """Compile a keyword for matching.

    Args:
        keyword: Raw keyword.

    Returns:
        CompiledKeyword with a regex for alphanumeric-only keywords.
    """
    lowered = keyword.strip().lower()
    if _ALNUM_ONLY.match(lowered):
        escaped = re.escape(lowered)
        return CompiledKeyword(
            keyword=lowered,
            pattern=re.compile(rf"\b{escaped}\b", re.IGNORECASE),
        )
    return CompiledKeyword(keyword=lowered, pattern=None)


class KeywordMatcher:
    """Matches text against an ordered keyword list.

    Pre-compiles patterns on initialization; the first keyword that
    matches wins.
    """

    def __init__(self, keywords: Iterable[str]) -> None:
        """Initialize the matcher.

        Args:
            keywords: Keywords in priority order.
        """
        self._compiled = [compile_keyword(kw) for kw in keywords if kw.strip()]

    def __len__(self) -> int:
        return len(self._compiled)

    @property
    def keywords(self) -> list[str]:
        """Get the lowercased keywords in priority order."""
        return [c.keyword for c in self._compiled]

    def first_match(self, text: str) -> str | None:
        """Find the first keyword that occurs in text.

        Args:
            text: Text to search.

        Returns:
            Matching lowercased keyword, or None.
        """
        text_lower = text.lower()
        if len(text_lower) != len(text):
            # Lowercasing changed the length (e.g. "İ"); index the lowered text.
            text = text_lower

        for compiled in self._compiled:
            if compiled.search(text, text_lower):
                return compiled.keyword
        return None

    def matches(self, text: str) -> bool:
        """Check whether any keyword occurs in text."""
        return self.first_match(text) is not None
