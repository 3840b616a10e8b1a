"""Signal classification from context-document keywords."""

from src.classifier.classifier import SignalClassifier, relevance_confidence
from src.classifier.context_parser import (
    extract_context_keywords,
    extract_section_terms,
    parse_context,
    parse_signal_keywords,
)
from src.classifier.keyword_matcher import KeywordMatcher, compile_keyword
from src.classifier.models import (
    Classification,
    Confidence,
    KeywordSet,
    ParsedContext,
    SignalType,
)


__all__ = [
    "Classification",
    "Confidence",
    "KeywordMatcher",
    "KeywordSet",
    "ParsedContext",
    "SignalClassifier",
    "SignalType",
    "compile_keyword",
    "extract_context_keywords",
    "extract_section_terms",
    "parse_context",
    "parse_signal_keywords",
    "relevance_confidence",
]
