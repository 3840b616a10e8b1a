"""Unit tests for boundary-aware keyword matching."""

from src.classifier.keyword_matcher import KeywordMatcher, compile_keyword


class TestCompileKeyword:
    """Tests for compile_keyword()."""

    def test_alphanumeric_uses_regex(self) -> None:
        """Plain words compile to a word-boundary pattern."""
        compiled = compile_keyword("  Rust ")
        assert compiled.keyword == "rust"
        assert compiled.pattern is not None

    def test_punctuation_uses_manual_boundaries(self) -> None:
        """Keywords with punctuation or spaces skip the regex."""
        assert compile_keyword("c++").pattern is None
        assert compile_keyword("similar to").pattern is None


class TestKeywordMatcher:
    """Tests for KeywordMatcher."""

    def test_whole_words_only(self) -> None:
        """A keyword inside a longer word does not match."""
        matcher = KeywordMatcher(["go"])
        assert matcher.first_match("Written in Go") == "go"
        assert matcher.first_match("Google search update") is None

    def test_first_keyword_in_list_order_wins(self) -> None:
        """Priority follows list order, not text position."""
        matcher = KeywordMatcher(["python", "rust"])
        assert matcher.first_match("Rust bindings for Python") == "python"

    def test_punctuated_keywords(self) -> None:
        """Keywords such as c++ and .net respect alphanumeric neighbours."""
        matcher = KeywordMatcher(["c++", ".net"])

        assert matcher.first_match("Modern C++ tips") == "c++"
        assert matcher.first_match("abc++def") is None
        assert matcher.first_match("Porting to .NET 8") == ".net"
        assert matcher.first_match("visit example.net today") is None

    def test_later_occurrence_can_match(self) -> None:
        """A bad first occurrence does not hide a good later one."""
        matcher = KeywordMatcher(["c++"])
        assert matcher.first_match("abc++ and then c++ again") == "c++"

    def test_phrase_keywords(self) -> None:
        """Multi-word keywords match across the phrase."""
        matcher = KeywordMatcher(["similar to"])
        assert matcher.matches("A tool similar to Foo")
        assert not matcher.matches("dissimilar tools")

    def test_case_insensitive(self) -> None:
        """Matching ignores case on both sides."""
        matcher = KeywordMatcher(["Kubernetes"])
        assert matcher.first_match("KUBERNETES operators") == "kubernetes"

    def test_blank_keywords_skipped(self) -> None:
        """Empty and whitespace keywords are discarded."""
        matcher = KeywordMatcher(["", "  ", "api"])
        assert len(matcher) == 1
        assert matcher.keywords == ["api"]

    def test_empty_matcher(self) -> None:
        """A matcher with no keywords never matches."""
        assert not KeywordMatcher([]).matches("anything at all")
