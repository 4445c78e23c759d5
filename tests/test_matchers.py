"""Tests for the individual match strategies of the apply cascade."""

from __future__ import annotations

import pytest

from modules.visibility_scoring.matchers import (
    CaseInsensitiveMatcher,
    ExactMatcher,
    PartialPrefixMatcher,
    SimilarityMatcher,
    WhitespaceMatcher,
    similarity,
)

SENTENCE = "The quick brown fox jumps over the lazy dog near the riverbank today."
DRIFTED_FIND = "The quick brown fox jumps over the lazy dog near the riverbank yesterday."


def text_at(markup, span):
    return markup[span[0]:span[1]]


class TestLiteralMatchers:
    def test_exact_first_occurrence(self) -> None:
        markup = "<p>alpha</p><p>alpha</p>"
        assert ExactMatcher().match(markup, "alpha") == (3, 8)

    def test_exact_respects_accept(self) -> None:
        markup = "<p>alpha</p><p>alpha</p>"
        span = ExactMatcher().match(markup, "alpha", accept=lambda m, s: s[0] > 5)
        assert span == (15, 20)

    def test_empty_find_never_matches(self) -> None:
        assert ExactMatcher().match("<p>alpha</p>", "") is None

    def test_case_insensitive(self) -> None:
        markup = "<p>THIS IS A BAD PARAGRAPH.</p>"
        span = CaseInsensitiveMatcher().match(markup, "This is a bad paragraph.")
        assert text_at(markup, span) == "THIS IS A BAD PARAGRAPH."
        assert ExactMatcher().match(markup, "This is a bad paragraph.") is None

    def test_whitespace_normalized_keeps_original_spacing(self) -> None:
        markup = "<p>This  is a\n   bad paragraph.</p>"
        span = WhitespaceMatcher().match(markup, "This is a bad paragraph.")
        assert text_at(markup, span) == "This  is a\n   bad paragraph."

    def test_whitespace_blank_find(self) -> None:
        assert WhitespaceMatcher().match("<p>x</p>", "   ") is None


class TestPartialPrefix:
    def test_extends_to_end_of_text_run(self) -> None:
        markup = f"<div><p>{SENTENCE}</p></div>"
        span = PartialPrefixMatcher().match(markup, DRIFTED_FIND)
        assert text_at(markup, span) == SENTENCE

    def test_extends_to_matching_tail(self) -> None:
        markup = "<p>The quick brown fox jumps over the lazy dog near the old river bank today. More text.</p>"
        find = "The quick brown fox jumps over the lazy dog near the wide river bank today."
        span = PartialPrefixMatcher().match(markup, find)
        assert text_at(markup, span) == "The quick brown fox jumps over the lazy dog near the old river bank today."

    def test_short_find_is_ignored(self) -> None:
        assert PartialPrefixMatcher().match("<p>short text here</p>", "short text there") is None

    def test_literal_strategies_miss_drifted_text(self) -> None:
        markup = f"<p>{SENTENCE}</p>"
        for matcher in (ExactMatcher(), CaseInsensitiveMatcher(), WhitespaceMatcher()):
            assert matcher.match(markup, DRIFTED_FIND) is None


class TestSimilarity:
    MARKUP = "<p>Our team ships updates every single week.</p>"
    FIND = "Our team ships updates every week."

    def test_similarity_function(self) -> None:
        assert similarity("Same Text", "same   text") == 1.0
        assert similarity("", "") == 1.0
        assert similarity("abcd", "abce") == pytest.approx(0.75)

    def test_sentence_threshold(self) -> None:
        span = SimilarityMatcher().match(self.MARKUP, self.FIND, "sentence_replacement")
        assert text_at(self.MARKUP, span) == "Our team ships updates every single week."

    def test_heading_threshold_is_stricter(self) -> None:
        assert SimilarityMatcher().match(self.MARKUP, self.FIND, "heading") is None

    def test_unknown_type_uses_default(self) -> None:
        matcher = SimilarityMatcher()
        assert matcher.threshold("something_else") == 0.85

    def test_picks_best_sentence_in_run(self) -> None:
        markup = "<p>Solar power is cheap. Wind farms need space. Hydro dams last decades.</p>"
        span = SimilarityMatcher().match(markup, "Wind farms needs space.", "sentence_replacement")
        assert text_at(markup, span) == "Wind farms need space."

    def test_script_text_is_not_a_candidate(self) -> None:
        markup = '<script>var msg = "Our team ships updates every week";</script>'
        assert SimilarityMatcher().match(markup, self.FIND, "sentence_replacement") is None

    def test_custom_thresholds(self) -> None:
        matcher = SimilarityMatcher(thresholds={"heading": 0.5})
        assert matcher.match(self.MARKUP, self.FIND, "heading") is not None
