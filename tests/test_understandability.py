"""Tests for the LLM understandability heuristic."""

from __future__ import annotations

from modules.visibility_scoring.understandability import UnderstandabilityScorer

from conftest import RICH_HTML


class TestUnderstandability:
    def test_minimal_page_breakdown(self) -> None:
        markup = (
            '<html lang="en"><head><meta name="description" content="' + "d" * 60 + '"></head>'
            "<body><h1>T</h1></body></html>"
        )
        result = UnderstandabilityScorer().score(markup)
        assert result.breakdown == {
            "headings": 10,
            "meta_description": 10,
            "schema": 0,
            "readability": 0,
            "lists": 0,
            "alt_text": 5,
            "metadata": 2,
            "content_density": 0,
        }
        assert result.score == 27

    def test_empty_markup(self) -> None:
        result = UnderstandabilityScorer().score("")
        assert result.score == 5
        assert result.breakdown["alt_text"] == 5

    def test_rich_page(self) -> None:
        result = UnderstandabilityScorer().score(RICH_HTML)
        assert result.breakdown["schema"] == 15
        assert result.breakdown["metadata"] == 10
        assert result.breakdown["lists"] == 5
        assert result.breakdown["alt_text"] == 10
        assert 0 <= result.score <= 100

    def test_short_description_and_generic_schema(self) -> None:
        markup = (
            '<head><meta name="description" content="Short."></head>'
            '<script type="application/ld+json">{"@type": "Organization"}</script>'
        )
        result = UnderstandabilityScorer().score(markup)
        assert result.breakdown["meta_description"] == 6
        assert result.breakdown["schema"] == 8

    def test_partial_alt_coverage(self) -> None:
        markup = '<img src="a" alt="x"><img src="b" alt="y"><img src="c"><img src="d" alt="">'
        assert UnderstandabilityScorer().score(markup).breakdown["alt_text"] == 3

    def test_failure_returns_neutral(self, monkeypatch) -> None:
        scorer = UnderstandabilityScorer()

        def boom(markup):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(scorer, "_score", boom)
        result = scorer.score("<p>x</p>")
        assert result.score == 50
        assert result.breakdown == {"error": 1}
