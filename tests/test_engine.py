"""End-to-end tests for the visibility scoring engine."""

from __future__ import annotations

import json

import pytest

from core.models import PageInput, ScoringDefaults
from modules.visibility_scoring import VisibilityScoringEngine, quality_scorer

from conftest import BARE_HTML, NOW, RICH_HTML, SHORT_TEXT


@pytest.fixture
def engine():
    return VisibilityScoringEngine()


class TestAnalyze:
    @pytest.mark.parametrize("markup", ["", BARE_HTML, RICH_HTML])
    def test_scores_in_bounds(self, engine, markup) -> None:
        report = engine.analyze(PageInput(url="https://example.com/page", raw_markup=markup), now=NOW)
        assert 0 <= report.geo_score_total <= 100
        assert 0 <= report.content_quality_score_total <= 100
        assert 0 <= report.llm_understandability.score <= 100
        assert report.error is None

    def test_idempotent_with_fixed_clock(self, engine) -> None:
        page = PageInput(url="https://example.com/guide", raw_markup=RICH_HTML)
        assert engine.analyze(page, now=NOW) == engine.analyze(page, now=NOW)

    def test_dict_input_and_serializable(self, engine) -> None:
        report = engine.analyze({"url": "https://example.com/guide", "raw_markup": RICH_HTML}, now=NOW)
        data = json.loads(json.dumps(report.to_dict()))
        assert data["url"] == "https://example.com/guide"
        assert data["metadata"]["author"] == "Jane Smith"
        assert [c["name"] for c in data["geo_breakdown"]["categories"]][0] == "evidence_attribution"

    def test_plain_text_only(self, engine) -> None:
        report = engine.analyze(PageInput(url="https://example.com/solar", plain_text=SHORT_TEXT), now=NOW)
        assert report.metadata.word_count == 50
        assert report.metadata.dates_estimated

    def test_rich_page_outscores_bare(self, engine) -> None:
        rich = engine.analyze(PageInput(url="https://example.com/guide", raw_markup=RICH_HTML), now=NOW)
        bare = engine.analyze(PageInput(url="https://example.com/solar", raw_markup=BARE_HTML), now=NOW)
        assert rich.geo_score_total > bare.geo_score_total
        assert rich.llm_understandability.score > bare.llm_understandability.score
        assert len(rich.suggestions) < len(bare.suggestions)

    def test_reading_ease_failure_does_not_abort(self, engine, monkeypatch) -> None:
        def missing_corpus(text):
            raise LookupError("Resource cmudict not found")

        monkeypatch.setattr(quality_scorer, "syllable_dictionary_installed", lambda: True)
        monkeypatch.setattr(quality_scorer.textstat, "flesch_reading_ease", missing_corpus)
        report = engine.analyze(
            PageInput(url="https://example.com/plain", raw_markup="<p>Plain words. More words here.</p>"), now=NOW
        )
        assert report.error is None
        assert 0 <= report.content_quality_score_total <= 100
        assert 0 <= report.content_quality_breakdown.category("readability_clarity").sub_metrics["reading_ease"] <= 10

    def test_custom_defaults(self) -> None:
        page = PageInput(url="https://example.com/solar", raw_markup=BARE_HTML)
        low = VisibilityScoringEngine(defaults=ScoringDefaults(originality_points=0.0)).analyze(page, now=NOW)
        high = VisibilityScoringEngine().analyze(page, now=NOW)
        assert low.content_quality_score_total < high.content_quality_score_total


class TestBatch:
    def test_progress_and_error_capture(self, engine) -> None:
        seen = []
        pages = [
            {"url": "https://example.com/guide", "raw_markup": RICH_HTML},
            {"url": "https://example.com/broken", "unexpected": True},
            PageInput(url="https://example.com/solar", raw_markup=BARE_HTML),
        ]
        reports = engine.analyze_pages(pages, on_progress=lambda i, n, url: seen.append((i, n, url)), now=NOW)
        assert [r.url for r in reports] == [
            "https://example.com/guide",
            "https://example.com/broken",
            "https://example.com/solar",
        ]
        assert reports[0].error is None
        assert reports[1].error
        assert reports[2].error is None
        assert seen == [
            (1, 3, "https://example.com/guide"),
            (2, 3, "https://example.com/broken"),
            (3, 3, "https://example.com/solar"),
        ]


class TestApplyRoundTrip:
    def test_applying_suggestions_improves_structure(self, engine) -> None:
        page = PageInput(url="https://example.com/solar", raw_markup=BARE_HTML)
        before = engine.analyze(page, now=NOW)
        applied = engine.apply_suggestions(BARE_HTML, before.suggestions)
        assert applied.applied_count >= 4
        assert "<title>" in applied.final_markup
        assert '<meta name="description"' in applied.final_markup
        assert "application/ld+json" in applied.final_markup

        after = engine.analyze(PageInput(url=page.url, raw_markup=applied.final_markup), now=NOW)
        before_structure = before.geo_breakdown.category("structured_understanding").score
        after_structure = after.geo_breakdown.category("structured_understanding").score
        assert after_structure > before_structure
        assert after.llm_understandability.score > before.llm_understandability.score

    def test_reapplying_is_idempotent_for_insertions(self, engine) -> None:
        before = engine.analyze(PageInput(url="https://example.com/solar", raw_markup=BARE_HTML), now=NOW)
        once = engine.apply_suggestions(BARE_HTML, before.suggestions)
        twice = engine.apply_suggestions(once.final_markup, before.suggestions)
        assert twice.final_markup == once.final_markup
