"""
Visibility Scoring Engine — orchestrates extract → derive → score → suggest,
and applies accepted suggestions back into the page markup.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Union

from config.settings import GENERATION_TIMEOUT_SECONDS
from core.models import ApplicationReport, PageInput, ScoreReport, ScoringDefaults, Suggestion
from core.text_generation import TextGenerator
from modules.visibility_scoring.applier import SuggestionApplier
from modules.visibility_scoring.extractor import FeatureExtractor
from modules.visibility_scoring.geo_scorer import GeoScorer
from modules.visibility_scoring.metadata import MetadataDeriver
from modules.visibility_scoring.quality_scorer import QualityScorer
from modules.visibility_scoring.suggestions import SuggestionGenerator
from modules.visibility_scoring.understandability import UnderstandabilityScorer

logger = logging.getLogger(__name__)


class VisibilityScoringEngine:
    """Full pipeline: page → ScoreReport (scores, metadata, suggestions)."""

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        domain_terms: Optional[Iterable[str]] = None,
        defaults: Optional[ScoringDefaults] = None,
        generation_timeout: float = GENERATION_TIMEOUT_SECONDS,
    ):
        self.defaults = defaults or ScoringDefaults()
        self.extractor = FeatureExtractor()
        self.deriver = MetadataDeriver(domain_terms=domain_terms)
        self.geo_scorer = GeoScorer(self.defaults)
        self.quality_scorer = QualityScorer(self.defaults)
        self.understandability = UnderstandabilityScorer()
        self.generator = SuggestionGenerator(text_generator=text_generator, timeout=generation_timeout)
        self.applier = SuggestionApplier()

    # ═══════════════════════════════════════════════════════════════════════
    # Public API
    # ═══════════════════════════════════════════════════════════════════════

    def analyze(
        self,
        page: Union[PageInput, dict],
        competitor_snippets: Optional[List[str]] = None,
        audience_match: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> ScoreReport:
        """Score one page. *now* fixes the clock used for missing dates and recency."""
        if isinstance(page, dict):
            page = PageInput(**page)
        now = now or datetime.now(timezone.utc)

        features = self.extractor.extract(page)
        metadata = self.deriver.derive(features, now=now)
        geo = self.geo_scorer.score(features, metadata, now=now)
        quality = self.quality_scorer.score(
            features, metadata, competitor_snippets=competitor_snippets, audience_match=audience_match
        )
        suggestions = self.generator.generate(features, metadata, geo, quality)
        logger.info(
            "%s: geo=%.1f quality=%.1f suggestions=%d",
            page.url or "?", geo.total_score, quality.total_score, len(suggestions),
        )
        return ScoreReport(
            url=page.url,
            geo_score_total=geo.total_score,
            geo_breakdown=geo,
            content_quality_score_total=quality.total_score,
            content_quality_breakdown=quality,
            metadata=metadata,
            suggestions=suggestions,
            llm_understandability=self.understandability.score(page.raw_markup),
        )

    def analyze_pages(
        self,
        pages: Sequence[Union[PageInput, dict]],
        on_progress: Optional[Callable[[int, int, str], None]] = None,
        competitor_snippets: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> List[ScoreReport]:
        """Score a batch of pages; a failing page yields a report with ``error`` set."""
        results: List[ScoreReport] = []
        for idx, page in enumerate(pages, 1):
            url = page.get("url", "") if isinstance(page, dict) else page.url
            if on_progress:
                on_progress(idx, len(pages), url)
            try:
                results.append(self.analyze(page, competitor_snippets=competitor_snippets, now=now))
            except Exception as e:
                logger.error("pipeline error %s: %s", url, e)
                results.append(ScoreReport(url=url, error=str(e)))
        return results

    def apply_suggestions(self, markup: str, suggestions: Iterable[Suggestion]) -> ApplicationReport:
        return self.applier.apply(markup, suggestions)
