"""
Content Quality Scoring Engine — seven weighted categories covering
readability, structure, depth, originality, sourcing, style and presentation.
"""
import logging
import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Set

import nltk
import textstat

from config.settings import (
    EXAMPLE_CUES,
    JARGON_TERMS,
    LONG_WORD_CHARS,
    LONG_WORD_RATIO_LIMIT,
    PARAGRAPH_BAND,
    PARAGRAPH_BAND_PARTIAL,
    PASSIVE_RATIO_LIMIT,
    QUALITY_CATEGORIES,
    SENTENCE_BAND_IDEAL,
    SENTENCE_BAND_OK,
    STOP_WORDS,
    TRANSITION_MARKERS,
)
from core.models import Metadata, PageFeatures, ScoreBreakdown, ScoringDefaults
from modules.visibility_scoring.breakdown import build_category, clamp, combine
from modules.visibility_scoring.text_utils import sentences, word_count, words

logger = logging.getLogger(__name__)

_PASSIVE_RE = re.compile(
    r"\b(?:am|is|are|was|were|be|been|being)\s+(?:\w+ly\s+)?"
    r"(?:\w+(?:ed|en)|made|built|done|found|given|held|kept|known|left|paid|said|seen|sent|set|shown|sold|taken|told|written)\b",
    re.IGNORECASE,
)


def _phrase_count(text: str, phrases: Iterable[str]) -> int:
    low = (text or "").lower()
    return sum(len(re.findall(r"(?<!\w)" + re.escape(p) + r"(?!\w)", low)) for p in phrases)


def vocabulary(text: str) -> Set[str]:
    return {w for w in (t.lower() for t in words(text)) if w not in STOP_WORDS and len(w) > 2}


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


@lru_cache(maxsize=1)
def syllable_dictionary_installed() -> bool:
    """textstat counts syllables with the cmudict corpus; never download it here."""
    try:
        nltk.data.find("corpora/cmudict")
        return True
    except LookupError:
        logger.info("cmudict corpus not installed, using local reading-ease estimate")
        return False


def count_syllables(word: str) -> int:
    cleaned = re.sub(r"[^a-z]", "", word.lower())
    if not cleaned:
        return 1
    count = len(re.findall(r"[aeiouy]+", cleaned))
    if cleaned.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


def estimate_reading_ease(text: str, avg_sentence_words: float) -> float:
    tokens = words(text)
    if not tokens:
        return 0.0
    avg_syllables = sum(count_syllables(w) for w in tokens) / len(tokens)
    return 206.835 - 1.015 * avg_sentence_words - 84.6 * avg_syllables


def reading_ease(text: str, avg_sentence_words: float) -> float:
    """Flesch reading ease via textstat, or the local estimate when it is unavailable."""
    if syllable_dictionary_installed():
        try:
            return textstat.flesch_reading_ease(text)
        except (LookupError, OSError, ValueError, ZeroDivisionError) as e:
            logger.warning("textstat reading ease failed, using local estimate: %s", e)
    return estimate_reading_ease(text, avg_sentence_words)


class QualityScorer:
    """Scores a page on the seven content-quality categories."""

    def __init__(self, defaults: Optional[ScoringDefaults] = None):
        self.defaults = defaults or ScoringDefaults()

    # ── public API ──────────────────────────────────────────────────────────

    def score(
        self,
        features: PageFeatures,
        metadata: Metadata,
        competitor_snippets: Optional[List[str]] = None,
        audience_match: Optional[bool] = None,
    ) -> ScoreBreakdown:
        text = features.plain_text or ""
        sents = sentences(text)
        subs = {
            "readability_clarity": self._readability(text, sents),
            "structure_coherence": self._structure(features, text),
            "depth_coverage": self._depth(features, text),
            "originality": {"originality": self._originality(text, competitor_snippets)},
            "accuracy_source_use": self._accuracy(features),
            "style_tone": self._style(text, audience_match),
            "accessibility_presentation": self._accessibility(features),
        }
        return combine(build_category(name, sub, QUALITY_CATEGORIES) for name, sub in subs.items())

    # ── categories ──────────────────────────────────────────────────────────

    @staticmethod
    def _readability(text: str, sents: List[str]) -> Dict[str, float]:
        if not sents:
            return {"reading_ease": 0.0, "sentence_length": 0.0, "passive_voice": 0.0}
        avg = sum(word_count(s) for s in sents) / len(sents)
        ease = clamp(reading_ease(text, avg), 0.0, 100.0) / 10
        if SENTENCE_BAND_IDEAL[0] <= avg <= SENTENCE_BAND_IDEAL[1]:
            length_pts = 6.0
        elif SENTENCE_BAND_OK[0] <= avg <= SENTENCE_BAND_OK[1]:
            length_pts = 4.0
        else:
            length_pts = 1.0
        passive_ratio = sum(1 for s in sents if _PASSIVE_RE.search(s)) / len(sents)
        return {
            "reading_ease": ease,
            "sentence_length": length_pts,
            "passive_voice": 4 * (1 - min(1.0, passive_ratio / PASSIVE_RATIO_LIMIT)),
        }

    @staticmethod
    def _structure(f: PageFeatures, text: str) -> Dict[str, float]:
        levels = [h.level for h in f.headings]
        hierarchy = 0.0
        if len(f.headings_at(1)) == 1:
            hierarchy += 3
        if levels and all(b - a <= 1 for a, b in zip(levels, levels[1:])):
            hierarchy += 2
        if 2 in levels:
            hierarchy += 1

        lengths = [word_count(p) for p in f.paragraphs]
        credit = 0.0
        for n in lengths:
            if PARAGRAPH_BAND[0] <= n <= PARAGRAPH_BAND[1]:
                credit += 1
            elif PARAGRAPH_BAND_PARTIAL[0] <= n <= PARAGRAPH_BAND_PARTIAL[1]:
                credit += 0.5
        return {
            "heading_hierarchy": hierarchy,
            "paragraph_length": 6 * credit / max(len(lengths), 1),
            "transitions": min(3.0, 0.5 * _phrase_count(text, TRANSITION_MARKERS)),
        }

    @staticmethod
    def _depth(f: PageFeatures, text: str) -> Dict[str, float]:
        signals = _phrase_count(text, EXAMPLE_CUES) + len(f.lists) + f.table_count + f.code_block_count
        return {
            "subtopics": min(10.0, 2.0 * len(f.subheadings)),
            "examples": min(10.0, 2.0 * signals),
        }

    def _originality(self, text: str, snippets: Optional[List[str]]) -> float:
        comparators = [s for s in (snippets or []) if s and s.strip()]
        if not comparators:
            return self.defaults.originality_points
        own = vocabulary(text)
        overlap = max(jaccard(own, vocabulary(s)) for s in comparators)
        return 15 * (1 - overlap)

    def _accuracy(self, f: PageFeatures) -> Dict[str, float]:
        claims = f.numeric_claims
        if claims:
            supported = 7 * sum(1 for c in claims if c.has_supporting_link) / len(claims)
        else:
            supported = self.defaults.supported_claims_points
        return {"blockquotes": 3.0 if f.blockquotes else 0.0, "supported_claims": supported}

    def _style(self, text: str, audience_match: Optional[bool]) -> Dict[str, float]:
        tokens = [t.lower() for t in words(text)]
        single_jargon = {j for j in JARGON_TERMS if " " not in j}
        heavy = sum(1 for t in tokens if len(t) >= LONG_WORD_CHARS or t in single_jargon)
        heavy += _phrase_count(text, (j for j in JARGON_TERMS if " " in j))
        ratio = heavy / max(len(tokens), 1)
        if audience_match is None:
            audience = self.defaults.audience_points
        else:
            audience = 3.0 if audience_match else 0.0
        return {
            "plain_language": 7 * (1 - min(1.0, ratio / LONG_WORD_RATIO_LIMIT)) if tokens else 0.0,
            "audience_match": audience,
        }

    def _accessibility(self, f: PageFeatures) -> Dict[str, float]:
        alt = 5 * f.alt_coverage if f.images else self.defaults.alt_coverage_points
        ratio = len(f.plain_text or "") / len(f.raw_markup) if f.raw_markup else 1.0
        if ratio >= 0.25:
            text_ratio = 3.0
        elif ratio >= 0.10:
            text_ratio = 2.0
        elif ratio >= 0.05:
            text_ratio = 1.0
        else:
            text_ratio = 0.0
        return {
            "alt_coverage": alt,
            "formatting": 2.0 if (f.table_count or f.code_block_count) else 0.0,
            "text_ratio": text_ratio,
        }
