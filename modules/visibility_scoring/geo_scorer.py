"""
GEO Scoring Engine — six weighted categories measuring how likely a page is
to be retrieved, quoted and cited by AI answer engines.

Every formula is total over its domain: denominators are floored at 1 and
missing fields count as empty, so scoring never raises.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from config.settings import (
    ARTICLE_FIELDS,
    ARTICLE_TYPES,
    CITATION_COVERAGE_TARGET,
    CITATION_DENSITY_PENALTY_AT,
    CITATION_DENSITY_PENALTY_STEP,
    CITATION_DENSITY_TARGET,
    ENCYCLOPEDIC_HOSTS,
    ENTITY_POINTS_EACH,
    FAQ_SATURATION,
    FRESH_FULL_DAYS,
    FRESH_ZERO_DAYS,
    GEO_CATEGORIES,
    HOST_REPUTATION,
    RETRIEVAL_MIN_WORDS,
    SNIPPET_MAX_WORDS,
    SNIPPET_MIN_WORDS,
    STANDARDS_HOSTS,
    SUMMARY_CUES,
    SUMMARY_WINDOW_CHARS,
    USER_GENERATED_HOSTS,
)
from core.models import Metadata, PageFeatures, ScoreBreakdown, ScoringDefaults
from modules.visibility_scoring.breakdown import build_category, clamp, combine
from modules.visibility_scoring.metadata import parse_date
from modules.visibility_scoring.text_utils import canonical_host, sentences, word_count

logger = logging.getLogger(__name__)

_SUMMARY_CLASS_RE = re.compile(r"""class\s*=\s*["'][^"']*\b(?:summary|tl-?dr|key-?takeaways?)\b""", re.IGNORECASE)
_ENTITY_RE = re.compile(r"\b[A-Z][\w'’&-]*(?:[ \t]+[A-Z][\w'’&-]*)+")


def block_types(block: Dict) -> List[str]:
    t = block.get("@type", [])
    if isinstance(t, str):
        t = [t]
    return [str(x).lower() for x in t if x]


def faq_questions(blocks: Iterable[Dict]) -> List[Dict]:
    """Question entries of every FAQPage block."""
    out = []
    for block in blocks:
        if "faqpage" not in block_types(block):
            continue
        entities = block.get("mainEntity", [])
        if isinstance(entities, dict):
            entities = [entities]
        for q in entities if isinstance(entities, list) else []:
            if isinstance(q, dict) and "question" in block_types(q):
                out.append(q)
    return out


def _answered(question: Dict) -> bool:
    answer = question.get("acceptedAnswer") or question.get("suggestedAnswer")
    if isinstance(answer, list):
        answer = answer[0] if answer else None
    if isinstance(answer, dict):
        return bool(str(answer.get("text", "")).strip())
    return bool(isinstance(answer, str) and answer.strip())


def host_reputation(host: str) -> float:
    host = canonical_host(host)
    if _matches(host, STANDARDS_HOSTS):
        return HOST_REPUTATION["standards"]
    labels = host.split(".")
    if "gov" in labels[-2:] or "edu" in labels[-2:] or "ac" in labels[-2:-1]:
        return HOST_REPUTATION["gov_edu"]
    if _matches(host, USER_GENERATED_HOSTS):
        return HOST_REPUTATION["user_generated"]
    if _matches(host, ENCYCLOPEDIC_HOSTS):
        return HOST_REPUTATION["encyclopedic"]
    if labels[-1] == "org":
        return HOST_REPUTATION["org"]
    return HOST_REPUTATION["default"]


def _matches(host: str, table) -> bool:
    return any(host == h or host.endswith("." + h) for h in table)


class GeoScorer:
    """Scores a page on the six GEO categories."""

    def __init__(self, defaults: Optional[ScoringDefaults] = None):
        self.defaults = defaults or ScoringDefaults()

    # ═══════════════════════════════════════════════════════════════════════
    # Public API
    # ═══════════════════════════════════════════════════════════════════════

    def score(self, features: PageFeatures, metadata: Metadata, now: Optional[datetime] = None) -> ScoreBreakdown:
        now = now or datetime.now(timezone.utc)
        subs = {
            "evidence_attribution": self._evidence(features, metadata),
            "answerability_snippetability": self._answerability(features),
            "structured_understanding": self._structure(features),
            "freshness_stability": self._freshness(metadata, now),
            "entity_topic_coverage": self._entities(features),
            "retrieval_copyability": self._retrieval(features, metadata),
        }
        return combine(build_category(name, sub, GEO_CATEGORIES) for name, sub in subs.items())

    # ═══════════════════════════════════════════════════════════════════════
    # Evidence & Attribution
    # ═══════════════════════════════════════════════════════════════════════

    def _evidence(self, f: PageFeatures, m: Metadata) -> Dict[str, float]:
        external = f.external_links
        words = m.word_count or word_count(f.plain_text)
        density = len(external) / max(words, 1) * 1000
        density_pts = 10 * min(1.0, density / CITATION_DENSITY_TARGET)
        if density > CITATION_DENSITY_PENALTY_AT:
            density_pts -= CITATION_DENSITY_PENALTY_STEP * (density - CITATION_DENSITY_PENALTY_AT)

        per_sentence = len(external) / max(len(sentences(f.plain_text)), 1)
        coverage_pts = 10 * min(1.0, per_sentence / CITATION_COVERAGE_TARGET)

        quality_pts = 0.0
        if external:
            hosts = [urlparse(l.href).hostname or "" for l in external]
            reputation = sum(host_reputation(h) for h in hosts) / len(hosts)
            https_share = sum(1 for l in external if l.href.lower().startswith("https://")) / len(external)
            diversity = len({canonical_host(h) for h in hosts}) / len(external)
            quality_pts = reputation * 6 + https_share * 2 + diversity * 2

        return {
            "citation_density": clamp(density_pts, 0, 10),
            "citation_coverage": coverage_pts,
            "citation_quality": quality_pts,
        }

    # ═══════════════════════════════════════════════════════════════════════
    # Answerability & Snippetability
    # ═══════════════════════════════════════════════════════════════════════

    def _answerability(self, f: PageFeatures) -> Dict[str, float]:
        n = len(faq_questions(f.structured_data_blocks))
        faq_pts = min(8.0, 8 * math.log(1 + n) / math.log(1 + FAQ_SATURATION)) if n else 0.0
        snippet = any(SNIPPET_MIN_WORDS <= word_count(p) <= SNIPPET_MAX_WORDS for p in f.paragraphs)
        return {
            "summary_cue": 8.0 if self._has_summary_cue(f) else 0.0,
            "snippet_paragraph": 9.0 if snippet else 0.0,
            "faq_items": faq_pts,
        }

    @staticmethod
    def _has_summary_cue(f: PageFeatures) -> bool:
        top = " ".join([
            f.headings[0].text if f.headings else "",
            f.paragraphs[0] if f.paragraphs else "",
            (f.plain_text or "")[:SUMMARY_WINDOW_CHARS],
        ]).lower()
        if any(re.search(r"(?<!\w)" + re.escape(cue) + r"(?!\w)", top) for cue in SUMMARY_CUES):
            return True
        return bool(_SUMMARY_CLASS_RE.search(f.raw_markup or ""))

    # ═══════════════════════════════════════════════════════════════════════
    # Structured Understanding
    # ═══════════════════════════════════════════════════════════════════════

    def _structure(self, f: PageFeatures) -> Dict[str, float]:
        blocks = f.structured_data_blocks
        completeness = 0.0
        for block in blocks:
            if ARTICLE_TYPES & set(block_types(block)):
                present = sum(1 for k in ARTICLE_FIELDS if block.get(k))
                completeness = max(completeness, present / len(ARTICLE_FIELDS))
        schema_pts = completeness * 6
        if any(_answered(q) for q in faq_questions(blocks)):
            schema_pts += 4

        meta = f.meta_tags
        markers = [
            bool(blocks),
            f.microdata_count > 0,
            f.rdfa_count > 0,
            any(k.startswith("og:") for k in meta),
            any(k.startswith("twitter:") for k in meta),
            bool(f.canonical_url),
            bool(f.lang),
            bool(meta.get("description")),
        ]
        return {
            "schema_completeness": min(10.0, schema_pts),
            "signal_markers": float(min(6, sum(markers))),
            "discovery_hints": float(min(4, 2 * len(set(f.discovery_hints)))),
        }

    # ═══════════════════════════════════════════════════════════════════════
    # Freshness & Stability
    # ═══════════════════════════════════════════════════════════════════════

    def _freshness(self, m: Metadata, now: datetime) -> Dict[str, float]:
        modified = parse_date(m.last_modified)
        published = parse_date(m.publish_date)
        if m.dates_estimated or modified is None:
            return {"recency": self.defaults.freshness_points, "revision_bonus": 0.0}
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        days = (now - modified).total_seconds() / 86400
        if days <= FRESH_FULL_DAYS:
            recency = 8.0
        elif days >= FRESH_ZERO_DAYS:
            recency = 0.0
        else:
            recency = 8.0 * (FRESH_ZERO_DAYS - days) / (FRESH_ZERO_DAYS - FRESH_FULL_DAYS)
        revised = published is not None and published.date() != modified.date()
        return {"recency": recency, "revision_bonus": 2.0 if revised else 0.0}

    # ═══════════════════════════════════════════════════════════════════════
    # Entity & Topic Coverage / Retrieval & Copyability
    # ═══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _entities(f: PageFeatures) -> Dict[str, float]:
        runs = {normalize_run(r) for r in _ENTITY_RE.findall(f.plain_text or "")}
        return {
            "entities": min(6.0, len(runs) * ENTITY_POINTS_EACH),
            "topic_recall": float(min(4, len(f.subheadings))),
        }

    @staticmethod
    def _retrieval(f: PageFeatures, m: Metadata) -> Dict[str, float]:
        words = m.word_count or word_count(f.plain_text)
        structures = sum(1 for present in (f.lists, f.table_count, f.code_block_count) if present)
        return {
            "length_bonus": 2.0 if words >= RETRIEVAL_MIN_WORDS else 0.0,
            "copy_structures": float(structures),
        }


def normalize_run(run: str) -> str:
    return " ".join(run.split()).lower()
