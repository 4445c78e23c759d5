"""
Shared data models for geo-visibility-suite.
All pipeline stages exchange these normalized types.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from config.settings import (
    NEUTRAL_ALT_COVERAGE_POINTS,
    NEUTRAL_AUDIENCE_POINTS,
    NEUTRAL_FRESHNESS_POINTS,
    NEUTRAL_ORIGINALITY_POINTS,
    NEUTRAL_SUPPORTED_CLAIMS_POINTS,
)


# ─── Page input / features ──────────────────────────────────────────────────

@dataclass
class PageInput:
    url: str
    raw_markup: str = ""
    plain_text: str = ""


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class ListBlock:
    type: str  # ul / ol
    items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Link:
    href: str
    is_external: bool = False


@dataclass(frozen=True)
class Image:
    src: str = ""
    has_alt: bool = False


@dataclass(frozen=True)
class NumericClaim:
    text: str
    has_supporting_link: bool = False


@dataclass(frozen=True)
class PageFeatures:
    url: str = ""
    raw_markup: str = ""
    plain_text: str = ""
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    lists: List[ListBlock] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    structured_data_blocks: List[Dict[str, Any]] = field(default_factory=list)
    meta_tags: Dict[str, str] = field(default_factory=dict)
    title_tag: str = ""
    canonical_url: str = ""
    lang: str = ""
    table_count: int = 0
    code_block_count: int = 0
    blockquotes: List[str] = field(default_factory=list)
    numeric_claims: List[NumericClaim] = field(default_factory=list)
    discovery_hints: List[str] = field(default_factory=list)
    microdata_count: int = 0
    rdfa_count: int = 0

    @property
    def external_links(self) -> List[Link]:
        return [l for l in self.links if l.is_external]

    @property
    def alt_coverage(self) -> float:
        return sum(1 for i in self.images if i.has_alt) / max(len(self.images), 1)

    def headings_at(self, level: int) -> List[Heading]:
        return [h for h in self.headings if h.level == level]

    @property
    def subheadings(self) -> List[Heading]:
        return [h for h in self.headings if h.level >= 2]


# ─── Metadata ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Metadata:
    title: str = ""
    description: str = ""
    keywords: List[str] = field(default_factory=list)
    author: str = "Unknown"
    publish_date: str = ""
    last_modified: str = ""
    reading_time_minutes: int = 0
    word_count: int = 0
    dates_estimated: bool = False


# ─── Scores ─────────────────────────────────────────────────────────────────

@dataclass
class CategoryScore:
    name: str
    score: float
    ceiling: float
    weight: float
    sub_metrics: Dict[str, float] = field(default_factory=dict)


@dataclass
class ScoreBreakdown:
    categories: List[CategoryScore] = field(default_factory=list)
    total_score: float = 0.0

    def category(self, name: str) -> Optional[CategoryScore]:
        for c in self.categories:
            if c.name == name:
                return c
        return None


@dataclass
class ScoringDefaults:
    """Neutral points used when a sub-metric has nothing to measure."""
    originality_points: float = NEUTRAL_ORIGINALITY_POINTS
    supported_claims_points: float = NEUTRAL_SUPPORTED_CLAIMS_POINTS
    freshness_points: float = NEUTRAL_FRESHNESS_POINTS
    audience_points: float = NEUTRAL_AUDIENCE_POINTS
    alt_coverage_points: float = NEUTRAL_ALT_COVERAGE_POINTS


# ─── Suggestions ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ExactReplacement:
    find: str = ""
    replace: str = ""


@dataclass(frozen=True)
class Suggestion:
    type: str
    priority: str  # high / medium / low
    description: str = ""
    impact: str = ""
    current_content: str = ""
    enhanced_content: str = ""
    exact_replacement: ExactReplacement = field(default_factory=ExactReplacement)
    source: str = "heuristic"  # heuristic / generated


@dataclass
class AppliedSuggestion:
    suggestion: Suggestion
    strategy: str


@dataclass
class SkippedSuggestion:
    suggestion: Suggestion
    reason: str


@dataclass
class ApplicationReport:
    final_markup: str
    applied_count: int = 0
    applied_suggestions: List[AppliedSuggestion] = field(default_factory=list)
    skipped_suggestions: List[SkippedSuggestion] = field(default_factory=list)


# ─── Report ─────────────────────────────────────────────────────────────────

@dataclass
class UnderstandabilityScore:
    score: int = 0
    breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class ScoreReport:
    url: str
    geo_score_total: float = 0.0
    geo_breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    content_quality_score_total: float = 0.0
    content_quality_breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    metadata: Metadata = field(default_factory=Metadata)
    suggestions: List[Suggestion] = field(default_factory=list)
    llm_understandability: UnderstandabilityScore = field(default_factory=UnderstandabilityScore)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
