"""
Metadata / Keyword Deriver — title, description, author, dates and keywords
from the extracted page features, each resolved through layered fallbacks.
"""
import logging
import math
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from bs4 import BeautifulSoup
from Levenshtein import distance as levenshtein_distance
from nltk.util import ngrams

from config.settings import (
    DEFAULT_DOMAIN_TERMS,
    DESCRIPTION_MAX_CHARS,
    KEYWORD_BASE_WEIGHT,
    KEYWORD_DEDUP_THRESHOLD,
    KEYWORD_DOMAIN_BONUS,
    KEYWORD_LIMIT,
    KEYWORD_PHRASE_BONUS,
    KEYWORD_TITLE_BONUS,
    MIN_WORD_LENGTH,
    STOP_WORDS,
    WORDS_PER_MINUTE,
)
from core.models import Metadata, PageFeatures
from modules.visibility_scoring.extractor import PARSER
from modules.visibility_scoring.text_utils import excerpt, normalize_ws, word_count, words

logger = logging.getLogger(__name__)

_BYLINE_RE = re.compile(r"\b[Bb]y[ \t]+([A-Z][\w'’-]+(?:[ \t]+(?:[A-Z]\.|[A-Z][\w'’-]+)){0,3})")
_AUTHOR_META = ("author", "article:author", "twitter:creator", "dc.creator", "parsely-author")
_PUBLISHED_META = ("article:published_time", "datepublished", "date", "dc.date", "pubdate", "publish_date")
_MODIFIED_META = ("article:modified_time", "og:updated_time", "datemodified", "last-modified", "dc.date.modified")


class MetadataDeriver:
    """Derives :class:`Metadata` from :class:`PageFeatures`."""

    def __init__(
        self,
        domain_terms: Optional[Iterable[str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.domain_terms: Set[str] = {t.lower() for t in (domain_terms if domain_terms is not None else DEFAULT_DOMAIN_TERMS)}
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.author_strategies: List[Callable[[PageFeatures], str]] = [
            self._author_from_meta,
            self._author_from_structured_data,
            self._author_from_byline,
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # Public API
    # ═══════════════════════════════════════════════════════════════════════

    def derive(self, features: PageFeatures, now: Optional[datetime] = None) -> Metadata:
        title = self.title(features)
        published, modified = self.dates(features)
        estimated = not published and not modified
        if estimated:
            stamp = (now or self.clock()).isoformat()
            published = modified = stamp
        elif not modified:
            modified = published
        elif not published:
            published = modified
        wc = word_count(features.plain_text)
        return Metadata(
            title=title,
            description=self.description(features),
            keywords=self.keywords(features, title),
            author=self.author(features),
            publish_date=published,
            last_modified=modified,
            reading_time_minutes=math.ceil(wc / WORDS_PER_MINUTE) if wc else 0,
            word_count=wc,
            dates_estimated=estimated,
        )

    def title(self, features: PageFeatures) -> str:
        meta = features.meta_tags
        h1 = features.headings_at(1)
        for candidate in (features.title_tag, meta.get("og:title"), meta.get("twitter:title"), h1[0].text if h1 else ""):
            if candidate and candidate.strip():
                return normalize_ws(candidate)
        return ""

    def description(self, features: PageFeatures) -> str:
        meta = features.meta_tags
        for candidate in (meta.get("description"), meta.get("og:description"), meta.get("twitter:description")):
            if candidate and candidate.strip():
                return normalize_ws(candidate)
        if features.paragraphs:
            return excerpt(features.paragraphs[0], DESCRIPTION_MAX_CHARS)
        return ""

    def author(self, features: PageFeatures) -> str:
        for strategy in self.author_strategies:
            found = strategy(features)
            if found:
                return found
        return "Unknown"

    def dates(self, features: PageFeatures) -> Tuple[str, str]:
        meta = features.meta_tags
        published = _first(meta.get(k) for k in _PUBLISHED_META)
        modified = _first(meta.get(k) for k in _MODIFIED_META)
        for block in features.structured_data_blocks:
            published = published or _as_text(block.get("datePublished"))
            modified = modified or _as_text(block.get("dateModified"))
        if not published:
            published = self._time_element(features.raw_markup)
        return published, modified

    def keywords(self, features: PageFeatures, title: str = "") -> List[str]:
        tokens = [
            t for t in (w.lower() for w in words(features.plain_text))
            if t not in STOP_WORDS and len(t) > MIN_WORD_LENGTH and not t.isdigit()
        ]
        if not tokens:
            return []
        counts: Counter = Counter()
        for n in (1, 2, 3):
            if len(tokens) >= n:
                counts.update(" ".join(g) for g in ngrams(tokens, n))

        context = " ".join([title] + [h.text for h in features.headings]).lower()
        scored: Dict[str, float] = {}
        for phrase, freq in counts.items():
            size = phrase.count(" ") + 1
            in_context = bool(re.search(r"\b" + re.escape(phrase) + r"\b", context))
            domain = self._domain_match(phrase)
            if size == 1 and not domain:
                continue
            if size > 1 and freq < 2 and not (in_context or domain):
                continue
            score = KEYWORD_BASE_WEIGHT * freq
            if in_context:
                score += KEYWORD_TITLE_BONUS
            if domain:
                score += KEYWORD_DOMAIN_BONUS
            if size >= 2:
                score += KEYWORD_PHRASE_BONUS
            scored[phrase] = score

        ranked = sorted(scored.items(), key=lambda x: (-x[1], x[0]))
        return self._dedup(ranked)[:KEYWORD_LIMIT]

    # ── author strategies ───────────────────────────────────────────────────

    @staticmethod
    def _author_from_meta(features: PageFeatures) -> str:
        value = _first(features.meta_tags.get(k) for k in _AUTHOR_META)
        if value and not value.startswith(("http://", "https://")):
            return value.lstrip("@")
        return ""

    @staticmethod
    def _author_from_structured_data(features: PageFeatures) -> str:
        for block in features.structured_data_blocks:
            name = _author_name(block.get("author"))
            if name:
                return name
        return ""

    @staticmethod
    def _author_from_byline(features: PageFeatures) -> str:
        m = _BYLINE_RE.search(features.plain_text or "")
        return m.group(1).strip(" .") if m else ""

    # ── helpers ─────────────────────────────────────────────────────────────

    def _domain_match(self, phrase: str) -> bool:
        return phrase in self.domain_terms or any(w in self.domain_terms for w in phrase.split())

    @staticmethod
    def _dedup(ranked: List[Tuple[str, float]]) -> List[str]:
        kept: List[str] = []
        for phrase, _ in ranked:
            duplicate = False
            for other in kept:
                maxl = max(len(phrase), len(other))
                if maxl and 1 - levenshtein_distance(phrase, other) / maxl >= KEYWORD_DEDUP_THRESHOLD:
                    duplicate = True
                    break
            if not duplicate:
                kept.append(phrase)
        return kept

    @staticmethod
    def _time_element(markup: str) -> str:
        if "<time" not in (markup or "").lower():
            return ""
        try:
            tag = BeautifulSoup(markup, PARSER).find("time", attrs={"datetime": True})
        except Exception as e:
            logger.debug("time element lookup failed: %s", e)
            return ""
        return tag["datetime"].strip() if tag else ""


def _first(values: Iterable[Optional[str]]) -> str:
    for v in values:
        if v and v.strip():
            return v.strip()
    return ""


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _author_name(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return _as_text(value.get("name"))
    if isinstance(value, list):
        for item in value:
            name = _author_name(item)
            if name:
                return name
    return ""


def parse_date(value: str) -> Optional[datetime]:
    """Best-effort ISO-8601 parsing; naive values are taken as UTC."""
    if not value:
        return None
    v = value.strip().replace("Z", "+00:00")
    for candidate in (v, v[:10]):
        try:
            dt = datetime.fromisoformat(candidate)
        except ValueError:
            continue
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None
