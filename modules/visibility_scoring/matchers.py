"""
Match strategies for locating a suggestion's ``find`` text inside markup.

Each matcher yields candidate ``(start, end)`` spans; ``match()`` returns the
first candidate the caller's ``accept`` predicate allows. The applier runs
them in order and stops at the first success.
"""
import logging
import re
from typing import Callable, Iterator, List, Optional, Tuple

from Levenshtein import distance as levenshtein_distance

from config.settings import (
    DEFAULT_SIMILARITY_THRESHOLD,
    PARTIAL_MATCH_MIN_CHARS,
    PARTIAL_MATCH_PREFIX_RATIO,
    SIMILARITY_THRESHOLDS,
)

logger = logging.getLogger(__name__)

Span = Tuple[int, int]
Accept = Callable[[str, Span], bool]

_TOKEN_RE = re.compile(r"<!--.*?-->|<[^>]*>|[^<]+|<", re.DOTALL)
_RAW_TEXT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_SENTENCE_RE = re.compile(r"[^.!?]+(?:[.!?]+|$)")


def _flex_pattern(text: str) -> Optional[str]:
    tokens = text.split()
    return r"\s+".join(re.escape(t) for t in tokens) if tokens else None


def similarity(a: str, b: str) -> float:
    """(longer − edit distance) / longer on lower-cased, whitespace-collapsed text."""
    a, b = " ".join(a.lower().split()), " ".join(b.lower().split())
    longer = max(len(a), len(b))
    if not longer:
        return 1.0
    return (longer - levenshtein_distance(a, b)) / longer


class Matcher:
    name = "base"

    def spans(self, markup: str, find: str, suggestion_type: str) -> Iterator[Span]:
        raise NotImplementedError

    def match(self, markup: str, find: str, suggestion_type: str = "", accept: Optional[Accept] = None) -> Optional[Span]:
        if not find:
            return None
        for span in self.spans(markup, find, suggestion_type):
            if accept is None or accept(markup, span):
                return span
        return None


class ExactMatcher(Matcher):
    name = "exact"

    def spans(self, markup, find, suggestion_type):
        start = markup.find(find)
        while start != -1:
            yield start, start + len(find)
            start = markup.find(find, start + 1)


class CaseInsensitiveMatcher(Matcher):
    name = "case_insensitive"

    def spans(self, markup, find, suggestion_type):
        for m in re.finditer(re.escape(find), markup, re.IGNORECASE):
            yield m.span()


class WhitespaceMatcher(Matcher):
    """Collapsed-whitespace comparison; the matched span keeps its own spacing."""
    name = "whitespace_normalized"

    def spans(self, markup, find, suggestion_type):
        pattern = _flex_pattern(find)
        if pattern is None:
            return
        for m in re.finditer(pattern, markup, re.IGNORECASE):
            yield m.span()


class PartialPrefixMatcher(Matcher):
    """Leading ~70% of a long find, extended to its tail or the end of the text run."""
    name = "partial_prefix"

    def __init__(self, min_chars: int = PARTIAL_MATCH_MIN_CHARS, ratio: float = PARTIAL_MATCH_PREFIX_RATIO):
        self.min_chars = min_chars
        self.ratio = ratio

    def spans(self, markup, find, suggestion_type):
        find = find.strip()
        if len(find) < self.min_chars:
            return
        prefix = find[: int(len(find) * self.ratio)]
        if " " in prefix:
            prefix = prefix.rsplit(" ", 1)[0]
        pattern = _flex_pattern(prefix)
        if pattern is None:
            return
        tail = _flex_pattern(" ".join(find[len(prefix):].split()[-3:]))
        for m in re.finditer(pattern, markup, re.IGNORECASE):
            limit = m.start() + int(len(find) * 1.5)
            window = markup[m.end():limit]
            end = None
            if tail:
                t = re.search(tail, window, re.IGNORECASE)
                if t:
                    end = m.end() + t.end()
            if end is None:
                lt = window.find("<")
                if lt == -1 and limit >= len(markup):
                    lt = len(window)
                if lt == -1:
                    continue
                end = m.end() + lt
                while end > m.end() and markup[end - 1].isspace():
                    end -= 1
            yield m.start(), end


class SimilarityMatcher(Matcher):
    """Best sentence-like span of any text run, above a per-type threshold."""
    name = "similarity"

    def __init__(self, thresholds=None, default: float = DEFAULT_SIMILARITY_THRESHOLD):
        self.thresholds = dict(SIMILARITY_THRESHOLDS if thresholds is None else thresholds)
        self.default = default

    def threshold(self, suggestion_type: str) -> float:
        return self.thresholds.get(suggestion_type, self.default)

    def spans(self, markup, find, suggestion_type):
        target = " ".join(find.split())
        if not target:
            return
        limit = self.threshold(suggestion_type)
        scored: List[Tuple[float, int, Span]] = []
        for start, end in self._candidates(markup, len(target.split(". ")) if ". " in target else 1):
            text = markup[start:end]
            n = len(" ".join(text.split()))
            # similarity can never exceed shorter/longer
            if not n or min(n, len(target)) / max(n, len(target)) < limit:
                continue
            score = similarity(text, target)
            if score >= limit:
                scored.append((score, start, (start, end)))
        scored.sort(key=lambda x: (-x[0], x[1]))
        for score, _, span in scored:
            logger.debug("similarity candidate %.3f at %s", score, span)
            yield span

    @staticmethod
    def _candidates(markup: str, group: int) -> Iterator[Span]:
        raw = [m.span() for m in _RAW_TEXT_RE.finditer(markup)]
        for tok in _TOKEN_RE.finditer(markup):
            if tok.group(0).startswith("<"):
                continue
            s, e = tok.span()
            if any(a <= s < b for a, b in raw):
                continue
            whole = _strip_one(markup, s, e)
            if whole:
                yield whole
            parts = [p for p in (_strip_one(markup, s + m.start(), s + m.end()) for m in _SENTENCE_RE.finditer(tok.group(0))) if p]
            for i in range(len(parts)):
                for k in ((1, group) if group > 1 else (1,)):
                    if i + k <= len(parts) and (k > 1 or len(parts) > 1):
                        yield parts[i][0], parts[i + k - 1][1]


def _strip_one(markup: str, s: int, e: int) -> Optional[Span]:
    while s < e and markup[s].isspace():
        s += 1
    while e > s and markup[e - 1].isspace():
        e -= 1
    return (s, e) if e > s else None


DEFAULT_MATCHERS = (
    ExactMatcher(),
    CaseInsensitiveMatcher(),
    WhitespaceMatcher(),
    PartialPrefixMatcher(),
    SimilarityMatcher(),
)
