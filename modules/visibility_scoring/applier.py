"""
Suggestion Matcher/Applier — applies suggestions to the original markup.

Each suggestion is applied on its own against the current markup; a miss or
an error is recorded as skipped and never blocks the others. Text suggestions
only swap visible text inside existing elements. Metadata suggestions are the
only ones allowed to insert nodes, and only right before ``</head>``.
"""
import html
import logging
import re
from typing import Iterable, List, Optional, Sequence

from config.settings import METADATA_SUGGESTION_TYPES
from core.models import AppliedSuggestion, ApplicationReport, SkippedSuggestion, Suggestion
from modules.visibility_scoring.matchers import DEFAULT_MATCHERS, Matcher, Span
from modules.visibility_scoring.text_utils import contains_markup

logger = logging.getLogger(__name__)

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
_PROTECTED_RE = re.compile(
    r"<(script|style|textarea)\b[^>]*>.*?</\1\s*>|<!--.*?-->",
    re.IGNORECASE | re.DOTALL,
)


def is_text_span(markup: str, span: Span) -> bool:
    """True when *span* lies inside a single visible text run."""
    start, end = span
    chunk = markup[start:end]
    if not chunk.strip() or "<" in chunk or ">" in chunk:
        return False
    if markup.rfind("<", 0, start) > markup.rfind(">", 0, start):
        return False
    for m in _PROTECTED_RE.finditer(markup):
        if m.start() < end and start < m.end():
            return False
    return True


class SuggestionApplier:
    """Runs the matcher cascade for every suggestion."""

    def __init__(self, matchers: Optional[Sequence[Matcher]] = None):
        self.matchers: List[Matcher] = list(matchers if matchers is not None else DEFAULT_MATCHERS)

    # ── public API ──────────────────────────────────────────────────────────

    def apply(self, markup: str, suggestions: Iterable[Suggestion]) -> ApplicationReport:
        current = markup if markup is not None else ""
        report = ApplicationReport(final_markup=current)
        for suggestion in suggestions or []:
            try:
                current, outcome = self._apply_one(current, suggestion)
            except Exception as e:
                logger.warning("applying %s suggestion failed: %s", suggestion.type, e)
                outcome = f"error: {e}"
            if isinstance(outcome, str):
                logger.debug("skipped %s suggestion: %s", suggestion.type, outcome)
                report.skipped_suggestions.append(SkippedSuggestion(suggestion=suggestion, reason=outcome))
            else:
                report.applied_suggestions.append(outcome)
        report.final_markup = current
        report.applied_count = len(report.applied_suggestions)
        return report

    # ── internals ───────────────────────────────────────────────────────────

    def _apply_one(self, markup: str, s: Suggestion):
        """Return ``(markup, AppliedSuggestion)`` or ``(markup, skip reason)``."""
        find = s.exact_replacement.find or ""
        replace = s.exact_replacement.replace or ""
        metadata = s.type in METADATA_SUGGESTION_TYPES

        if not find.strip():
            if not metadata:
                return markup, "advisory suggestion: no find text to replace"
            return self._insert_in_head(markup, s, replace)

        if not metadata and contains_markup(replace):
            return markup, "replacement contains markup; text suggestions may only swap text"
        if not metadata:
            replace = html.escape(replace, quote=False)
        accept = None if metadata else is_text_span

        for matcher in self.matchers:
            span = matcher.match(markup, find, s.type, accept)
            if span is None:
                continue
            start, end = span
            logger.debug("%s suggestion matched by %s at %d-%d", s.type, matcher.name, start, end)
            return markup[:start] + replace + markup[end:], AppliedSuggestion(suggestion=s, strategy=matcher.name)
        names = ", ".join(m.name for m in self.matchers)
        return markup, f"find text not located by any strategy ({names})"

    @staticmethod
    def _insert_in_head(markup: str, s: Suggestion, replace: str):
        if not replace.strip():
            return markup, "empty insertion"
        if replace in markup:
            return markup, "already present in markup"
        head = _HEAD_CLOSE_RE.search(markup)
        if head is None:
            return markup, "no closing </head> marker to anchor the insertion"
        at = head.start()
        return markup[:at] + replace + "\n" + markup[at:], AppliedSuggestion(suggestion=s, strategy="head_insertion")


def apply_suggestions(markup: str, suggestions: Iterable[Suggestion]) -> ApplicationReport:
    """Apply *suggestions* to *markup* with the default matcher cascade."""
    return SuggestionApplier().apply(markup, suggestions)
