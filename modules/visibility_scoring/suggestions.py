"""
Suggestion Generator — a fixed catalogue of independent deficiency detectors.

Each detector looks at the page features, derived metadata and scores and
emits zero or one :class:`Suggestion`. Metadata detectors produce insertions
anchored before ``</head>``; text detectors produce literal find/replace pairs
built from the page's own content, or advisories with an empty find.

The paragraph and sentence detectors may ask an injected text generator for
an ``{"original", "improved"}`` rewrite. Its output is validated and any
failure falls back to the heuristic result.
"""
import html
import json
import logging
import re
from typing import Callable, List, Optional, Tuple

from config.settings import (
    ARTICLE_REQUIRED_FIELDS,
    ARTICLE_TYPES,
    EXCERPT_CHARS,
    FILLER_PATTERNS,
    FILLER_REWRITES,
    GENERATED_PARAGRAPH_BOUNDS,
    GENERATED_SENTENCE_BOUNDS,
    GENERATION_TIMEOUT_SECONDS,
    LIST_MIN_WORDS,
    OVERLONG_PARAGRAPH_WORDS,
    PRIORITY_ORDER,
    SUBHEADING_MIN_WORDS,
    TITLE_LENGTH_BAND,
)
from core.models import ExactReplacement, Metadata, PageFeatures, ScoreBreakdown, Suggestion
from core.text_generation import (
    MalformedOutputError,
    TextGenerationError,
    TextGenerator,
    generate_with_timeout,
    parse_rewrite,
)
from modules.visibility_scoring.geo_scorer import block_types
from modules.visibility_scoring.text_utils import contains_markup, excerpt, normalize_ws, sentences, word_count

logger = logging.getLogger(__name__)

_TITLE_ELEMENT_RE = re.compile(r"<title\b[^>]*>.*?</title\s*>", re.IGNORECASE | re.DOTALL)
_DESCRIPTION_META_RE = re.compile(
    r"<meta\b[^>]*\bname\s*=\s*[\"']?description(?=[\"'\s/>])[^>]*>", re.IGNORECASE
)
_LD_SCRIPT_RE = re.compile(r"<script\b[^>]*application/ld\+json[^>]*>(.*?)</script\s*>", re.IGNORECASE | re.DOTALL)

_PARAGRAPH_PROMPT = """Rewrite the following paragraph so it is easier to scan and quote.
Keep every fact, keep the language of the original, use plain text only (no HTML, no Markdown),
and keep it under {max_words} words.

Paragraph:
\"\"\"{paragraph}\"\"\"

Page title: {title}
Main keywords: {keywords}

Return JSON: {{"original": "<the paragraph exactly as given>", "improved": "<your rewrite>"}}"""

_SENTENCE_PROMPT = """The sentence below is vague or padded with filler.
Rewrite it as one specific, self-contained sentence. Keep the meaning and the language,
use plain text only.

Sentence:
\"\"\"{sentence}\"\"\"

Page title: {title}

Return JSON: {{"original": "<the sentence exactly as given>", "improved": "<your rewrite>"}}"""

_Detector = Callable[[PageFeatures, Metadata, ScoreBreakdown, ScoreBreakdown], Optional[Suggestion]]


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _ld_element(markup: str, block: dict) -> str:
    """The JSON-LD <script> element holding exactly *block*, or "" when it is not standalone."""
    for match in _LD_SCRIPT_RE.finditer(markup or ""):
        try:
            data = json.loads(match.group(1).strip())
        except ValueError:
            continue
        if data == block:
            return match.group(0)
    return ""


def _category_note(breakdown: ScoreBreakdown, name: str, label: str) -> str:
    cat = breakdown.category(name) if breakdown else None
    return f" {label} currently scores {cat.score:g}/{cat.ceiling:g}." if cat else ""


class SuggestionGenerator:
    """Runs every detector and returns the suggestions ordered by priority."""

    def __init__(self, text_generator: Optional[TextGenerator] = None, timeout: float = GENERATION_TIMEOUT_SECONDS):
        self.text_generator = text_generator
        self.timeout = timeout
        self.detectors: List[Tuple[str, _Detector]] = [
            ("heading", self._missing_heading),
            ("title", self._title),
            ("meta_description", self._missing_description),
            ("canonical", self._missing_canonical),
            ("schema", self._missing_schema),
            ("paragraph", self._overlong_paragraph),
            ("sentence_replacement", self._weak_sentence),
            ("list", self._missing_lists),
            ("subheadings", self._missing_subheadings),
            ("meta_viewport", self._missing_viewport),
            ("og_tags", self._missing_social_tags),
            ("keyword_optimization", self._keyword_gaps),
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # Public API
    # ═══════════════════════════════════════════════════════════════════════

    def generate(
        self,
        features: PageFeatures,
        metadata: Metadata,
        geo: Optional[ScoreBreakdown] = None,
        quality: Optional[ScoreBreakdown] = None,
    ) -> List[Suggestion]:
        geo = geo or ScoreBreakdown()
        quality = quality or ScoreBreakdown()
        found: List[Suggestion] = []
        for name, detector in self.detectors:
            try:
                suggestion = detector(features, metadata, geo, quality)
            except Exception as e:
                logger.warning("detector %s failed on %s: %s", name, features.url or "?", e)
                continue
            if suggestion is not None:
                found.append(suggestion)
        # sorted() is stable: catalogue order is kept within a priority
        return sorted(found, key=lambda s: PRIORITY_ORDER.get(s.priority, len(PRIORITY_ORDER)))

    # ═══════════════════════════════════════════════════════════════════════
    # High priority — indexability / AI-visibility blockers
    # ═══════════════════════════════════════════════════════════════════════

    def _missing_heading(self, f, m, geo, quality):
        if f.headings_at(1):
            return None
        proposed = m.title or self._fallback_title(f, m)
        return Suggestion(
            type="heading",
            priority="high",
            description="Add a single top-level heading (H1) that states the page topic.",
            impact="Answer engines and crawlers use the H1 to decide what the page is about."
            + _category_note(quality, "structure_coherence", "Structure & Coherence"),
            current_content="",
            enhanced_content=proposed,
        )

    def _title(self, f, m, geo, quality):
        current = normalize_ws(f.title_tag)
        lo, hi = TITLE_LENGTH_BAND
        if current and lo <= len(current) <= hi:
            return None
        element = _TITLE_ELEMENT_RE.search(f.raw_markup or "")
        if not current:
            proposed = excerpt(m.title, hi) or self._fallback_title(f, m)
            if not proposed:
                return None
            # an empty <title> is filled in place, never duplicated
            return Suggestion(
                type="title",
                priority="high",
                description="Fill in the empty <title> element." if element else "Add a <title> element.",
                impact="The title is the headline shown in search results and cited by AI answers.",
                enhanced_content=proposed,
                exact_replacement=ExactReplacement(
                    find=element.group(0) if element else "",
                    replace=f"<title>{html.escape(proposed)}</title>",
                ),
            )

        if not element:
            return None
        if len(current) > hi:
            proposed = excerpt(current, hi)
        else:
            h1 = f.headings_at(1)
            extra = h1[0].text if h1 and h1[0].text.lower() != current.lower() else ""
            if not extra and m.keywords:
                extra = m.keywords[0].title()
            proposed = excerpt(f"{current} | {extra}", hi) if extra else ""
        if not proposed or proposed == current:
            return None
        return Suggestion(
            type="title",
            priority="high",
            description=f"Rewrite the title to {lo}–{hi} characters.",
            impact="Titles outside this range are truncated or too vague to rank and to be quoted.",
            current_content=current,
            enhanced_content=proposed,
            exact_replacement=ExactReplacement(find=element.group(0), replace=f"<title>{html.escape(proposed)}</title>"),
        )

    def _missing_description(self, f, m, geo, quality):
        if f.meta_tags.get("description"):
            return None
        text = m.description or self._fallback_title(f, m)
        if not text:
            return None
        existing = _DESCRIPTION_META_RE.search(f.raw_markup or "")
        return Suggestion(
            type="meta_description",
            priority="high",
            description="Fill in the empty meta description." if existing else "Add a meta description summarising the page.",
            impact="Search snippets and AI previews fall back to arbitrary page text without one.",
            enhanced_content=text,
            exact_replacement=ExactReplacement(
                find=existing.group(0) if existing else "",
                replace=f'<meta name="description" content="{_attr(text)}">',
            ),
        )

    def _missing_canonical(self, f, m, geo, quality):
        url = (f.url or "").strip()
        if f.canonical_url or not re.match(r"^https?://[^/\s]+", url, re.IGNORECASE):
            return None
        return Suggestion(
            type="canonical",
            priority="high",
            description="Declare the canonical URL of the page.",
            impact="Consolidates duplicate URLs so citations point at one address.",
            enhanced_content=url,
            exact_replacement=ExactReplacement(find="", replace=f'<link rel="canonical" href="{_attr(url)}">'),
        )

    def _missing_schema(self, f, m, geo, quality):
        generated = self.article_schema(f, m)
        articles = [b for b in f.structured_data_blocks if ARTICLE_TYPES & set(block_types(b))]
        if not articles:
            block, find, missing = generated, "", []
            description = f"Add {block['@type']} structured data (JSON-LD)."
        else:
            best = max(articles, key=lambda b: sum(1 for k in ARTICLE_REQUIRED_FIELDS if b.get(k)))
            missing = [k for k in ARTICLE_REQUIRED_FIELDS if not best.get(k) and generated.get(k)]
            if not missing:
                return None
            block = {**best, **{k: generated[k] for k in missing}}
            find = _ld_element(f.raw_markup, best)
            description = f"Complete the existing {best.get('@type')} structured data: add {', '.join(missing)}."
        payload = json.dumps(block, ensure_ascii=False, indent=2).replace("</", "<\\/")
        return Suggestion(
            type="schema",
            priority="high",
            description=description,
            impact="Structured data lets answer engines read the headline, author and dates directly."
            + _category_note(geo, "structured_understanding", "Structured Understanding"),
            current_content=", ".join(missing),
            enhanced_content=payload,
            exact_replacement=ExactReplacement(
                find=find, replace=f'<script type="application/ld+json">\n{payload}\n</script>'
            ),
        )

    @staticmethod
    def article_schema(f: PageFeatures, m: Metadata) -> dict:
        """Article JSON-LD built from the derived metadata."""
        kind = "BlogPosting" if "/blog" in (f.url or "").lower() else "Article"
        block = {
            "@context": "https://schema.org",
            "@type": kind,
            "headline": excerpt(m.title or SuggestionGenerator._fallback_title(f, m), 110),
        }
        if m.description:
            block["description"] = m.description
        if m.author and m.author != "Unknown":
            block["author"] = {"@type": "Person", "name": m.author}
        if not m.dates_estimated:
            block["datePublished"] = m.publish_date
            block["dateModified"] = m.last_modified
        images = [i.src for i in f.images if i.src]
        if images:
            block["image"] = images[0]
        if f.url:
            block["mainEntityOfPage"] = {"@type": "WebPage", "@id": f.url}
            block["url"] = f.url
        if m.keywords:
            block["keywords"] = ", ".join(m.keywords[:10])
        return block

    # ═══════════════════════════════════════════════════════════════════════
    # Medium priority — readability / structure
    # ═══════════════════════════════════════════════════════════════════════

    def _overlong_paragraph(self, f, m, geo, quality):
        target = next((p for p in f.paragraphs if word_count(p) > OVERLONG_PARAGRAPH_WORDS), None)
        if target is None:
            return None
        n = word_count(target)
        improved = self._rewrite(
            _PARAGRAPH_PROMPT.format(
                paragraph=target, title=m.title or "-", keywords=", ".join(m.keywords[:5]) or "-",
                max_words=OVERLONG_PARAGRAPH_WORDS,
            ),
            GENERATED_PARAGRAPH_BOUNDS,
        )
        if improved:
            return Suggestion(
                type="paragraph",
                priority="medium",
                description=f"Tighten this {n}-word paragraph.",
                impact="Self-contained paragraphs under 160 words are easier to lift into answers.",
                current_content=excerpt(target, EXCERPT_CHARS),
                enhanced_content=improved,
                exact_replacement=ExactReplacement(find=target, replace=improved),
                source="generated",
            )
        return Suggestion(
            type="paragraph",
            priority="medium",
            description=f"Split this {n}-word paragraph into shorter ones, one idea each.",
            impact="Self-contained paragraphs under 160 words are easier to lift into answers.",
            current_content=excerpt(target, EXCERPT_CHARS),
        )

    def _weak_sentence(self, f, m, geo, quality):
        target = self._low_information_sentence(f)
        if target is None:
            return None
        improved = self._rewrite(
            _SENTENCE_PROMPT.format(sentence=target, title=m.title or "-"),
            GENERATED_SENTENCE_BOUNDS,
        )
        source = "generated"
        if not improved:
            improved, source = self.strip_filler(target), "heuristic"
        if not improved or improved == target:
            return None
        return Suggestion(
            type="sentence_replacement",
            priority="medium",
            description="Replace a vague or padded sentence with a direct one.",
            impact="Specific sentences are more likely to be quoted verbatim.",
            current_content=target,
            enhanced_content=improved,
            exact_replacement=ExactReplacement(find=target, replace=improved),
            source=source,
        )

    def _missing_lists(self, f, m, geo, quality):
        if f.lists or m.word_count < LIST_MIN_WORDS:
            return None
        longest = max(f.paragraphs, key=word_count, default="")
        return Suggestion(
            type="list",
            priority="medium",
            description="Turn steps, options or key points into a bulleted or numbered list.",
            impact="Lists are among the structures answer engines copy most often.",
            current_content=excerpt(longest, EXCERPT_CHARS),
        )

    def _missing_subheadings(self, f, m, geo, quality):
        if f.subheadings or m.word_count < SUBHEADING_MIN_WORDS:
            return None
        proposed = [k.title() for k in m.keywords[:3]]
        return Suggestion(
            type="subheadings",
            priority="medium",
            description="Break the content into sections with H2 sub-headings.",
            impact="Sub-headings give retrievers clean passage boundaries."
            + _category_note(geo, "entity_topic_coverage", "Entity & Topic Coverage"),
            enhanced_content="\n".join(proposed),
        )

    def _missing_viewport(self, f, m, geo, quality):
        if "viewport" in f.meta_tags:
            return None
        return Suggestion(
            type="meta_viewport",
            priority="medium",
            description="Add a responsive viewport declaration.",
            impact="Pages without one are treated as not mobile-friendly.",
            exact_replacement=ExactReplacement(
                find="", replace='<meta name="viewport" content="width=device-width, initial-scale=1">'
            ),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # Low priority — cosmetic
    # ═══════════════════════════════════════════════════════════════════════

    def _missing_social_tags(self, f, m, geo, quality):
        tags = []
        if "og:title" not in f.meta_tags and m.title:
            tags.append(f'<meta property="og:title" content="{_attr(m.title)}">')
        if "og:description" not in f.meta_tags and m.description:
            tags.append(f'<meta property="og:description" content="{_attr(m.description)}">')
        if not tags:
            return None
        return Suggestion(
            type="og_tags",
            priority="low",
            description="Add Open Graph tags for link previews.",
            impact="Shared links and some AI surfaces read og:title/og:description.",
            enhanced_content="\n".join(tags),
            exact_replacement=ExactReplacement(find="", replace="\n".join(tags)),
        )

    def _keyword_gaps(self, f, m, geo, quality):
        if not m.keywords:
            return None
        if "keywords" not in f.meta_tags:
            content = ", ".join(m.keywords[:10])
            return Suggestion(
                type="keyword_optimization",
                priority="low",
                description="Declare the page's main topics in a keywords meta tag.",
                impact="Gives crawlers an explicit list of the topics the page covers.",
                enhanced_content=content,
                exact_replacement=ExactReplacement(find="", replace=f'<meta name="keywords" content="{_attr(content)}">'),
            )
        context = " ".join([m.title] + [h.text for h in f.headings]).lower()
        gaps = [k for k in m.keywords[:5] if k not in context]
        if not gaps:
            return None
        return Suggestion(
            type="keyword_optimization",
            priority="low",
            description="Work these topics into the title or a heading: " + ", ".join(gaps),
            impact="Headings that name the topic help retrieval match the page to queries.",
            enhanced_content=", ".join(gaps),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════

    def _rewrite(self, prompt: str, bounds: Tuple[int, int]) -> str:
        """Improved text from the generator, or "" when unavailable or invalid."""
        if self.text_generator is None:
            return ""
        try:
            raw = generate_with_timeout(self.text_generator, prompt, self.timeout)
            _, improved = parse_rewrite(raw, bounds)
            if contains_markup(improved):
                raise MalformedOutputError("rewrite contains markup")
            return normalize_ws(improved)
        except TextGenerationError as e:
            logger.warning("text generation fallback (%s): %s", type(e).__name__, e)
            return ""

    @staticmethod
    def _low_information_sentence(f: PageFeatures) -> Optional[str]:
        patterns = [p for p, _ in FILLER_REWRITES] + list(FILLER_PATTERNS)
        for paragraph in f.paragraphs:
            for sentence in sentences(paragraph):
                if word_count(sentence) < 4:
                    continue
                if any(re.search(p, sentence, re.IGNORECASE) for p in patterns):
                    return sentence
        return None

    @staticmethod
    def strip_filler(sentence: str) -> str:
        out = sentence
        for pattern, repl in FILLER_REWRITES:
            out = re.sub(pattern, repl, out, flags=re.IGNORECASE)
        out = re.sub(r"\s{2,}", " ", out).strip()
        if out and sentence[:1].isupper():
            out = out[0].upper() + out[1:]
        return out

    @staticmethod
    def _fallback_title(f: PageFeatures, m: Metadata) -> str:
        h1 = f.headings_at(1)
        if h1:
            return h1[0].text
        if f.headings:
            return f.headings[0].text
        if f.paragraphs:
            lead = sentences(f.paragraphs[0])
            return excerpt(lead[0] if lead else f.paragraphs[0], TITLE_LENGTH_BAND[1])
        if m.keywords:
            return m.keywords[0].title()
        return ""
