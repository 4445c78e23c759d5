"""Tests for the suggestion generator.

Detectors are exercised through the public ``generate`` call; text generation
is replaced by small fake generators so the generated, timeout and malformed
paths can be driven deterministically.
"""

from __future__ import annotations

import json
import re
import time

from config.settings import PRIORITY_ORDER
from core.models import Metadata, PageFeatures
from modules.visibility_scoring.applier import apply_suggestions
from modules.visibility_scoring.suggestions import SuggestionGenerator

from conftest import BARE_HTML, RICH_HTML, derive, extract

FILLER_SENTENCE = "It is important to note that the cache is very fast for reads."
LONG_PARAGRAPH = " ".join(f"token{i}" for i in range(170)) + "."


class RewriteGenerator:
    """Echoes the quoted text back with a fixed improvement."""

    def __init__(self, improved: str):
        self.improved = improved
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        original = re.search(r'"""(.*?)"""', prompt, re.DOTALL).group(1)
        return json.dumps({"original": original, "improved": self.improved})


class SlowGenerator:
    def generate(self, prompt: str) -> str:
        time.sleep(0.5)
        return "{}"


class GarbageGenerator:
    def generate(self, prompt: str) -> str:
        return "I cannot help with that."


def suggest(markup: str, url: str = "https://example.com/page", generator=None, timeout: float = 2.0):
    f = extract(markup, url=url)
    return SuggestionGenerator(text_generator=generator, timeout=timeout).generate(f, derive(f))


def by_type(suggestions, kind):
    return [s for s in suggestions if s.type == kind]


class TestScenarioBarePage:
    def test_high_priority_blockers(self) -> None:
        suggestions = suggest(BARE_HTML)
        high = {s.type for s in suggestions if s.priority == "high"}
        assert {"heading", "meta_description", "title", "schema"} <= high

    def test_ordered_by_priority(self) -> None:
        ranks = [PRIORITY_ORDER[s.priority] for s in suggest(BARE_HTML)]
        assert ranks == sorted(ranks)

    def test_catalogue_order_within_priority(self) -> None:
        high = [s.type for s in suggest(BARE_HTML) if s.priority == "high"]
        assert high == ["heading", "title", "meta_description", "canonical", "schema"]

    def test_heading_is_advisory(self) -> None:
        (heading,) = by_type(suggest(BARE_HTML), "heading")
        assert heading.exact_replacement.find == ""
        assert heading.enhanced_content

    def test_insertions_are_head_elements(self) -> None:
        suggestions = suggest(BARE_HTML)
        assert by_type(suggestions, "title")[0].exact_replacement.replace.startswith("<title>")
        desc = by_type(suggestions, "meta_description")[0].exact_replacement.replace
        assert desc.startswith('<meta name="description" content="Solar panels')
        canonical = by_type(suggestions, "canonical")[0].exact_replacement.replace
        assert canonical == '<link rel="canonical" href="https://example.com/page">'

    def test_schema_block_is_valid_json_ld(self) -> None:
        schema = by_type(suggest(BARE_HTML), "schema")[0]
        body = re.search(r"<script[^>]*>(.*)</script>", schema.exact_replacement.replace, re.DOTALL).group(1)
        data = json.loads(body)
        assert data["@context"] == "https://schema.org"
        assert data["@type"] == "Article"
        assert data["headline"]
        assert "datePublished" not in data


class TestRichPage:
    def test_no_blockers_on_complete_page(self) -> None:
        kinds = {s.type for s in suggest(RICH_HTML)}
        assert not kinds & {"heading", "title", "meta_description", "canonical", "schema", "meta_viewport", "og_tags"}

    def test_keyword_meta_inserted_when_absent(self) -> None:
        kw = by_type(suggest(RICH_HTML), "keyword_optimization")
        assert len(kw) == 1
        assert kw[0].exact_replacement.replace.startswith('<meta name="keywords"')

    def test_blog_urls_get_blog_posting(self) -> None:
        f = extract(BARE_HTML, url="https://example.com/blog/solar")
        block = SuggestionGenerator.article_schema(f, derive(f))
        assert block["@type"] == "BlogPosting"
        assert block["url"] == "https://example.com/blog/solar"


class TestTitle:
    def test_short_title_extended(self) -> None:
        markup = "<html><head><title>Hi</title></head><body><h1>Solar Panel Buying Guide</h1></body></html>"
        (title,) = by_type(suggest(markup), "title")
        assert title.exact_replacement.find == "<title>Hi</title>"
        assert title.exact_replacement.replace == "<title>Hi | Solar Panel Buying Guide</title>"

    def test_long_title_trimmed(self) -> None:
        long_title = "A very long title " * 6
        markup = f"<html><head><title>{long_title}</title></head><body><p>x</p></body></html>"
        (title,) = by_type(suggest(markup), "title")
        new = re.search(r"<title>(.*)</title>", title.exact_replacement.replace).group(1)
        assert len(new) <= 60

    def test_relative_url_gets_no_canonical(self) -> None:
        assert not by_type(suggest(BARE_HTML, url="/relative/path"), "canonical")
        assert not by_type(suggest(BARE_HTML, url=""), "canonical")


class TestEmptyHeadElements:
    MARKUP = (
        '<html><head><meta name="description" content=""><title></title></head>'
        "<body><h1>Solar Panel Guide</h1><p>Solar panels convert sunlight into electricity for homes and offices.</p></body></html>"
    )

    def test_empty_elements_are_replaced_in_place(self) -> None:
        suggestions = suggest(self.MARKUP)
        assert by_type(suggestions, "title")[0].exact_replacement.find == "<title></title>"
        assert by_type(suggestions, "meta_description")[0].exact_replacement.find == '<meta name="description" content="">'

    def test_apply_leaves_one_of_each(self) -> None:
        out = apply_suggestions(self.MARKUP, suggest(self.MARKUP)).final_markup
        assert out.count('name="description"') == 1
        assert out.count("<title") == 1
        assert "<title>Solar Panel Guide</title>" in out
        assert '<meta name="description" content="Solar panels convert' in out


class TestArticleSchema:
    @staticmethod
    def page(ld: dict) -> str:
        return (
            '<html><head><meta name="author" content="Jane Smith">'
            '<meta name="description" content="Solar basics for homeowners.">'
            f'<script type="application/ld+json">{json.dumps(ld)}</script></head>'
            "<body><h1>Solar Guide</h1><p>Solar panels convert sunlight into electricity.</p></body></html>"
        )

    def test_unrelated_schema_still_gets_article(self) -> None:
        markup = self.page({"@context": "https://schema.org", "@type": "BreadcrumbList", "itemListElement": []})
        (schema,) = by_type(suggest(markup), "schema")
        assert schema.exact_replacement.find == ""
        assert '"@type": "Article"' in schema.exact_replacement.replace

    def test_incomplete_article_is_completed_in_place(self) -> None:
        ld = {"@context": "https://schema.org", "@type": "Article", "headline": "Solar Guide"}
        markup = self.page(ld)
        (schema,) = by_type(suggest(markup), "schema")
        assert schema.exact_replacement.find == f'<script type="application/ld+json">{json.dumps(ld)}</script>'
        assert schema.current_content == "description, author"

        out = apply_suggestions(markup, [schema]).final_markup
        assert out.count("application/ld+json") == 1
        body = re.search(r"<script[^>]*>(.*)</script>", out, re.DOTALL).group(1)
        data = json.loads(body)
        assert data["headline"] == "Solar Guide"
        assert data["description"] == "Solar basics for homeowners."
        assert data["author"] == {"@type": "Person", "name": "Jane Smith"}

    def test_complete_article_needs_nothing(self) -> None:
        ld = {
            "@context": "https://schema.org",
            "@type": "Article",
            "headline": "Solar Guide",
            "description": "Solar basics.",
            "author": "Jane Smith",
        }
        assert not by_type(suggest(self.page(ld)), "schema")


class TestTextRewrites:
    def test_sentence_heuristic(self) -> None:
        markup = f"<html><head></head><body><p>{FILLER_SENTENCE}</p></body></html>"
        (s,) = by_type(suggest(markup), "sentence_replacement")
        assert s.exact_replacement.find == FILLER_SENTENCE
        assert s.exact_replacement.replace == "The cache is fast for reads."
        assert s.source == "heuristic"

    def test_sentence_generated(self) -> None:
        markup = f"<p>{FILLER_SENTENCE}</p>"
        gen = RewriteGenerator("The cache serves reads in under two milliseconds.")
        (s,) = by_type(suggest(markup, generator=gen), "sentence_replacement")
        assert s.source == "generated"
        assert s.exact_replacement.replace == "The cache serves reads in under two milliseconds."
        assert gen.calls == 1

    def test_timeout_falls_back_to_heuristic(self) -> None:
        (s,) = by_type(suggest(f"<p>{FILLER_SENTENCE}</p>", generator=SlowGenerator(), timeout=0.05), "sentence_replacement")
        assert s.source == "heuristic"

    def test_malformed_output_falls_back(self) -> None:
        (s,) = by_type(suggest(f"<p>{FILLER_SENTENCE}</p>", generator=GarbageGenerator()), "sentence_replacement")
        assert s.source == "heuristic"

    def test_markup_in_rewrite_is_rejected(self) -> None:
        gen = RewriteGenerator("The cache is <b>fast</b> for reads.")
        (s,) = by_type(suggest(f"<p>{FILLER_SENTENCE}</p>", generator=gen), "sentence_replacement")
        assert s.source == "heuristic"

    def test_overlong_paragraph_advisory_without_generator(self) -> None:
        (p,) = by_type(suggest(f"<p>{LONG_PARAGRAPH}</p>"), "paragraph")
        assert p.exact_replacement.find == ""
        assert "170-word" in p.description

    def test_overlong_paragraph_generated(self) -> None:
        improved = "A shorter paragraph that keeps the facts and reads well in answers."
        (p,) = by_type(suggest(f"<p>{LONG_PARAGRAPH}</p>", generator=RewriteGenerator(improved)), "paragraph")
        assert p.source == "generated"
        assert p.exact_replacement.find == LONG_PARAGRAPH
        assert p.exact_replacement.replace == improved

    def test_strip_filler(self) -> None:
        assert SuggestionGenerator.strip_filler("We did this in order to save time.") == "We did this to save time."


class TestStructureAdvisories:
    def test_list_and_subheadings(self) -> None:
        text = " ".join(["Rain barrels collect water from the roof for later garden use."] * 30)
        suggestions = suggest(f"<p>{text}</p>")
        assert by_type(suggestions, "list")
        assert by_type(suggestions, "subheadings")

    def test_short_pages_skip_structure_advisories(self) -> None:
        suggestions = suggest(BARE_HTML)
        assert not by_type(suggestions, "list")
        assert not by_type(suggestions, "subheadings")


class TestIsolation:
    def test_failing_detector_does_not_abort_batch(self) -> None:
        gen = SuggestionGenerator()

        def boom(*args):
            raise RuntimeError("detector bug")

        gen.detectors[0] = ("heading", boom)
        f = extract(BARE_HTML, url="https://example.com/solar")
        kinds = [s.type for s in gen.generate(f, derive(f))]
        assert "heading" not in kinds
        assert "title" in kinds
        assert "schema" in kinds

    def test_empty_inputs(self) -> None:
        assert isinstance(SuggestionGenerator().generate(PageFeatures(), Metadata()), list)

    def test_deterministic(self) -> None:
        assert suggest(RICH_HTML) == suggest(RICH_HTML)
