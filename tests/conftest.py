"""Shared fixtures: sample pages, a fixed clock and a small FAQ block builder."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from core.models import PageInput
from modules.visibility_scoring.extractor import FeatureExtractor
from modules.visibility_scoring.metadata import MetadataDeriver

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

RICH_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <title>Structured Data Guide for Search Visibility</title>
  <meta name="description" content="How structured data and schema markup help search engines and AI assistants understand your content.">
  <meta property="og:title" content="Structured Data Guide">
  <meta property="og:description" content="Schema markup explained.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="author" content="Jane Smith">
  <meta property="article:published_time" content="2026-01-10T09:00:00Z">
  <meta property="article:modified_time" content="2026-09-20T09:00:00Z">
  <link rel="canonical" href="https://example.com/guide">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Article", "headline": "Structured Data Guide", "description": "Schema markup explained.", "author": {"@type": "Person", "name": "Jane Smith"}, "datePublished": "2026-01-10", "dateModified": "2026-09-20"}</script>
</head>
<body>
  <h1>Structured Data Guide</h1>
  <p>TL;DR: Structured data describes your page to Search Engines and AI Assistants in a machine-readable format.</p>
  <h2>Why Schema Markup Matters</h2>
  <p>According to <a href="https://www.w3.org/TR/json-ld11/">the W3C specification</a>, JSON-LD is the recommended format. In 2025, 45% of pages used it.</p>
  <ul><li>Article</li><li>FAQPage</li></ul>
  <h2>Common Mistakes</h2>
  <p>For example, missing dates reduce freshness signals. See <a href="https://en.wikipedia.org/wiki/Schema.org">Schema.org on Wikipedia</a>.</p>
  <img src="/diagram.png" alt="Schema diagram">
  <a href="/about">About us</a>
  <a href="mailto:hi@example.com">Mail</a>
  <a href="#top">Top</a>
  <script>var trackingSecret = "do-not-index";</script>
</body>
</html>
"""

# 50 words, no heading, no title, no description
SHORT_TEXT = "Solar panels convert sunlight into electricity for homes and offices. " * 5
BARE_HTML = f"<html><head></head><body><p>{SHORT_TEXT.strip()}</p></body></html>"

# 40-word lead paragraph
LEAD_PARAGRAPH = (
    "Heat pumps move warmth instead of burning fuel, so a well sized unit can heat "
    "a small home for a fraction of the cost of gas. This guide explains sizing, "
    "installation, running costs and the grants that help pay for them."
)


def faq_block(n: int) -> str:
    data = {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": f"Question number {i}?",
                "acceptedAnswer": {"@type": "Answer", "text": f"Answer number {i}."},
            }
            for i in range(1, n + 1)
        ],
    }
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def lead_page(with_faq: int = 0) -> str:
    head = faq_block(with_faq) if with_faq else ""
    return f"<html><head>{head}</head><body><p>{LEAD_PARAGRAPH}</p></body></html>"


def extract(markup: str, url: str = "https://www.example.com/guide", text: str = ""):
    return FeatureExtractor().extract(PageInput(url=url, raw_markup=markup, plain_text=text))


def derive(features, now=NOW):
    return MetadataDeriver().derive(features, now=now)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def rich_features():
    return extract(RICH_HTML)


@pytest.fixture
def bare_features():
    return extract(BARE_HTML, url="https://example.com/solar")
