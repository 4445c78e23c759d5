"""
LLM Understandability Scorer — a quick 0–100 read on how easily a language
model can parse a page: headings, description, schema, sentence length,
lists, alt text, social/canonical/lang tags and content density.
"""
import logging
import re

from bs4 import BeautifulSoup

from core.models import UnderstandabilityScore
from modules.visibility_scoring.extractor import PARSER

logger = logging.getLogger(__name__)

_USEFUL_SCHEMA_RE = re.compile(r'"@type"\s*:\s*"(?:Article|FAQPage)"', re.IGNORECASE)


class UnderstandabilityScorer:

    def score(self, markup: str) -> UnderstandabilityScore:
        try:
            return self._score(markup or "")
        except Exception as e:
            logger.warning("understandability scoring failed: %s", e)
            return UnderstandabilityScore(score=50, breakdown={"error": 1})

    def _score(self, markup: str) -> UnderstandabilityScore:
        soup = BeautifulSoup(markup, PARSER)
        bd = {}

        h1, h2, h3 = (len(soup.find_all(t)) for t in ("h1", "h2", "h3"))
        bd["headings"] = (10 if h1 == 1 else 0) + (6 if h2 >= 2 else 0) + (4 if h3 >= 2 else 0)

        desc = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
        n = len((desc.get("content") or "") if desc else "")
        bd["meta_description"] = 10 if 50 <= n <= 160 else (6 if n else 0)

        scripts = soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)})
        if scripts:
            bd["schema"] = 15 if any(_USEFUL_SCHEMA_RE.search(s.get_text()) for s in scripts) else 8
        else:
            bd["schema"] = 0

        # body text, scripts included, as a browser's textContent reports it
        body = soup.body or soup
        text = re.sub(r"\s+", " ", body.get_text(" ")).strip()
        sents = [s for s in re.split(r"[.!?]+\s", text) if s.strip()]
        avg = len(text.split()) / len(sents) if sents else 0
        if 8 < avg < 25:
            bd["readability"] = 20
        elif 6 < avg < 30:
            bd["readability"] = 14
        elif 4 < avg < 35:
            bd["readability"] = 10
        else:
            bd["readability"] = 0

        bd["lists"] = 5 if soup.find(["ul", "ol", "dl"]) else 0

        imgs = soup.find_all("img")
        if imgs:
            ratio = sum(1 for i in imgs if (i.get("alt") or "").strip()) / len(imgs)
            bd["alt_text"] = 10 if ratio >= 0.9 else (6 if ratio >= 0.6 else (3 if ratio > 0 else 0))
        else:
            bd["alt_text"] = 5

        html = soup.find("html")
        misc = 0
        if soup.find("meta", attrs={"property": "og:title"}):
            misc += 3
        if soup.find("meta", attrs={"property": "og:description"}):
            misc += 3
        if soup.find("link", rel="canonical"):
            misc += 2
        if html is not None and html.get("lang"):
            misc += 2
        bd["metadata"] = misc

        long_paragraphs = [p for p in soup.find_all("p") if len(p.get_text().strip()) > 60]
        density = 5 if len(text) > 2000 else (3 if len(text) > 800 else 0)
        density += 5 if len(long_paragraphs) >= 5 else (3 if len(long_paragraphs) >= 3 else 0)
        bd["content_density"] = density

        return UnderstandabilityScore(score=max(0, min(100, round(sum(bd.values())))), breakdown=bd)
