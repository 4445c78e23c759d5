"""
Markup Feature Extractor — turns raw page markup into a neutral feature bag.
Never raises: malformed or missing markup yields empty collections.
"""
import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, NavigableString, Tag

from core.models import (
    Heading,
    Image,
    Link,
    ListBlock,
    NumericClaim,
    PageFeatures,
    PageInput,
)
from modules.visibility_scoring.text_utils import canonical_host, contains_markup, normalize_ws

logger = logging.getLogger(__name__)


# ── best HTML parser available ──────────────────────────────────────────────
def _best_parser() -> str:
    for p in ("lxml", "html.parser", "html5lib"):
        try:
            BeautifulSoup("<p>ok</p>", p)
            return p
        except Exception:
            continue
    return "html.parser"

PARSER = _best_parser()

_INVISIBLE_TAGS = ("script", "style", "noscript", "template")
_BLOCK_TAGS = (
    "p", "div", "section", "article", "main", "header", "footer", "aside", "nav",
    "li", "ul", "ol", "dl", "dt", "dd", "table", "tr", "blockquote", "pre", "figure",
    "figcaption", "h1", "h2", "h3", "h4", "h5", "h6", "form", "fieldset", "address",
)
_HEADING_RE = re.compile(r"^h[1-6]$")
_LD_JSON_RE = re.compile(r"application/ld\+json", re.IGNORECASE)
_FEED_TYPES = ("application/rss+xml", "application/atom+xml", "application/feed+json")
_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:", "sms:")


def element_text(el: Tag) -> str:
    """Visible text of *el*; inline children join without a separator."""
    parts = []
    for node in el.descendants:
        if isinstance(node, Tag):
            if node.name in _BLOCK_TAGS or node.name == "br":
                parts.append(" ")
        elif type(node) is NavigableString and node.parent.name not in _INVISIBLE_TAGS:
            parts.append(str(node))
    return normalize_ws("".join(parts))


class FeatureExtractor:
    """Parses a page into :class:`PageFeatures`."""

    # ── public API ──────────────────────────────────────────────────────────

    def extract(self, page: PageInput) -> PageFeatures:
        markup = page.raw_markup or ""
        url = page.url or ""
        try:
            return self._extract(url, markup, page.plain_text or "")
        except Exception as e:
            logger.warning("extraction failed for %s: %s", url or "?", e)
            text = self._supplied_text(page.plain_text or "") or normalize_ws(re.sub(r"<[^>]*>", " ", markup))
            return PageFeatures(url=url, raw_markup=markup, plain_text=text, paragraphs=self.split_paragraphs([], text))

    @staticmethod
    def split_paragraphs(semantic: List[str], text: str) -> List[str]:
        """Paragraph cascade: semantic blocks → blank lines → newlines → whole text."""
        if semantic:
            return semantic
        blocks = [normalize_ws(b) for b in re.split(r"\n\s*\n", text or "") if b.strip()]
        if len(blocks) > 1:
            return blocks
        lines = [normalize_ws(l) for l in (text or "").split("\n") if l.strip()]
        if len(lines) > 1:
            return lines
        whole = normalize_ws(text)
        return [whole] if whole else []

    # ── internals ───────────────────────────────────────────────────────────

    def _extract(self, url: str, markup: str, supplied_text: str) -> PageFeatures:
        soup = BeautifulSoup(markup, PARSER)
        page_host = canonical_host(urlparse(url).hostname or "") if url else ""

        structured = self._structured_data(soup)
        meta_tags = self._meta_tags(soup)
        canonical, feeds = self._link_rels(soup, url)
        html = soup.find("html")
        lang = (html.get("lang") or "").strip() if html else ""
        title = normalize_ws(soup.title.get_text()) if soup.title else ""

        links = self._links(soup, url, page_host)
        claims = self._numeric_claims(soup, url, page_host)
        hints = self._discovery_hints(markup, soup, feeds, meta_tags)

        for tag in soup(list(_INVISIBLE_TAGS)):
            tag.decompose()

        headings = [
            Heading(level=int(h.name[1]), text=element_text(h))
            for h in soup.find_all(_HEADING_RE)
            if element_text(h)
        ]
        semantic = [element_text(p) for p in soup.find_all("p")]
        semantic = [p for p in semantic if p]
        lists = []
        for lst in soup.find_all(["ul", "ol"]):
            items = [element_text(li) for li in lst.find_all("li", recursive=False)]
            items = [i for i in items if i]
            if items:
                lists.append(ListBlock(type=lst.name, items=items))
        images = [
            Image(src=(img.get("src") or "").strip(), has_alt=bool((img.get("alt") or "").strip()))
            for img in soup.find_all("img")
        ]
        code_blocks = len(soup.find_all("pre")) + sum(1 for c in soup.find_all("code") if not c.find_parent("pre"))

        text = self._supplied_text(supplied_text) or self._visible_text(soup)

        return PageFeatures(
            url=url,
            raw_markup=markup,
            plain_text=text,
            headings=headings,
            paragraphs=self.split_paragraphs(semantic, text),
            lists=lists,
            links=links,
            images=images,
            structured_data_blocks=structured,
            meta_tags=meta_tags,
            title_tag=title,
            canonical_url=canonical,
            lang=lang,
            table_count=len(soup.find_all("table")),
            code_block_count=code_blocks,
            blockquotes=[q for q in (element_text(b) for b in soup.find_all("blockquote")) if q],
            numeric_claims=claims,
            discovery_hints=hints,
            microdata_count=len(soup.find_all(attrs={"itemscope": True})),
            rdfa_count=len(soup.find_all(attrs={"typeof": True})),
        )

    @staticmethod
    def _supplied_text(text: str) -> str:
        if not text or not text.strip():
            return ""
        if contains_markup(text):
            text = BeautifulSoup(text, PARSER).get_text("\n")
        return "\n".join(l.strip() for l in text.strip().splitlines()).strip()

    @staticmethod
    def _visible_text(soup: BeautifulSoup) -> str:
        if soup.head:
            soup.head.decompose()
        root = soup.body or soup
        for node in list(root.find_all(string=True)):
            if type(node) is NavigableString and not node.find_parent("pre"):
                node.replace_with(re.sub(r"\s+", " ", str(node)))
        for br in root.find_all("br"):
            br.replace_with("\n")
        for block in root.find_all(list(_BLOCK_TAGS)):
            block.insert_before("\n\n")
            block.insert_after("\n\n")
        text = root.get_text()
        lines = [l.strip() for l in text.split("\n")]
        text = "\n".join(lines)
        return re.sub(r"\n{3,}", "\n\n", text).strip()

    @staticmethod
    def _structured_data(soup: BeautifulSoup) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        for tag in soup.find_all("script", attrs={"type": _LD_JSON_RE}):
            raw = tag.string if tag.string is not None else tag.get_text()
            raw = (raw or "").strip()
            if raw.startswith("<!--"):
                raw = raw[4:].rsplit("-->", 1)[0]
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, TypeError) as e:
                logger.debug("skipping invalid JSON-LD block: %s", e)
                continue
            blocks.extend(_flatten_ld(data))
        return blocks

    @staticmethod
    def _meta_tags(soup: BeautifulSoup) -> Dict[str, str]:
        tags: Dict[str, str] = {}
        for m in soup.find_all("meta"):
            key = m.get("name") or m.get("property") or m.get("itemprop") or m.get("http-equiv")
            content = m.get("content")
            if key and content is not None:
                tags.setdefault(key.strip().lower(), content.strip())
        return tags

    @staticmethod
    def _link_rels(soup: BeautifulSoup, url: str):
        canonical, feeds = "", []
        for link in soup.find_all("link"):
            rels = link.get("rel") or []
            if isinstance(rels, str):
                rels = rels.split()
            rels = [r.lower() for r in rels]
            href = (link.get("href") or "").strip()
            if "canonical" in rels and href and not canonical:
                canonical = urljoin(url, href) if url else href
            if (link.get("type") or "").lower() in _FEED_TYPES and href:
                feeds.append(href)
        return canonical, feeds

    @staticmethod
    def _resolve(url: str, href: str, page_host: str) -> Optional[Link]:
        href = (href or "").strip()
        if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
            return None
        try:
            absolute = urljoin(url, href) if url else href
            parsed = urlparse(absolute)
            host = parsed.hostname
        except ValueError:
            return None
        if parsed.scheme not in ("http", "https") or not host:
            return None
        return Link(href=absolute, is_external=canonical_host(host) != page_host)

    def _links(self, soup: BeautifulSoup, url: str, page_host: str) -> List[Link]:
        links = []
        for a in soup.find_all("a", href=True):
            link = self._resolve(url, a["href"], page_host)
            if link:
                links.append(link)
        return links

    def _numeric_claims(self, soup: BeautifulSoup, url: str, page_host: str) -> List[NumericClaim]:
        claims = []
        counted = set()
        for el in soup.find_all(["p", "li"]):
            # a <p> inside a counted <li> belongs to that claim
            if any(id(parent) in counted for parent in el.parents):
                continue
            text = element_text(el)
            if not re.search(r"\d", text):
                continue
            counted.add(id(el))
            supported = False
            for a in el.find_all("a", href=True):
                link = self._resolve(url, a["href"], page_host)
                if link and link.is_external:
                    supported = True
                    break
            claims.append(NumericClaim(text=text, has_supporting_link=supported))
        return claims

    @staticmethod
    def _discovery_hints(markup: str, soup: BeautifulSoup, feeds: List[str], meta_tags: Dict[str, str]) -> List[str]:
        low = markup.lower()
        hints = []
        hrefs = " ".join((t.get("href") or "").lower() for t in soup.find_all(["a", "link"]))
        if "sitemap" in hrefs or "sitemap.xml" in low:
            hints.append("sitemap")
        if "robots.txt" in low or "robots" in meta_tags:
            hints.append("robots")
        if feeds or "/feed" in hrefs or ".rss" in hrefs:
            hints.append("feed")
        return hints


def _flatten_ld(data: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            yield from _flatten_ld(item)
    elif isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _flatten_ld(graph)
        else:
            yield data
