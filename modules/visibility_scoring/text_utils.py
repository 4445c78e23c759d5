"""
Small text helpers shared by the extractor, deriver and scorers.
"""
import re
from typing import List

_WORD_RE = re.compile(r"[A-Za-z0-9À-ÿ]+(?:['’\-][A-Za-z0-9À-ÿ]+)*")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+(?=[\"'“‘(\[]?[A-Z0-9À-Þ])")
_TAG_RE = re.compile(r"<[A-Za-z/!?][^>]*>")
_WS_RE = re.compile(r"\s+")


def words(text: str) -> List[str]:
    return _WORD_RE.findall(text or "")


def word_count(text: str) -> int:
    return len(words(text))


def sentences(text: str) -> List[str]:
    """Split *text* into sentences; line breaks also end a sentence."""
    out: List[str] = []
    for block in re.split(r"\n+", text or ""):
        block = block.strip()
        if not block:
            continue
        out.extend(s.strip() for s in _SENTENCE_SPLIT_RE.split(block) if s.strip())
    return out


def normalize_ws(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def contains_markup(text: str) -> bool:
    return bool(_TAG_RE.search(text or ""))


def excerpt(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* chars on a word boundary."""
    text = normalize_ws(text)
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:-")


def canonical_host(host: str) -> str:
    h = (host or "").strip().lower().rstrip(".")
    return h[4:] if h.startswith("www.") else h
