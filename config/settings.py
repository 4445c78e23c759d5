"""
Centralized configuration for geo-visibility-suite.
Scoring weights and ceilings, heuristic thresholds, and the read-only lookup
tables shared by every stage of the pipeline.
"""

# ─── GEO Scoring (ceiling, weight) ───────────────────────────────────────────

GEO_CATEGORIES = {
    "evidence_attribution": (30.0, 0.30),
    "answerability_snippetability": (25.0, 0.25),
    "structured_understanding": (20.0, 0.20),
    "freshness_stability": (10.0, 0.10),
    "entity_topic_coverage": (10.0, 0.10),
    "retrieval_copyability": (5.0, 0.05),
}

# ─── Content Quality Scoring (ceiling, weight) ──────────────────────────────

QUALITY_CATEGORIES = {
    "readability_clarity": (20.0, 0.20),
    "structure_coherence": (15.0, 0.15),
    "depth_coverage": (20.0, 0.20),
    "originality": (15.0, 0.15),
    "accuracy_source_use": (10.0, 0.10),
    "style_tone": (10.0, 0.10),
    "accessibility_presentation": (10.0, 0.10),
}

# ─── GEO thresholds ─────────────────────────────────────────────────────────

CITATION_DENSITY_TARGET = 5.0          # external links per 1,000 words
CITATION_DENSITY_PENALTY_AT = 25.0
CITATION_DENSITY_PENALTY_STEP = 0.5
CITATION_COVERAGE_TARGET = 0.2         # external links per sentence
SNIPPET_MIN_WORDS = 10
SNIPPET_MAX_WORDS = 90
FAQ_SATURATION = 8
FRESH_FULL_DAYS = 30
FRESH_ZERO_DAYS = 365
ENTITY_POINTS_EACH = 0.6
RETRIEVAL_MIN_WORDS = 300
STRUCTURE_BASICS_TIER = 10.0
SUMMARY_WINDOW_CHARS = 400

SUMMARY_CUES = (
    "tl;dr", "tldr", "summary", "in summary", "in short", "key takeaways",
    "key takeaway", "at a glance", "bottom line", "quick answer", "overview",
)

ARTICLE_TYPES = {"article", "blogposting", "newsarticle", "techarticle", "report", "webpage"}
ARTICLE_FIELDS = ("headline", "author", "datePublished", "dateModified", "image", "publisher", "description")
ARTICLE_REQUIRED_FIELDS = ("@context", "@type", "headline", "description", "author", "datePublished")

# ─── Host reputation ────────────────────────────────────────────────────────

STANDARDS_HOSTS = {
    "w3.org", "ietf.org", "iso.org", "nist.gov", "who.int", "ieee.org",
    "un.org", "oecd.org", "europa.eu", "rfc-editor.org", "schema.org",
}
ENCYCLOPEDIC_HOSTS = {"wikipedia.org", "britannica.com", "wikidata.org", "nature.com", "sciencedirect.com"}
USER_GENERATED_HOSTS = {
    "blogspot.com", "medium.com", "reddit.com", "quora.com", "tumblr.com",
    "wordpress.com", "pinterest.com", "facebook.com",
}
HOST_REPUTATION = {
    "standards": 1.0,
    "gov_edu": 1.0,
    "encyclopedic": 0.8,
    "org": 0.7,
    "default": 0.5,
    "user_generated": 0.3,
}

# ─── Quality thresholds ─────────────────────────────────────────────────────

SENTENCE_BAND_IDEAL = (12, 22)
SENTENCE_BAND_OK = (8, 28)
PASSIVE_RATIO_LIMIT = 0.3
PARAGRAPH_BAND = (60, 160)
PARAGRAPH_BAND_PARTIAL = (30, 220)
LONG_WORD_CHARS = 13
LONG_WORD_RATIO_LIMIT = 0.15

TRANSITION_MARKERS = (
    "however", "therefore", "for example", "for instance", "in addition",
    "moreover", "furthermore", "as a result", "consequently", "first",
    "second", "finally", "in contrast", "meanwhile", "similarly",
    "on the other hand", "in conclusion", "because",
)

EXAMPLE_CUES = ("for example", "for instance", "e.g.", "such as", "case study", "example:")

JARGON_TERMS = {
    "synergy", "leverage", "paradigm", "holistic", "bandwidth", "disruptive",
    "ecosystem", "actionable", "scalable", "best-of-breed", "value-add",
    "low-hanging", "circle back", "deep dive", "move the needle",
}

# ─── Keyword derivation ─────────────────────────────────────────────────────

KEYWORD_BASE_WEIGHT = 1.0
KEYWORD_TITLE_BONUS = 2.0
KEYWORD_DOMAIN_BONUS = 3.0
KEYWORD_PHRASE_BONUS = 1.5
KEYWORD_LIMIT = 15
KEYWORD_DEDUP_THRESHOLD = 0.85
MIN_WORD_LENGTH = 2
WORDS_PER_MINUTE = 200
DESCRIPTION_MAX_CHARS = 160

DEFAULT_DOMAIN_TERMS = frozenset({
    "seo", "search", "search engine", "ai", "artificial intelligence",
    "machine learning", "content", "marketing", "analytics", "data",
    "cloud", "software", "saas", "api", "security", "privacy", "automation",
    "ecommerce", "e-commerce", "customer", "revenue", "growth", "strategy",
    "optimization", "visibility", "ranking", "schema", "structured data",
    "conversion", "brand", "platform", "integration", "performance",
    "generative", "llm", "chatbot", "workflow", "devops", "database",
    "startup", "product", "pricing", "b2b", "crm", "roi",
})

STOP_WORDS = frozenset({
    "a", "about", "above", "after", "again", "against", "all", "also", "am",
    "an", "and", "any", "are", "as", "at", "be", "because", "been", "before",
    "being", "below", "between", "both", "but", "by", "can", "could", "did",
    "do", "does", "doing", "down", "during", "each", "either", "even", "ever",
    "every", "few", "for", "from", "further", "get", "gets", "got", "had",
    "has", "have", "having", "he", "her", "here", "hers", "herself", "him",
    "himself", "his", "how", "however", "i", "if", "in", "into", "is", "it",
    "its", "itself", "just", "let", "like", "made", "make", "many", "may",
    "me", "might", "more", "most", "much", "must", "my", "myself", "need",
    "no", "nor", "not", "now", "of", "off", "often", "on", "once", "one",
    "only", "or", "other", "our", "ours", "ourselves", "out", "over", "own",
    "per", "rather", "really", "same", "she", "should", "so", "some", "such",
    "than", "that", "the", "their", "theirs", "them", "themselves", "then",
    "there", "these", "they", "this", "those", "through", "to", "too",
    "under", "until", "up", "upon", "us", "use", "used", "using", "very",
    "via", "was", "we", "well", "were", "what", "when", "where", "whether",
    "which", "while", "who", "whom", "whose", "why", "will", "with", "within",
    "without", "would", "yet", "you", "your", "yours", "yourself",
    "yourselves", "able", "across", "already", "always", "another", "around",
    "way", "ways", "thing", "things", "lot", "lots", "new", "good", "best",
    "first", "last", "next", "two", "three", "still", "since", "though",
    "although", "whereas", "etc", "ie", "eg", "read", "click", "here",
})

# ─── Suggestions ────────────────────────────────────────────────────────────

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

OVERLONG_PARAGRAPH_WORDS = 160
LIST_MIN_WORDS = 150
SUBHEADING_MIN_WORDS = 300
TITLE_LENGTH_BAND = (10, 60)
EXCERPT_CHARS = 200

FILLER_REWRITES = (
    (r"\bit is important to note that\s+", ""),
    (r"\bit should be noted that\s+", ""),
    (r"\bin order to\b", "to"),
    (r"\bdue to the fact that\b", "because"),
    (r"\bat this point in time\b", "now"),
    (r"\bbasically,?\s+", ""),
    (r"\bactually,?\s+", ""),
    (r"\breally\s+", ""),
    (r"\bvery\s+", ""),
    (r"\bjust\s+", ""),
)
FILLER_PATTERNS = (
    r"\bthings?\b", r"\bstuff\b", r"\bvarious\b", r"\bsomewhat\b",
    r"\bthere (?:are|is) many\b", r"\ba lot of\b", r"\bkind of\b", r"\bsort of\b",
)

# ─── Text generation ────────────────────────────────────────────────────────

GENERATION_TIMEOUT_SECONDS = 20.0
GENERATED_SENTENCE_BOUNDS = (10, 400)
GENERATED_PARAGRAPH_BOUNDS = (40, 1500)
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

# ─── Suggestion application ─────────────────────────────────────────────────

PARTIAL_MATCH_MIN_CHARS = 50
PARTIAL_MATCH_PREFIX_RATIO = 0.7
SIMILARITY_THRESHOLDS = {
    "sentence_replacement": 0.80,
    "paragraph": 0.85,
    "list": 0.85,
    "heading": 0.90,
    "title": 0.90,
}
DEFAULT_SIMILARITY_THRESHOLD = 0.85

METADATA_SUGGESTION_TYPES = frozenset({
    "title", "meta_description", "canonical", "og_tags", "meta_viewport",
    "schema", "keyword_optimization",
})

# ─── Neutral fallbacks (overridable through ScoringDefaults) ────────────────

NEUTRAL_ORIGINALITY_POINTS = 10.5
NEUTRAL_SUPPORTED_CLAIMS_POINTS = 3.5
NEUTRAL_FRESHNESS_POINTS = 5.0
NEUTRAL_AUDIENCE_POINTS = 1.5
NEUTRAL_ALT_COVERAGE_POINTS = 2.5
