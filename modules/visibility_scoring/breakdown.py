"""
Normalize-then-weight combination shared by the GEO and quality engines.
"""
from typing import Dict, Tuple

from core.models import CategoryScore, ScoreBreakdown


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def build_category(name: str, sub_metrics: Dict[str, float], table: Dict[str, Tuple[float, float]]) -> CategoryScore:
    ceiling, weight = table[name]
    subs = {k: round(max(0.0, v), 2) for k, v in sub_metrics.items()}
    return CategoryScore(
        name=name,
        score=round(clamp(sum(subs.values()), 0.0, ceiling), 2),
        ceiling=ceiling,
        weight=weight,
        sub_metrics=subs,
    )


def combine(categories) -> ScoreBreakdown:
    """total = round(clamp(Σ score/ceiling · weight · 100, 0, 100), 1)"""
    cats = list(categories)
    raw = sum((c.score / c.ceiling if c.ceiling else 0.0) * c.weight for c in cats) * 100
    return ScoreBreakdown(categories=cats, total_score=round(clamp(raw, 0.0, 100.0), 1))
