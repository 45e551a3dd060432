"""Heuristic category scorers and the weighted overall score.

Every scorer starts at 100, subtracts a fixed penalty for each violated rule
and clamps the result at 0. All functions are pure.
"""

import math
from typing import Callable

from models import CategoryScores, SignalSet

CATEGORIES = ("seo", "performance", "mobile", "security", "content", "technical")

WEIGHTS = {
    "seo": 0.25,
    "performance": 0.20,
    "mobile": 0.20,
    "security": 0.15,
    "content": 0.10,
    "technical": 0.10,
}

MIN_WORD_COUNT = 300
MIN_TEXT_SIZE_PX = 14
MAX_PAGE_SIZE_MB = 3


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def score_seo(signals: SignalSet) -> int:
    score = 100
    if not signals.title_optimal:
        score -= 15
    if not signals.meta_description_optimal:
        score -= 15
    if not signals.has_h1:
        score -= 20
    if signals.multiple_h1:
        score -= 10
    if signals.images_without_alt > 0:
        score -= min(20, signals.images_without_alt * 2)
    if not signals.has_structured_data:
        score -= 10
    return max(0, score)


def performance_score(load_time_ms: float) -> float:
    """Every 100ms of load time costs one point, floored at 0."""
    return max(0.0, 100 - load_time_ms / 100)


def score_performance(signals: SignalSet) -> int:
    return round_half_up(performance_score(signals.load_time_ms))


def score_mobile(signals: SignalSet) -> int:
    score = 100
    if not signals.has_viewport:
        score -= 25
    if signals.has_horizontal_scroll:
        score -= 20
    if signals.average_text_size < MIN_TEXT_SIZE_PX:
        score -= 15
    if signals.touch_targets_inadequate > 0:
        score -= min(25, signals.touch_targets_inadequate)
    return max(0, score)


def score_security(signals: SignalSet) -> int:
    score = 100
    if not signals.is_https:
        score -= 40
    score -= (5 - signals.security_headers_present) * 12
    return max(0, score)


def score_content(signals: SignalSet) -> int:
    score = 100
    if signals.word_count < MIN_WORD_COUNT:
        score -= 20
    if not signals.has_email and not signals.has_phone:
        score -= 15
    if signals.social_links == 0:
        score -= 10
    if signals.cta_buttons == 0:
        score -= 15
    return max(0, score)


def score_technical(signals: SignalSet) -> int:
    score = 100
    if signals.broken_links > 0:
        score -= min(20, signals.broken_links * 5)
    if not signals.has_sitemap:
        score -= 15
    if not signals.has_robots:
        score -= 10
    if signals.page_size_mb > MAX_PAGE_SIZE_MB:
        score -= 15
    return max(0, score)


SCORERS: dict[str, Callable[[SignalSet], int]] = {
    "seo": score_seo,
    "performance": score_performance,
    "mobile": score_mobile,
    "security": score_security,
    "content": score_content,
    "technical": score_technical,
}


def score_category(category: str, signals: SignalSet) -> int:
    """Score a single category by name. Raises ValueError for unknown names."""
    scorer = SCORERS.get(str(category or "").strip().lower())
    if scorer is None:
        raise ValueError(f"Unknown category: {category!r}")
    return scorer(signals)


def score_all(signals: SignalSet) -> CategoryScores:
    return {name: SCORERS[name](signals) for name in CATEGORIES}  # type: ignore[return-value]


def aggregate(scores: CategoryScores | dict, load_time_ms: float | None = None) -> int:
    """
    Weighted overall score in [0, 100].

    When load_time_ms is given the performance component is derived from it
    exactly instead of taken from scores["performance"].
    """
    weighted = 0.0
    for name, weight in WEIGHTS.items():
        if name == "performance" and load_time_ms is not None:
            component = performance_score(load_time_ms)
        else:
            component = float(scores.get(name, 0) or 0)
        weighted += component * weight
    return min(100, max(0, round_half_up(weighted)))
