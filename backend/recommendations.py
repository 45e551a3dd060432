"""Rule-based recommendation engine.

Only a subset of the scored conditions produce a recommendation. Results are
ordered by priority; ties keep the order in which rules were evaluated.
"""

from models import CategoryScores, Recommendation, SignalSet

PRIORITY_ORDER = {"Critical": 1, "High": 2, "Medium": 3, "Low": 4}
SLOW_LOAD_THRESHOLD_MS = 3000


def _title_rule(signals: SignalSet) -> Recommendation | None:
    if signals.title_optimal:
        return None
    return {
        "category": "SEO",
        "priority": "High",
        "issue": "Page title is not optimal length",
        "recommendation": (
            "Adjust your page title to be between 30-60 characters. "
            f"Current: {signals.title_length} characters."
        ),
        "impact": "High",
        "effort": "Low",
    }


def _meta_description_rule(signals: SignalSet) -> Recommendation | None:
    if signals.meta_description_optimal:
        return None
    return {
        "category": "SEO",
        "priority": "High",
        "issue": "Meta description is not optimal length",
        "recommendation": (
            "Write a meta description between 120-160 characters. "
            f"Current: {signals.meta_description_length} characters."
        ),
        "impact": "High",
        "effort": "Low",
    }


def _image_alt_rule(signals: SignalSet) -> Recommendation | None:
    if signals.images_without_alt <= 0:
        return None
    return {
        "category": "SEO",
        "priority": "Medium",
        "issue": f"{signals.images_without_alt} images missing alt text",
        "recommendation": "Add descriptive alt text to all images for better SEO and accessibility.",
        "impact": "Medium",
        "effort": "Low",
    }


def _load_time_rule(signals: SignalSet) -> Recommendation | None:
    if signals.load_time_ms <= SLOW_LOAD_THRESHOLD_MS:
        return None
    seconds = signals.load_time_ms / 1000
    return {
        "category": "Performance",
        "priority": "High",
        "issue": "Slow page load time",
        "recommendation": (
            f"Your page takes {seconds:.1f} seconds to load. "
            "Optimize images, minimize CSS/JS, and enable caching."
        ),
        "impact": "High",
        "effort": "Medium",
    }


def _viewport_rule(signals: SignalSet) -> Recommendation | None:
    if signals.has_viewport:
        return None
    return {
        "category": "Mobile",
        "priority": "Critical",
        "issue": "Missing viewport meta tag",
        "recommendation": "Add viewport meta tag to ensure proper mobile rendering.",
        "impact": "Critical",
        "effort": "Low",
    }


def _https_rule(signals: SignalSet) -> Recommendation | None:
    if signals.is_https:
        return None
    return {
        "category": "Security",
        "priority": "Critical",
        "issue": "Not using HTTPS",
        "recommendation": "Enable SSL/HTTPS to secure your website and improve SEO rankings.",
        "impact": "Critical",
        "effort": "Medium",
    }


# Evaluation order matters: it breaks ties between equal priorities.
RULES = (
    _title_rule,
    _meta_description_rule,
    _image_alt_rule,
    _load_time_rule,
    _viewport_rule,
    _https_rule,
)


def generate_recommendations(signals: SignalSet) -> list[Recommendation]:
    """Evaluate every rule in order and collect the findings (unsorted)."""
    out: list[Recommendation] = []
    for rule in RULES:
        finding = rule(signals)
        if finding is not None:
            out.append(finding)
    return out


def sort_recommendations(recommendations: list[Recommendation]) -> list[Recommendation]:
    return sorted(recommendations, key=lambda r: PRIORITY_ORDER.get(r["priority"], len(PRIORITY_ORDER) + 1))


def truncate_recommendations(recommendations: list[Recommendation], limit: int | None) -> list[Recommendation]:
    if limit is None:
        return list(recommendations)
    return list(recommendations[: max(0, int(limit))])


def recommend(
    signals: SignalSet,
    scores: CategoryScores | None = None,
    limit: int | None = None,
) -> list[Recommendation]:
    """
    Return prioritized recommendations for a page.

    The current rules read signals only; scores are accepted so callers can
    pass the full analysis context. Truncation to `limit` happens after sorting.
    """
    ordered = sort_recommendations(generate_recommendations(signals))
    return truncate_recommendations(ordered, limit)
