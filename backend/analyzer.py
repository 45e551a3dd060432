"""Analysis pipeline: scrape page -> score categories -> recommend -> optional AI critique."""

import logging
from datetime import datetime, timezone
from typing import Callable

from models import CritiqueContent, CritiqueResult
from recommendations import recommend
from scoring import aggregate, score_all
from scraper import ScrapedPage, scrape_page

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str], ScrapedPage]
Critic = Callable[[str, CritiqueContent], CritiqueResult]


def analyze_website(
    url: str,
    fetcher: PageFetcher = scrape_page,
    critic: Critic | None = None,
    recommendation_limit: int | None = None,
) -> dict:
    """
    Run a full analysis of `url` and return a JSON-ready result.

    `fetcher` raises scraper.ScrapeError when the page is unreachable; that
    error propagates to the caller. `critic` is only called when provided.
    """
    page = fetcher(url)
    signals = page.signals

    scores = score_all(signals)
    overall_score = aggregate(scores, load_time_ms=signals.load_time_ms)
    recommendations = recommend(signals, scores, limit=recommendation_limit)

    ai_analysis = None
    if critic is not None:
        ai_analysis = critic(page.url, page.critique_content)

    logger.info("Analyzed %s: overall=%s recommendations=%s", page.url, overall_score, len(recommendations))

    return {
        "success": True,
        "url": page.url,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "overall_score": overall_score,
        "scores": dict(scores),
        "signals": signals.to_dict(),
        "recommendations": recommendations,
        "ai_analysis": ai_analysis,
    }
