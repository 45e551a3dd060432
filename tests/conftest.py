"""Shared fixtures: temporary database, signal factory, fake page fetcher and API client."""

import pytest

import config
import database
from models import SignalSet
from scraper import ScrapedPage

GOOD_TITLE = "Acme Widgets - Durable widgets for every workshop"
GOOD_META_DESCRIPTION = (
    "Acme builds durable, affordable widgets for professional workshops and hobbyists alike. "
    "Free shipping on every order over fifty dollars."
)
ALL_HEADERS = (
    "strict-transport-security",
    "x-frame-options",
    "x-content-type-options",
    "x-xss-protection",
    "content-security-policy",
)


def build_signals(**overrides) -> SignalSet:
    """A page that violates no rule unless overridden."""
    values = {
        "title": GOOD_TITLE,
        "meta_description": GOOD_META_DESCRIPTION,
        "h1_count": 1,
        "h2_count": 3,
        "total_images": 4,
        "images_without_alt": 0,
        "has_structured_data": True,
        "load_time_ms": 0,
        "dom_content_loaded_ms": 0,
        "has_viewport": True,
        "has_horizontal_scroll": False,
        "average_text_size": 16.0,
        "touch_targets_total": 10,
        "touch_targets_inadequate": 0,
        "is_https": True,
        "security_headers": ALL_HEADERS,
        "word_count": 800,
        "has_email": True,
        "has_phone": True,
        "social_links": 3,
        "cta_buttons": 2,
        "broken_links": 0,
        "forms": 1,
        "has_sitemap": True,
        "has_robots": True,
        "page_size_bytes": 250_000,
    }
    values.update(overrides)
    return SignalSet(**values)


@pytest.fixture
def make_signals():
    return build_signals


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "test.db"
    monkeypatch.setattr(config, "DATABASE_PATH", path)
    database.init_db()
    return path


@pytest.fixture
def fake_fetcher():
    """Returns a factory producing page fetchers that serve the given signals."""

    def factory(signals: SignalSet | None = None):
        calls: list[str] = []

        def fetch(url: str) -> ScrapedPage:
            calls.append(url)
            normalized = url if url.startswith(("http://", "https://")) else f"https://{url}"
            return ScrapedPage(
                url=normalized,
                signals=signals or build_signals(),
                critique_content={
                    "headline": "Acme",
                    "subheadline": "Widgets",
                    "cta_texts": ["Buy now"],
                    "body_text": "Durable widgets.",
                    "has_testimonials": False,
                    "has_trust_badges": False,
                    "has_video": False,
                },
            )

        fetch.calls = calls
        return fetch

    return factory


@pytest.fixture
def client(db_path, monkeypatch, fake_fetcher):
    from fastapi.testclient import TestClient

    import main
    import scraper

    monkeypatch.setattr(config, "ENABLE_CREDIT_RESET", False)
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "")
    monkeypatch.setattr(scraper, "scrape_page", fake_fetcher(build_signals(has_viewport=False, is_https=False)))
    main.limiter.reset()

    with TestClient(main.app) as test_client:
        yield test_client
