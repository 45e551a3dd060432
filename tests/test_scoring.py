"""Tests for category scorers and the weighted overall score."""

import pytest

from models import SignalSet
from scoring import (
    CATEGORIES,
    aggregate,
    performance_score,
    round_half_up,
    score_all,
    score_category,
    score_content,
    score_mobile,
    score_performance,
    score_security,
    score_seo,
    score_technical,
)


class TestSeoScore:
    """Tests for the SEO scorer."""

    def test_clean_page_scores_100(self, make_signals):
        assert score_seo(make_signals()) == 100

    def test_missing_meta_description_only(self, make_signals):
        """Title 45 chars, no meta description, one H1, structured data -> 85."""
        signals = make_signals(title="x" * 45, meta_description="", images_without_alt=0)
        assert score_seo(signals) == 85

    def test_missing_h1(self, make_signals):
        assert score_seo(make_signals(h1_count=0)) == 80

    def test_multiple_h1(self, make_signals):
        assert score_seo(make_signals(h1_count=3)) == 90

    def test_missing_alt_penalty_scales_then_caps(self, make_signals):
        assert score_seo(make_signals(images_without_alt=3)) == 94
        assert score_seo(make_signals(images_without_alt=10)) == 80
        assert score_seo(make_signals(images_without_alt=50)) == 80

    def test_title_length_boundaries(self, make_signals):
        assert score_seo(make_signals(title="t" * 30)) == 100
        assert score_seo(make_signals(title="t" * 60)) == 100
        assert score_seo(make_signals(title="t" * 29)) == 85
        assert score_seo(make_signals(title="t" * 61)) == 85

    def test_title_length_counts_utf16_units(self, make_signals):
        # each emoji is two UTF-16 units
        assert make_signals(title="\U0001F600" * 15).title_length == 30
        assert score_seo(make_signals(title="t" * 55 + "\U0001F600" * 3)) == 85

    def test_all_seo_violations(self):
        signals = SignalSet(h1_count=0, images_without_alt=40, has_structured_data=False)
        # 100 - 15 - 15 - 20 - 20 - 10 = 20
        assert score_seo(signals) == 20


class TestPerformanceScore:
    """Tests for the load-time derived performance score."""

    def test_five_seconds_is_fifty(self):
        assert performance_score(5000) == 50

    def test_floors_at_zero(self):
        assert performance_score(15000) == 0

    def test_exact_derivation(self):
        assert performance_score(1234) == pytest.approx(87.66)

    def test_category_score_rounds_half_up(self, make_signals):
        assert score_performance(make_signals(load_time_ms=1234)) == 88
        assert score_performance(make_signals(load_time_ms=1250)) == 88


class TestMobileScore:
    """Tests for the mobile scorer."""

    def test_missing_viewport(self, make_signals):
        assert score_mobile(make_signals(has_viewport=False)) == 75

    def test_small_text(self, make_signals):
        assert score_mobile(make_signals(average_text_size=13.9)) == 85
        assert score_mobile(make_signals(average_text_size=14)) == 100

    def test_touch_target_penalty_caps_at_25(self, make_signals):
        assert score_mobile(make_signals(touch_targets_inadequate=7)) == 93
        assert score_mobile(make_signals(touch_targets_inadequate=80)) == 75

    def test_all_violations(self, make_signals):
        signals = make_signals(
            has_viewport=False,
            has_horizontal_scroll=True,
            average_text_size=10,
            touch_targets_inadequate=100,
        )
        assert score_mobile(signals) == 15


class TestSecurityScore:
    """Tests for the security scorer."""

    def test_no_https_no_headers_clamps_to_zero(self, make_signals):
        assert score_security(make_signals(is_https=False, security_headers=())) == 0

    def test_https_with_some_headers(self, make_signals):
        signals = make_signals(security_headers=("x-frame-options", "content-security-policy", "x-xss-protection"))
        assert score_security(signals) == 76

    def test_unknown_headers_are_ignored(self, make_signals):
        signals = make_signals(security_headers=("X-Frame-Options", "server", "x-powered-by"))
        assert signals.security_headers_present == 1
        assert score_security(signals) == 52


class TestContentScore:
    """Tests for the content scorer."""

    def test_thin_page(self, make_signals):
        signals = make_signals(word_count=120, has_email=False, has_phone=False, social_links=0, cta_buttons=0)
        assert score_content(signals) == 40

    def test_phone_alone_counts_as_contact(self, make_signals):
        assert score_content(make_signals(has_email=False, has_phone=True)) == 100

    def test_word_count_threshold(self, make_signals):
        assert score_content(make_signals(word_count=299)) == 80
        assert score_content(make_signals(word_count=300)) == 100


class TestTechnicalScore:
    """Tests for the technical scorer."""

    def test_broken_links_cap(self, make_signals):
        assert score_technical(make_signals(broken_links=2)) == 90
        assert score_technical(make_signals(broken_links=9)) == 80

    def test_missing_sitemap_and_robots(self, make_signals):
        assert score_technical(make_signals(has_sitemap=False, has_robots=False)) == 75

    def test_large_page(self, make_signals):
        assert score_technical(make_signals(page_size_bytes=4 * 1024 * 1024)) == 85
        assert score_technical(make_signals(page_size_bytes=3 * 1024 * 1024)) == 100


class TestScoreCategory:
    """Tests for the category dispatcher."""

    def test_dispatches_case_insensitively(self, make_signals):
        signals = make_signals(is_https=False)
        assert score_category("Security", signals) == score_security(signals)
        assert score_category("  seo ", signals) == score_seo(signals)

    def test_unknown_category(self, make_signals):
        with pytest.raises(ValueError):
            score_category("accessibility", make_signals())

    def test_scores_stay_in_bounds(self, make_signals):
        extremes = [
            SignalSet(),
            make_signals(),
            SignalSet(
                h1_count=9,
                images_without_alt=999,
                load_time_ms=10**7,
                has_horizontal_scroll=True,
                average_text_size=1,
                touch_targets_inadequate=999,
                broken_links=999,
                page_size_bytes=10**9,
            ),
        ]
        for signals in extremes:
            for category in CATEGORIES:
                assert 0 <= score_category(category, signals) <= 100

    def test_adding_a_violation_never_raises_a_score(self, make_signals):
        base = make_signals()
        violations = [
            {"title": "short"},
            {"meta_description": ""},
            {"h1_count": 0},
            {"h1_count": 2},
            {"images_without_alt": 4},
            {"has_structured_data": False},
            {"has_viewport": False},
            {"has_horizontal_scroll": True},
            {"average_text_size": 12},
            {"touch_targets_inadequate": 5},
            {"is_https": False},
            {"security_headers": ()},
            {"word_count": 10},
            {"has_email": False, "has_phone": False},
            {"social_links": 0},
            {"cta_buttons": 0},
            {"broken_links": 3},
            {"has_sitemap": False},
            {"has_robots": False},
            {"page_size_bytes": 5 * 1024 * 1024},
            {"load_time_ms": 4000},
        ]
        for override in violations:
            worse = make_signals(**override)
            for category in CATEGORIES:
                assert score_category(category, worse) <= score_category(category, base), override

    def test_negative_inputs_are_clamped(self):
        signals = SignalSet(broken_links=-4, load_time_ms=-100, word_count=-1)
        assert signals.broken_links == 0
        assert signals.load_time_ms == 0
        assert score_performance(signals) == 100

    def test_idempotent(self, make_signals):
        signals = make_signals(is_https=False, word_count=10)
        assert score_all(signals) == score_all(signals)


class TestAggregate:
    """Tests for the weighted overall score."""

    def test_weighted_example(self):
        scores = {"seo": 85, "performance": 50, "mobile": 75, "security": 0, "content": 70, "technical": 80}
        assert aggregate(scores) == 61

    def test_load_time_overrides_performance_score(self):
        scores = {"seo": 85, "performance": 100, "mobile": 75, "security": 0, "content": 70, "technical": 80}
        assert aggregate(scores, load_time_ms=5000) == 61

    def test_perfect_page(self, make_signals):
        signals = make_signals()
        assert aggregate(score_all(signals), load_time_ms=signals.load_time_ms) == 100

    def test_rounds_half_up(self):
        scores = {"seo": 2, "performance": 0, "mobile": 0, "security": 0, "content": 0, "technical": 0}
        assert aggregate(scores) == 1

    def test_round_half_up_helper(self):
        assert round_half_up(61.25) == 61
        assert round_half_up(2.5) == 3
        assert round_half_up(0.49) == 0

    def test_missing_categories_count_as_zero(self):
        assert aggregate({"seo": 100}) == 25
