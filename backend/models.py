"""Data models and types used across the backend.

Database table definitions are in database.py.
Types for extracted page signals, scores, recommendations and AI output live here.
"""

from dataclasses import dataclass, fields
from typing import Literal, TypedDict

TITLE_OPTIMAL_RANGE = (30, 60)
META_DESCRIPTION_OPTIMAL_RANGE = (120, 160)
MIN_TOUCH_TARGET_PX = 44

SECURITY_HEADERS = (
    "strict-transport-security",
    "x-frame-options",
    "x-content-type-options",
    "x-xss-protection",
    "content-security-policy",
)

Priority = Literal["Critical", "High", "Medium", "Low"]


def _utf16_length(text: str) -> int:
    """Length in UTF-16 code units, the unit browsers report for string length."""
    return len(text.encode("utf-16-le")) // 2


@dataclass(frozen=True)
class SignalSet:
    """Facts extracted from one page fetch.

    Numeric fields are clamped to be non-negative on construction. The
    "optimal" flags are properties derived from the value they annotate.
    """

    # SEO
    title: str = ""
    meta_description: str = ""
    h1_count: int = 0
    h2_count: int = 0
    total_images: int = 0
    images_without_alt: int = 0
    has_structured_data: bool = False

    # Performance
    load_time_ms: float = 0
    dom_content_loaded_ms: float = 0

    # Mobile
    has_viewport: bool = False
    has_horizontal_scroll: bool = False
    average_text_size: float = 16.0
    touch_targets_total: int = 0
    touch_targets_inadequate: int = 0

    # Security
    is_https: bool = False
    security_headers: tuple[str, ...] = ()

    # Content
    word_count: int = 0
    has_email: bool = False
    has_phone: bool = False
    social_links: int = 0
    cta_buttons: int = 0

    # Technical
    broken_links: int = 0
    forms: int = 0
    has_sitemap: bool = False
    has_robots: bool = False
    page_size_bytes: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
                object.__setattr__(self, f.name, 0)
        given = {h.lower() for h in self.security_headers}
        present = tuple(h for h in SECURITY_HEADERS if h in given)
        object.__setattr__(self, "security_headers", present)

    @property
    def title_length(self) -> int:
        return _utf16_length(self.title)

    @property
    def title_optimal(self) -> bool:
        low, high = TITLE_OPTIMAL_RANGE
        return low <= self.title_length <= high

    @property
    def meta_description_length(self) -> int:
        return _utf16_length(self.meta_description)

    @property
    def meta_description_optimal(self) -> bool:
        low, high = META_DESCRIPTION_OPTIMAL_RANGE
        return low <= self.meta_description_length <= high

    @property
    def has_h1(self) -> bool:
        return self.h1_count > 0

    @property
    def multiple_h1(self) -> bool:
        return self.h1_count > 1

    @property
    def image_alt_coverage(self) -> float:
        if self.total_images == 0:
            return 100.0
        covered = max(0, self.total_images - self.images_without_alt)
        return round(covered / self.total_images * 100, 1)

    @property
    def security_headers_present(self) -> int:
        return len(self.security_headers)

    @property
    def page_size_mb(self) -> float:
        return self.page_size_bytes / 1024 / 1024

    def to_dict(self) -> dict:
        """Grouped JSON view used in API responses and stored analyses."""
        headers = set(self.security_headers)
        return {
            "seo": {
                "title": {"content": self.title, "length": self.title_length, "optimal": self.title_optimal},
                "meta_description": {
                    "content": self.meta_description,
                    "length": self.meta_description_length,
                    "optimal": self.meta_description_optimal,
                },
                "headings": {
                    "h1_count": self.h1_count,
                    "h2_count": self.h2_count,
                    "has_h1": self.has_h1,
                    "multiple_h1": self.multiple_h1,
                },
                "images": {
                    "total": self.total_images,
                    "without_alt": self.images_without_alt,
                    "alt_coverage": self.image_alt_coverage,
                },
                "structured_data": self.has_structured_data,
            },
            "performance": {
                "load_time_ms": self.load_time_ms,
                "dom_content_loaded_ms": self.dom_content_loaded_ms,
            },
            "mobile": {
                "has_viewport": self.has_viewport,
                "has_horizontal_scroll": self.has_horizontal_scroll,
                "average_text_size": self.average_text_size,
                "touch_targets": {
                    "total": self.touch_targets_total,
                    "inadequate": self.touch_targets_inadequate,
                },
            },
            "security": {
                "is_https": self.is_https,
                "headers": {name: name in headers for name in SECURITY_HEADERS},
                "secure_headers_count": self.security_headers_present,
            },
            "content": {
                "word_count": self.word_count,
                "has_contact_info": {"email": self.has_email, "phone": self.has_phone},
                "social_links": self.social_links,
                "cta_buttons": self.cta_buttons,
            },
            "technical": {
                "broken_links": self.broken_links,
                "forms": self.forms,
                "has_sitemap": self.has_sitemap,
                "has_robots": self.has_robots,
                "page_size": {"bytes": self.page_size_bytes, "mb": round(self.page_size_mb, 2)},
            },
        }


class CategoryScores(TypedDict):
    """Integer score in [0, 100] per analysis category."""

    seo: int
    performance: int
    mobile: int
    security: int
    content: int
    technical: int


class Recommendation(TypedDict):
    """Single actionable finding."""

    category: str
    priority: Priority
    issue: str
    recommendation: str
    impact: str
    effort: str


class CritiqueContent(TypedDict):
    """Page text handed to the LLM critique."""

    headline: str
    subheadline: str
    cta_texts: list[str]
    body_text: str
    has_testimonials: bool
    has_trust_badges: bool
    has_video: bool


class CritiqueResult(TypedDict, total=False):
    """Structured conversion critique returned by the AI service."""

    scores: dict[str, int | None]
    analysis: dict[str, str]
    quick_wins: list[str]
    priority_actions: list[str]
    error: str
