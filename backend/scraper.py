"""Page scraper: fetch a URL and extract the signals used for scoring.

Extracts SEO, performance, mobile, security, content and technical signals
from a single page plus the sitemap.xml / robots.txt probes, and the text
snippets handed to the AI critique. Does NOT crawl subpages and does not
execute JavaScript, so mobile layout signals are read from declared sizes.
"""

import logging
import re
import time
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup, Tag

import config
from models import MIN_TOUCH_TARGET_PX, SECURITY_HEADERS, CritiqueContent, SignalSet
from patterns import has_email, has_phone

logger = logging.getLogger(__name__)

_REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

SOCIAL_DOMAINS = (
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "pinterest.com",
)
CTA_SELECTOR = "button, a.button, a.btn, .cta"
TOUCH_TARGET_SELECTOR = "a, button, input, select, textarea"
TEXT_SIZE_SELECTOR = "p, span, div"
MOBILE_VIEWPORT_WIDTH_PX = 375
SCALED_MEDIA_TAGS = ("img", "iframe", "video")
DEFAULT_TEXT_SIZE_PX = 16.0

_FONT_SIZE_RE = re.compile(r"font-size\s*:\s*([\d.]+)\s*px", re.I)
_WIDTH_RE = re.compile(r"(?<![-\w])width\s*:\s*([\d.]+)\s*px", re.I)
_HEIGHT_RE = re.compile(r"(?<![-\w])height\s*:\s*([\d.]+)\s*px", re.I)


class ScrapeError(Exception):
    """Raised when the target page cannot be fetched."""


@dataclass(frozen=True)
class FetchedPage:
    url: str
    final_url: str
    html: str
    headers: dict[str, str]
    load_time_ms: int
    dom_content_loaded_ms: int
    size_bytes: int


@dataclass(frozen=True)
class ScrapedPage:
    url: str
    signals: SignalSet
    critique_content: CritiqueContent


def normalize_url(url: str) -> str:
    cleaned = str(url or "").strip()
    if not cleaned:
        raise ScrapeError("URL is required")
    if not cleaned.lower().startswith(("http://", "https://")):
        cleaned = f"https://{cleaned}"
    return cleaned


def fetch_page(url: str) -> FetchedPage:
    """Fetch `url` and time the request. Raises ScrapeError on any failure."""
    start = time.perf_counter()
    try:
        response = requests.get(url, timeout=config.SCRAPE_TIMEOUT_SECONDS, headers=_REQUEST_HEADERS)
        response.raise_for_status()
        content = response.content
    except requests.RequestException as e:
        raise ScrapeError(f"Could not fetch {url}: {e}") from e
    load_time_ms = int((time.perf_counter() - start) * 1000)

    if not response.encoding or response.encoding.lower() == "iso-8859-1":
        response.encoding = response.apparent_encoding or "utf-8"

    return FetchedPage(
        url=url,
        final_url=response.url or url,
        html=response.text,
        headers={k.lower(): v for k, v in response.headers.items()},
        load_time_ms=load_time_ms,
        dom_content_loaded_ms=int(response.elapsed.total_seconds() * 1000),
        size_bytes=len(content),
    )


def probe(url: str) -> bool:
    """True when GET `url` answers 200."""
    try:
        response = requests.get(url, timeout=config.AUX_TIMEOUT_SECONDS, headers=_REQUEST_HEADERS)
    except requests.RequestException:
        return False
    return response.status_code == 200


def _px(value: object) -> float | None:
    text = str(value or "").strip().lower()
    if text.endswith("px"):
        text = text[:-2].strip()
    try:
        return float(text)
    except ValueError:
        return None


def _declared_size(tag: Tag, attr: str, pattern: re.Pattern) -> float | None:
    style = str(tag.get("style") or "")
    match = pattern.search(style)
    if match:
        return float(match.group(1))
    return _px(tag.get(attr))


def _average_text_size(soup: BeautifulSoup) -> float:
    sizes: list[float] = []
    for tag in soup.select(TEXT_SIZE_SELECTOR):
        match = _FONT_SIZE_RE.search(str(tag.get("style") or ""))
        if match:
            sizes.append(float(match.group(1)))
    if not sizes:
        return DEFAULT_TEXT_SIZE_PX
    return sum(sizes) / len(sizes)


def _touch_targets(soup: BeautifulSoup) -> tuple[int, int]:
    targets = soup.select(TOUCH_TARGET_SELECTOR)
    inadequate = 0
    for tag in targets:
        width = _declared_size(tag, "width", _WIDTH_RE)
        height = _declared_size(tag, "height", _HEIGHT_RE)
        if (width is not None and width < MIN_TOUCH_TARGET_PX) or (
            height is not None and height < MIN_TOUCH_TARGET_PX
        ):
            inadequate += 1
    return len(targets), inadequate


def _has_horizontal_overflow(soup: BeautifulSoup) -> bool:
    for tag in soup.find_all(True):
        style = str(tag.get("style") or "").lower()
        if "max-width" in style:
            continue
        if tag.name in SCALED_MEDIA_TAGS:
            # Media width attributes are intrinsic sizes; only inline styles count.
            match = _WIDTH_RE.search(style)
            width = float(match.group(1)) if match else None
        else:
            width = _declared_size(tag, "width", _WIDTH_RE)
        if width is not None and width > MOBILE_VIEWPORT_WIDTH_PX:
            return True
    return False


def _is_broken_link(tag: Tag) -> bool:
    href = tag.get("href")
    if href is None:
        return True
    href = str(href).strip()
    return not href or href.endswith("#")


def extract_critique_content(soup: BeautifulSoup) -> CritiqueContent:
    """Pull the copy the AI critique looks at: headline, CTAs, body text, trust cues."""

    def first_text(*names: str) -> str:
        for name in names:
            tag = soup.find(name)
            if tag is not None:
                return tag.get_text(" ", strip=True)
        return ""

    cta_texts: list[str] = []
    for tag in soup.select('button, a.btn, a.button, [class*="cta"], [class*="button"]'):
        text = tag.get_text(" ", strip=True)
        if text:
            cta_texts.append(text[:80])
        if len(cta_texts) >= 5:
            break

    paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")[:5]]

    return {
        "headline": first_text("h1", "h2"),
        "subheadline": first_text("h2", "h3"),
        "cta_texts": cta_texts,
        "body_text": " ".join(p for p in paragraphs if p)[:2000],
        "has_testimonials": bool(soup.select('[class*="testimonial"], [class*="review"]')),
        "has_trust_badges": bool(soup.select('[class*="trust"], [class*="secure"], [class*="guarantee"]')),
        "has_video": bool(soup.select('video, iframe[src*="youtube"], iframe[src*="vimeo"]')),
    }


def extract_signals(
    soup: BeautifulSoup,
    url: str,
    headers: dict[str, str] | None = None,
    load_time_ms: float = 0,
    dom_content_loaded_ms: float = 0,
    page_size_bytes: int = 0,
    has_sitemap: bool = False,
    has_robots: bool = False,
) -> SignalSet:
    """
    Build a SignalSet from parsed markup and fetch metadata.
    Mutates `soup` (script and style tags are removed before text extraction).
    """
    headers = {k.lower(): v for k, v in (headers or {}).items()}

    has_structured_data = soup.find("script", attrs={"type": "application/ld+json"}) is not None

    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()

    title = ""
    if soup.title is not None:
        title = " ".join(soup.title.get_text().split())

    meta_description = ""
    meta_desc_tag = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if meta_desc_tag and meta_desc_tag.get("content"):
        meta_description = str(meta_desc_tag["content"]).strip()

    viewport_tag = soup.find("meta", attrs={"name": re.compile(r"^viewport$", re.I)})

    images = soup.find_all("img")
    images_without_alt = sum(1 for img in images if not str(img.get("alt") or "").strip())

    body = soup.body or soup
    visible_text = body.get_text(separator=" ", strip=True)

    anchors = soup.find_all("a")
    social_links = 0
    for a in anchors:
        href = str(a.get("href") or "").lower()
        if any(domain in href for domain in SOCIAL_DOMAINS):
            social_links += 1

    touch_total, touch_inadequate = _touch_targets(soup)

    return SignalSet(
        title=title,
        meta_description=meta_description,
        h1_count=len(soup.find_all("h1")),
        h2_count=len(soup.find_all("h2")),
        total_images=len(images),
        images_without_alt=images_without_alt,
        has_structured_data=has_structured_data,
        load_time_ms=load_time_ms,
        dom_content_loaded_ms=dom_content_loaded_ms,
        has_viewport=bool(viewport_tag and str(viewport_tag.get("content") or "").strip()),
        has_horizontal_scroll=_has_horizontal_overflow(soup),
        average_text_size=_average_text_size(soup),
        touch_targets_total=touch_total,
        touch_targets_inadequate=touch_inadequate,
        is_https=url.lower().startswith("https://"),
        security_headers=tuple(h for h in SECURITY_HEADERS if headers.get(h)),
        word_count=len(visible_text.split()),
        has_email=has_email(visible_text),
        has_phone=has_phone(visible_text),
        social_links=social_links,
        cta_buttons=len(soup.select(CTA_SELECTOR)),
        broken_links=sum(1 for a in anchors if _is_broken_link(a)),
        forms=len(soup.find_all("form")),
        has_sitemap=has_sitemap,
        has_robots=has_robots,
        page_size_bytes=page_size_bytes,
    )


def scrape_page(url: str) -> ScrapedPage:
    """
    Fetch `url`, probe sitemap.xml and robots.txt, and return extracted signals.
    Raises ScrapeError when the page itself cannot be fetched.
    """
    normalized = normalize_url(url)
    page = fetch_page(normalized)

    base = page.final_url.rstrip("/")
    has_sitemap = probe(f"{base}/sitemap.xml")
    has_robots = probe(f"{base}/robots.txt")

    soup = BeautifulSoup(page.html, "html.parser")
    critique_content = extract_critique_content(soup)
    signals = extract_signals(
        soup,
        url=normalized,
        headers=page.headers,
        load_time_ms=page.load_time_ms,
        dom_content_loaded_ms=page.dom_content_loaded_ms,
        page_size_bytes=page.size_bytes,
        has_sitemap=has_sitemap,
        has_robots=has_robots,
    )
    logger.info(
        "Scraped %s in %sms (%s bytes, sitemap=%s, robots=%s)",
        normalized,
        page.load_time_ms,
        page.size_bytes,
        has_sitemap,
        has_robots,
    )
    return ScrapedPage(url=normalized, signals=signals, critique_content=critique_content)
