"""
Metadata module for the Scholarship Catalog.

This module enriches scholarships with a description and images scraped
from each scholarship's external page (meta/Open Graph/Twitter Card tags,
falling back to long body paragraphs). Scraped metadata is cached per link
for a fixed TTL. Enrichment is best-effort: failures are logged and the
record is returned with locally derived fallbacks, never an exception.
"""

import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from scholarship_catalog.cache import TTLCache
from scholarship_catalog.config import DEFAULT_METADATA_TTL_SECONDS, DEFAULT_REQUEST_TIMEOUT
from scholarship_catalog.fetch import create_session, fetch_single_url
from scholarship_catalog.models import (
    MetadataEntry,
    Scholarship,
    ScholarshipDetail,
    ScholarshipPreview,
)
from scholarship_catalog.normalize import unique
from scholarship_catalog.presenters import build_scholarship_excerpt, build_scholarship_image_alt
from scholarship_catalog.utils import get_logger, normalize_url, sanitize_text


# Module logger
logger = get_logger("metadata")

DESCRIPTION_SELECTORS = [
    'meta[name="description"]',
    'meta[property="og:description"]',
    'meta[name="twitter:description"]',
]

IMAGE_SELECTORS = [
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
    'link[rel="image_src"]',
]

PARAGRAPH_SELECTOR = "article p, main p, body p"
MIN_PARAGRAPH_LENGTH = 60
MAX_LONG_PARAGRAPHS = 6
MAX_IMAGES = 10


def _first_text(*candidates: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def extract_descriptions(soup: BeautifulSoup) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract a summary and long-form text from a parsed page.

    Meta descriptions win (summary only). Without one, paragraphs longer
    than MIN_PARAGRAPH_LENGTH provide the summary (first paragraph) and
    the long text (first six, blank-line separated).

    Args:
        soup: Parsed HTML document.

    Returns:
        Tuple of (summary, long_description); either may be None.
    """
    for selector in DESCRIPTION_SELECTORS:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        content = sanitize_text(tag.get("content"))
        if content:
            return content, None

    paragraphs = [
        text
        for text in (sanitize_text(p.get_text()) for p in soup.select(PARAGRAPH_SELECTOR))
        if len(text) > MIN_PARAGRAPH_LENGTH
    ]
    if paragraphs:
        return paragraphs[0], "\n\n".join(paragraphs[:MAX_LONG_PARAGRAPHS])

    return None, None


def resolve_base_url(soup: BeautifulSoup, page_url: str) -> str:
    """Return the URL relative links resolve against (honours <base href>)."""
    base = soup.find("base", href=True)
    if base is not None:
        return normalize_url(str(base["href"]), page_url)
    return page_url


def extract_images(soup: BeautifulSoup, page_url: str) -> List[str]:
    """
    Collect image URLs from social-preview tags and <img> elements.

    Args:
        soup: Parsed HTML document.
        page_url: URL the document was fetched from.

    Returns:
        Absolute image URLs, first-found order, deduplicated, at most MAX_IMAGES.
    """
    base_url = resolve_base_url(soup, page_url)
    candidates = []

    for selector in IMAGE_SELECTORS:
        tag = soup.select_one(selector)
        if tag is None:
            continue
        source = tag.get("content") or tag.get("href")
        if source:
            candidates.append(str(source))

    for img in soup.find_all("img"):
        source = img.get("data-src") or img.get("src")
        if source:
            candidates.append(str(source))

    resolved = [
        normalize_url(source, base_url)
        for source in candidates
        if source.strip() and not source.strip().lower().startswith("data:")
    ]
    return unique(resolved)[:MAX_IMAGES]


def parse_metadata(html: str, page_url: str) -> MetadataEntry:
    """
    Parse a scholarship page into a MetadataEntry.

    Args:
        html: Raw HTML.
        page_url: URL of the page, used to resolve relative image links.

    Returns:
        MetadataEntry with the scraped values (no fallbacks applied).
    """
    soup = BeautifulSoup(html, "html.parser")
    summary, long_description = extract_descriptions(soup)
    return MetadataEntry(
        images=extract_images(soup, page_url),
        summary=summary,
        long_description=long_description,
    )


class MetadataEnricher:
    """
    Fetches, caches and applies scraped page metadata.

    Args:
        session: HTTP session to use. A retrying browser-like session is
                 created if None.
        cache: Metadata cache keyed by link. Created with ttl_seconds if None.
        timeout: Per-request timeout in seconds.
        ttl_seconds: Lifetime of cached metadata when the cache is created here.
        clock: Monotonic clock for the created cache.
        now: Wall clock used to stamp fetched metadata.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        ttl_seconds: float = DEFAULT_METADATA_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now
    ):
        self.session = session if session is not None else create_session()
        self.cache = cache if cache is not None else TTLCache(ttl_seconds, clock=clock)
        self.timeout = timeout
        self._now = now

    def fetch_metadata(self, link: str) -> Optional[MetadataEntry]:
        """
        Return metadata for a link, from the cache when still live.

        Failed fetches are not cached, so the next call retries.

        Args:
            link: Scholarship's external page.

        Returns:
            MetadataEntry, or None if the page could not be fetched or parsed.
        """
        cached = self.cache.get(link)
        if cached is not None:
            logger.debug(f"Metadata cache hit for {link}")
            return cached

        result = fetch_single_url(link, self.session, self.timeout)
        if not result.success or result.content is None:
            logger.warning(f"Metadata fetch failed for {link}: {result.error_message}")
            return None

        try:
            entry = parse_metadata(result.content, link)
        except Exception as e:
            logger.warning(f"Failed to parse metadata from {link}: {e}")
            return None

        entry.fetched_at = self._now()
        self.cache.set(link, entry)
        return entry

    def _safe_fetch(self, link: str) -> Optional[MetadataEntry]:
        try:
            return self.fetch_metadata(link)
        except Exception:
            logger.exception(f"Unexpected error enriching {link}")
            return None

    def _build_preview(
        self,
        scholarship: Scholarship,
        entry: Optional[MetadataEntry]
    ) -> ScholarshipPreview:
        excerpt = build_scholarship_excerpt(scholarship)

        if entry is None:
            return ScholarshipPreview.from_scholarship(
                scholarship,
                preview_image=getattr(scholarship, "preview_image", None),
                short_description=_first_text(scholarship.sheet_summary, excerpt),
                metadata_refreshed_at=getattr(scholarship, "metadata_refreshed_at", None),
            )

        return ScholarshipPreview.from_scholarship(
            scholarship,
            preview_image=entry.images[0] if entry.images else None,
            short_description=_first_text(
                scholarship.sheet_summary,
                entry.summary,
                entry.long_description,
                excerpt,
            ),
            metadata_refreshed_at=entry.fetched_at,
        )

    def enrich_preview(self, scholarship: Scholarship) -> ScholarshipPreview:
        """
        Attach a preview image and short description to a scholarship.

        Args:
            scholarship: Record to enrich.

        Returns:
            ScholarshipPreview; degraded to sheet/template text on failure.
        """
        return self._build_preview(scholarship, self._safe_fetch(scholarship.link))

    def resolve_detail(self, scholarship: Scholarship) -> ScholarshipDetail:
        """
        Build the detail view of a scholarship.

        Sheet columns take precedence over scraped text; the template
        excerpt is the last resort.

        Args:
            scholarship: Raw or preview record.

        Returns:
            ScholarshipDetail; degraded to local fallbacks on failure.
        """
        entry = self._safe_fetch(scholarship.link)
        preview = self._build_preview(scholarship, entry)
        excerpt = build_scholarship_excerpt(scholarship)

        if entry is None:
            images = [preview.preview_image] if preview.preview_image else []
            scraped_summary = scraped_long = None
        else:
            images = entry.images
            scraped_summary = entry.summary
            scraped_long = entry.long_description

        return ScholarshipDetail.from_preview(
            preview,
            images=images,
            summary=_first_text(
                scholarship.sheet_summary,
                scraped_summary,
                scraped_long,
                excerpt,
            ),
            long_description=_first_text(
                scholarship.sheet_breakdown,
                scraped_long,
                scraped_summary,
                scholarship.sheet_summary,
                excerpt,
            ),
            image_alt=build_scholarship_image_alt(scholarship),
        )

    def close(self) -> None:
        self.session.close()
