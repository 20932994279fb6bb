"""
Catalog module for the Scholarship Catalog.

This module assembles the catalog: fetch the sheet, enrich every record
with a fixed number of worker threads, and sort by name. The assembled
list is cached for a revalidation window so repeated requests do not hit
the sheet or the scholarship pages again.
"""

import queue
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

import requests

from scholarship_catalog.cache import TTLCache
from scholarship_catalog.config import CatalogSettings
from scholarship_catalog.fetch import create_session
from scholarship_catalog.funding import get_all_funding_categories
from scholarship_catalog.metadata import MetadataEnricher
from scholarship_catalog.models import Scholarship, ScholarshipDetail, ScholarshipPreview
from scholarship_catalog.normalize import slugify
from scholarship_catalog.sheets import fetch_sheet
from scholarship_catalog.utils import get_logger


# Module logger
logger = get_logger("catalog")

CATALOG_CACHE_KEY = "scholarships"

SORT_OPTIONS = ("name", "deadline-asc", "deadline-desc", "country-asc")

T = TypeVar("T")
R = TypeVar("R")


def run_with_concurrency(items: Iterable[T], limit: int, func: Callable[[T], R]) -> List[R]:
    """
    Apply ``func`` to every item using ``limit`` worker threads.

    Workers pull from a shared queue until it is empty. A failing item is
    logged and left out of the results; the other items are unaffected.
    Results are in completion order, so callers sort when order matters.

    Args:
        items: Work items.
        limit: Number of workers (at least one).
        func: Function applied to each item.

    Returns:
        Results of the successful calls.
    """
    work: "queue.Queue[T]" = queue.Queue()
    for item in items:
        work.put(item)

    results: List[R] = []
    results_lock = threading.Lock()

    def worker() -> None:
        while True:
            try:
                item = work.get_nowait()
            except queue.Empty:
                return
            try:
                result = func(item)
            except Exception:
                logger.exception(f"Worker failed on item {item!r}")
                continue
            with results_lock:
                results.append(result)

    worker_count = max(1, min(limit, work.qsize()))
    threads = [
        threading.Thread(target=worker, name=f"catalog-worker-{n}", daemon=True)
        for n in range(worker_count)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    return results


def sort_scholarships(scholarships: Iterable[Scholarship]) -> List[Scholarship]:
    """Sort alphabetically by name (case-insensitive), then by id."""
    return sorted(scholarships, key=lambda item: (item.name.casefold(), item.id))


class Catalog:
    """
    Process-wide scholarship catalog.

    Args:
        settings: Catalog settings. Defaults are used if None.
        session: HTTP session shared by the sheet fetch and the enricher.
        enricher: Metadata enricher. Created from settings if None.
        clock: Monotonic clock for the catalog cache.
    """

    def __init__(
        self,
        settings: Optional[CatalogSettings] = None,
        session: Optional[requests.Session] = None,
        enricher: Optional[MetadataEnricher] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.settings = settings or CatalogSettings()
        self.session = session if session is not None else create_session(
            max_retries=self.settings.max_retries,
            backoff_factor=self.settings.backoff_factor,
        )
        self.enricher = enricher if enricher is not None else MetadataEnricher(
            session=self.session,
            timeout=self.settings.request_timeout,
            ttl_seconds=self.settings.metadata_ttl_seconds,
        )
        self._cache: TTLCache = TTLCache(self.settings.revalidate_seconds, clock=clock)
        self._load_lock = threading.Lock()

    def fetch_raw(self) -> List[Scholarship]:
        """Fetch the sheet and return the raw records."""
        return fetch_sheet(
            url=self.settings.sheet_url,
            session=self.session,
            timeout=self.settings.request_timeout,
        )

    def _assemble(self) -> List[ScholarshipPreview]:
        logger.info("Loading scholarship catalog...")
        started_at = time.monotonic()

        raw = self.fetch_raw()
        enriched = run_with_concurrency(
            raw,
            self.settings.enrich_concurrency,
            self.enricher.enrich_preview,
        )
        scholarships = sort_scholarships(enriched)

        elapsed = time.monotonic() - started_at
        logger.info(f"Catalog loaded: {len(scholarships)} scholarship(s) in {elapsed:.1f}s")
        return scholarships

    def load_scholarships(self) -> List[ScholarshipPreview]:
        """
        Return the enriched catalog, reusing it within the revalidation window.

        Raises:
            SheetError: If the sheet cannot be fetched or parsed.
        """
        cached = self._cache.get(CATALOG_CACHE_KEY)
        if cached is not None:
            return cached

        with self._load_lock:
            cached = self._cache.get(CATALOG_CACHE_KEY)
            if cached is not None:
                return cached

            scholarships = self._assemble()
            self._cache.set(CATALOG_CACHE_KEY, scholarships)
            return scholarships

    def load_scholarships_fresh(self) -> List[ScholarshipPreview]:
        """
        Rebuild the catalog now, bypassing the cached snapshot.

        Metadata already cached per link is still reused.

        Raises:
            SheetError: If the sheet cannot be fetched or parsed.
        """
        with self._load_lock:
            scholarships = self._assemble()
            self._cache.set(CATALOG_CACHE_KEY, scholarships)
            return scholarships

    def get_scholarship(self, scholarship_id: str) -> Optional[ScholarshipPreview]:
        """Look up a scholarship in the current snapshot by id."""
        for scholarship in self.load_scholarships():
            if scholarship.id == scholarship_id:
                return scholarship
        return None

    def get_scholarship_detail(self, scholarship_id: str) -> Optional[ScholarshipDetail]:
        """
        Resolve the detail view for a scholarship id.

        Returns:
            ScholarshipDetail, or None if the id is not in the snapshot.
        """
        scholarship = self.get_scholarship(scholarship_id)
        if scholarship is None:
            return None
        return self.enricher.resolve_detail(scholarship)

    def close(self) -> None:
        """Close the enricher and the shared HTTP session."""
        self.enricher.close()
        self.session.close()


def _matches_query(scholarship: Scholarship, query: str) -> bool:
    haystack = " ".join(
        [
            scholarship.name,
            scholarship.organisation or "",
            " ".join(scholarship.countries),
            " ".join(scholarship.canonical_countries),
            " ".join(scholarship.subjects),
            " ".join(scholarship.level_tags),
        ]
    ).lower()
    return all(term in haystack for term in query.lower().split())


def _has_slug(values: Iterable[str], slug: str) -> bool:
    return slug in {slugify(value) for value in values}


def filter_scholarships(
    scholarships: Iterable[Scholarship],
    country: Optional[str] = None,
    level: Optional[str] = None,
    funding: Optional[str] = None,
    modality: Optional[str] = None,
    eligibility: Optional[str] = None,
    query: Optional[str] = None,
    include_expired: bool = True
) -> List[Scholarship]:
    """
    Filter a catalog the way the country, level and funding pages do.

    Country, level, funding, modality and eligibility are compared by slug,
    so "united-kingdom" and "United Kingdom" both match.

    Args:
        scholarships: Catalog to filter.
        country: Canonical country name or slug.
        level: Level tag or slug.
        funding: Funding category or slug.
        modality: Delivery mode or slug (e.g. "on-campus").
        eligibility: Eligibility criterion or slug.
        query: Free-text search terms; every term must match.
        include_expired: Keep scholarships whose deadline has passed.

    Returns:
        Matching scholarships in input order.
    """
    country_slug = slugify(country) if country else None
    level_slug = slugify(level) if level else None
    funding_slug = slugify(funding) if funding else None
    modality_slug = slugify(modality) if modality else None
    eligibility_slug = slugify(eligibility) if eligibility else None

    matches = []
    for scholarship in scholarships:
        if not include_expired and scholarship.is_expired:
            continue
        if country_slug and not _has_slug(scholarship.canonical_countries, country_slug):
            continue
        if level_slug and not _has_slug(scholarship.level_tags, level_slug):
            continue
        if funding_slug and slugify(scholarship.funding_category or "") != funding_slug:
            continue
        if modality_slug and not _has_slug(scholarship.delivery_modes, modality_slug):
            continue
        if eligibility_slug and not _has_slug(scholarship.eligibility, eligibility_slug):
            continue
        if query and not _matches_query(scholarship, query):
            continue
        matches.append(scholarship)

    return matches


def order_scholarships(scholarships: Iterable[Scholarship], sort: str = "name") -> List[Scholarship]:
    """
    Order a catalog for display.

    Args:
        scholarships: Catalog to order.
        sort: One of SORT_OPTIONS. Deadline orders keep undated
              scholarships last; the other orders fall back to name.

    Returns:
        A new, ordered list.

    Raises:
        ValueError: If sort is not a known option.
    """
    if sort not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort option: {sort!r}")

    by_name = sort_scholarships(scholarships)
    if sort == "name":
        return by_name

    if sort == "country-asc":
        return sorted(by_name, key=lambda item: (item.canonical_countries or [""])[0].casefold())

    dated = [item for item in by_name if item.deadline_date is not None]
    undated = [item for item in by_name if item.deadline_date is None]
    dated.sort(key=lambda item: item.deadline_date, reverse=(sort == "deadline-desc"))
    return dated + undated


def build_facets(scholarships: Iterable[Scholarship]) -> Dict[str, List[str]]:
    """
    Collect the filter options present in a catalog.

    Returns:
        Dictionary with sorted "countries", "levels", "modalities" and
        "eligibility", and the funding categories in display order.
    """
    countries = set()
    levels = set()
    modalities = set()
    criteria = set()
    for scholarship in scholarships:
        countries.update(scholarship.canonical_countries)
        levels.update(scholarship.level_tags)
        modalities.update(scholarship.delivery_modes)
        criteria.update(scholarship.eligibility)

    return {
        "countries": sorted(countries),
        "levels": sorted(levels),
        "funding": get_all_funding_categories(),
        "modalities": sorted(modalities),
        "eligibility": sorted(criteria),
    }
