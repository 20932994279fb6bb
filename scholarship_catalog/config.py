"""
Configuration for the Scholarship Catalog.

Defaults are fixed constants; each can be overridden through an
environment variable when the catalog is started from an entry point.
"""

from dataclasses import dataclass

from scholarship_catalog.utils import get_env_var, get_logger


logger = get_logger("config")

DEFAULT_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/"
    "1OELmrzg_nTghtK52_YbZ-I-pCntdeuxqHxWfF8W4EZU/gviz/tq?tqx=out:json"
)
DEFAULT_METADATA_TTL_SECONDS = 6 * 60 * 60  # 6 hours
DEFAULT_REVALIDATE_SECONDS = 30 * 60  # 30 minutes
DEFAULT_ENRICH_CONCURRENCY = 4
DEFAULT_REQUEST_TIMEOUT = 20  # seconds
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_FACTOR = 0.5


@dataclass
class CatalogSettings:
    """
    Runtime settings for sheet ingestion and metadata enrichment.

    Attributes:
        sheet_url: Published spreadsheet endpoint (gviz JSON output).
        metadata_ttl_seconds: Lifetime of a cached metadata entry.
        revalidate_seconds: Lifetime of the assembled catalog snapshot.
        enrich_concurrency: Number of enrichment workers.
        request_timeout: Per-request HTTP timeout in seconds.
        max_retries: Retry attempts for transient HTTP failures.
        backoff_factor: Exponential backoff multiplier between retries.
    """
    sheet_url: str = DEFAULT_SHEET_URL
    metadata_ttl_seconds: float = DEFAULT_METADATA_TTL_SECONDS
    revalidate_seconds: float = DEFAULT_REVALIDATE_SECONDS
    enrich_concurrency: int = DEFAULT_ENRICH_CONCURRENCY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    @classmethod
    def from_env(cls) -> "CatalogSettings":
        """
        Build settings from environment variables, falling back to defaults.

        Returns:
            CatalogSettings instance.
        """
        return cls(
            sheet_url=get_env_var("SHEET_URL", required=False, default=DEFAULT_SHEET_URL),
            metadata_ttl_seconds=_read_number(
                "METADATA_TTL_SECONDS", DEFAULT_METADATA_TTL_SECONDS, float
            ),
            revalidate_seconds=_read_number(
                "CATALOG_REVALIDATE_SECONDS", DEFAULT_REVALIDATE_SECONDS, float
            ),
            enrich_concurrency=max(
                1, _read_number("ENRICH_CONCURRENCY", DEFAULT_ENRICH_CONCURRENCY, int)
            ),
            request_timeout=_read_number("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, float),
            max_retries=max(0, _read_number("MAX_RETRIES", DEFAULT_MAX_RETRIES, int)),
        )


def _read_number(name: str, default, cast):
    """Read a numeric environment variable, keeping the default on bad input."""
    raw = get_env_var(name, required=False)
    if raw is None:
        return default

    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using default {default}")
        return default
