"""
Fetch module for the Scholarship Catalog.

This module performs the HTTP GETs used by the catalog: the published
spreadsheet and each scholarship's external page. Requests carry realistic
browser headers (many scholarship hosts block other clients) and retry
transient failures with exponential backoff.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from scholarship_catalog.config import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
)
from scholarship_catalog.utils import get_logger


# Module logger
logger = get_logger("fetch")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)


@dataclass
class FetchResult:
    """
    Represents the result of fetching a single URL.

    Attributes:
        source_url: The original URL that was fetched.
        content: Response body if successful, None otherwise.
        success: Whether the fetch was successful.
        error_message: Error description if fetch failed, None otherwise.
        status_code: HTTP status code if request was made, None otherwise.
    """
    source_url: str
    content: Optional[str]
    success: bool
    error_message: Optional[str] = None
    status_code: Optional[int] = None


def create_session(
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
) -> requests.Session:
    """
    Create a requests session with retry configuration.

    Configures automatic retries with exponential backoff for
    transient failures (429 and 5xx responses, connection errors).

    Args:
        max_retries: Maximum number of retry attempts.
        backoff_factor: Multiplier for exponential backoff between retries.
                       Sleep time = backoff_factor * (2 ** retry_number)

    Returns:
        Configured requests.Session instance.
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET", "HEAD"],
        raise_on_status=False
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": DEFAULT_ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
    })

    return session


def validate_url(url: str) -> bool:
    """
    Validate that a URL is well-formed and uses HTTP/HTTPS.

    Args:
        url: URL string to validate.

    Returns:
        True if URL is valid, False otherwise.
    """
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except (TypeError, ValueError, AttributeError):
        return False


def fetch_single_url(
    url: str,
    session: requests.Session,
    timeout: float = DEFAULT_REQUEST_TIMEOUT
) -> FetchResult:
    """
    Fetch a single URL and return the result.

    Never raises for request failures; the outcome is reported
    through the returned FetchResult.

    Args:
        url: URL to fetch.
        session: Configured requests session.
        timeout: Request timeout in seconds.

    Returns:
        FetchResult containing the fetch outcome.
    """
    logger.debug(f"Fetching URL: {url}")

    if not validate_url(url):
        logger.warning(f"Invalid URL format: {url}")
        return FetchResult(
            source_url=url,
            content=None,
            success=False,
            error_message="Invalid URL format"
        )

    try:
        response = session.get(url, timeout=timeout)

        if 200 <= response.status_code < 300:
            logger.debug(f"Fetched {url} ({len(response.text)} bytes)")
            return FetchResult(
                source_url=url,
                content=response.text,
                success=True,
                status_code=response.status_code
            )
        else:
            logger.warning(f"HTTP {response.status_code} for {url}")
            return FetchResult(
                source_url=url,
                content=None,
                success=False,
                error_message=f"HTTP {response.status_code}",
                status_code=response.status_code
            )

    except requests.exceptions.Timeout:
        logger.warning(f"Timeout fetching {url}")
        return FetchResult(
            source_url=url,
            content=None,
            success=False,
            error_message="Request timeout"
        )

    except requests.exceptions.ConnectionError as e:
        logger.warning(f"Connection error for {url}: {e}")
        return FetchResult(
            source_url=url,
            content=None,
            success=False,
            error_message=f"Connection error: {str(e)}"
        )

    except requests.exceptions.RequestException as e:
        logger.error(f"Request exception for {url}: {e}")
        return FetchResult(
            source_url=url,
            content=None,
            success=False,
            error_message=f"Request failed: {str(e)}"
        )
