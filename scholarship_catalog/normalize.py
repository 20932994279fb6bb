"""
Text normalization for spreadsheet fields.

The sheet is maintained by hand, so every helper here is permissive:
bad input produces a safe default, never an exception.
"""

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, TypeVar

from dateutil import parser as dateparser

from scholarship_catalog.models import DEFAULT_LEVEL
from scholarship_catalog.utils import get_logger


logger = get_logger("normalize")

T = TypeVar("T")

LIST_DELIMITERS = re.compile(r"[\n\r,;/\\|•·▪‣●◦]+")
LEVEL_SPLITTER = re.compile(r"\s+-\s+|\s+and\s+", re.IGNORECASE)

# Keyword -> canonical level, matched on word boundaries
LEVEL_KEYWORDS = {
    "undergraduate": "Undergraduate",
    "bachelor": "Undergraduate",
    "bachelors": "Undergraduate",
    "bsc": "Undergraduate",
    "master": "Masters",
    "masters": "Masters",
    "msc": "Masters",
    "postgraduate": "Postgraduate",
    "graduate": "Postgraduate",
    "phd": "PhD",
    "doctor": "PhD",
    "doctoral": "PhD",
    "doctorate": "PhD",
    "postdoc": "Postdoctoral",
    "postdoctoral": "Postdoctoral",
    "research": "Research",
    "researcher": "Research",
    "fellowship": "Fellowship",
    "fellow": "Fellowship",
    "professional": "Professional",
    "executive": "Professional",
    "mba": "MBA",
    "business administration": "MBA",
}

ANY_LEVEL_KEYWORDS = {"any", "all", "various", "multiple"}
ANY_LEVEL_EXPANSION = ["Undergraduate", "Postgraduate"]

ROLLING_PATTERN = re.compile(
    r"rolling|open|varies|ongoing|tba|not available|n/a",
    re.IGNORECASE
)

DATE_FORMATS = [
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%B %Y",
    "%b %Y",
]

# gviz serializes date cells as Date(y,m,d) with a zero-based month;
# a broken DATE(y,m,d) formula leaves the one-based literal behind.
DATE_LITERAL_PATTERN = re.compile(
    r"\b(DATE|Date)\(\s*(\d{4})\s*,\s*(\d{1,2})\s*,\s*(\d{1,2})\s*[,)]"
)

# The generic parser only sees text naming a year plus a month name or a
# day; anything vaguer would be completed from the current date.
YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
MONTH_NAME_PATTERN = re.compile(
    r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\b",
    re.IGNORECASE
)
DIGIT_GROUP_PATTERN = re.compile(r"\d+")
GENERIC_PARSE_DEFAULT = datetime(2000, 1, 1)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class DeadlineInfo:
    """Deadline label plus the parsed date, if any."""
    label: str
    date: Optional[datetime]


def unique(values: Iterable[T]) -> List[T]:
    """Deduplicate while preserving first-seen order."""
    return list(dict.fromkeys(values))


def capitalize(text: str) -> str:
    """Title-case every whitespace-separated word."""
    return " ".join(
        word[:1].upper() + word[1:]
        for word in text.lower().split()
    )


def normalize_text_block(text: Optional[str]) -> Optional[str]:
    """
    Tidy a free-text cell.

    Collapses whitespace inside each line and squeezes blank-line runs.

    Args:
        text: Raw cell text.

    Returns:
        Cleaned text, or None when nothing is left.
    """
    if not text or not isinstance(text, str):
        return None

    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.splitlines()]
    cleaned = re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
    return cleaned or None


def normalize_list(text: Optional[str]) -> List[str]:
    """
    Split a free-text cell into list entries.

    Args:
        text: Cell text separated by newlines, commas, semicolons,
              slashes, pipes or bullet characters.

    Returns:
        Trimmed, non-empty entries in source order.
    """
    if not text or not isinstance(text, str):
        return []

    return [entry.strip() for entry in LIST_DELIMITERS.split(text) if entry.strip()]


def normalize_levels(text: Optional[str]) -> List[str]:
    """
    Map a free-text level cell to canonical level tags.

    Args:
        text: Level text such as "Masters and PhD" or "Any level".

    Returns:
        Canonical levels in first-found order; [DEFAULT_LEVEL] when
        nothing is recognized.
    """
    tokens = [
        token
        for chunk in normalize_list(text)
        for token in LEVEL_SPLITTER.split(chunk)
        if token.strip()
    ]

    levels: List[str] = []
    for token in tokens:
        lowered = token.lower()
        for keyword, level in LEVEL_KEYWORDS.items():
            if re.search(rf"\b{re.escape(keyword)}\b", lowered):
                levels.append(level)

        words = set(re.findall(r"[a-z]+", lowered))
        if words & ANY_LEVEL_KEYWORDS:
            levels.extend(ANY_LEVEL_EXPANSION)

    levels = unique(levels)
    return levels or [DEFAULT_LEVEL]


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_deadline_label(value: datetime) -> str:
    """Render a deadline as e.g. "Sunday, June 1st, 2025"."""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {_ordinal(value.day)}, {value.year}"


def _at_midday(value: datetime) -> datetime:
    return value.replace(hour=12, minute=0, second=0, microsecond=0, tzinfo=None)


def _parse_with_formats(text: str) -> Optional[datetime]:
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            continue
    return None


def _names_full_date(text: str) -> bool:
    if not YEAR_PATTERN.search(text):
        return False
    return bool(MONTH_NAME_PATTERN.search(text)) or len(DIGIT_GROUP_PATTERN.findall(text)) >= 3


def _parse_generic(text: str) -> Optional[datetime]:
    if not _names_full_date(text):
        return None
    try:
        return dateparser.parse(text, default=GENERIC_PARSE_DEFAULT, ignoretz=True)
    except (ValueError, OverflowError):
        return None


def _parse_date_literal(text: str) -> Optional[datetime]:
    match = DATE_LITERAL_PATTERN.search(text)
    if not match:
        return None

    kind, year, month, day = match.groups()
    month_number = int(month) + 1 if kind == "Date" else int(month)
    try:
        return datetime(int(year), month_number, int(day))
    except ValueError:
        return None


def parse_deadline(text: Optional[str]) -> DeadlineInfo:
    """
    Parse a deadline cell.

    Rolling-admission wording yields no date. Otherwise the fixed format
    list is tried, then a DATE(y,m,d) literal, then a generic parser for
    text that names a year and a month or day. Partial dates such as
    "June" or "2025" are kept as labels without a date.

    Args:
        text: Raw deadline cell.

    Returns:
        DeadlineInfo whose date, when present, is set to midday.
    """
    if not text or not isinstance(text, str) or not text.strip():
        return DeadlineInfo(label="Rolling", date=None)

    trimmed = text.strip()
    if ROLLING_PATTERN.search(trimmed):
        return DeadlineInfo(label=capitalize(trimmed), date=None)

    parsed = (
        _parse_with_formats(trimmed)
        or _parse_date_literal(trimmed)
        or _parse_generic(trimmed)
    )
    if parsed is None:
        logger.debug(f"Unparseable deadline: {trimmed!r}")
        return DeadlineInfo(label=capitalize(trimmed), date=None)

    parsed = _at_midday(parsed)
    return DeadlineInfo(label=format_deadline_label(parsed), date=parsed)


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated ASCII slug."""
    return _SLUG_PATTERN.sub("-", text.lower()).strip("-")


def create_scholarship_id(name: str, link: str) -> str:
    """
    Build a deterministic identifier from a scholarship's name and link.

    Args:
        name: Scholarship name.
        link: External application link.

    Returns:
        "<slug>-<8 hex chars>"; the hash changes whenever name or link does.
    """
    slug = slugify(name) or "scholarship"
    # NUL cannot occur in a name or a URL
    digest = hashlib.md5(f"{name}\x00{link}".encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"
