"""
Sheet module for the Scholarship Catalog.

This module fetches the published Google Sheet (gviz JSON output wrapped in
a JavaScript callback), maps its columns by header name and turns each row
into a normalized Scholarship.

Columns are located by header alias, not position, so the sheet's editors
may reorder or rename columns within the known aliases. Only a missing
name or link column, or an unreadable response, stops ingestion; rows
without a name or link are skipped.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import requests

from scholarship_catalog.config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_SHEET_URL
from scholarship_catalog.countries import normalize_countries
from scholarship_catalog.fetch import create_session, fetch_single_url
from scholarship_catalog.funding import determine_funding_category
from scholarship_catalog.models import Scholarship
from scholarship_catalog.normalize import (
    capitalize,
    create_scholarship_id,
    normalize_levels,
    normalize_list,
    normalize_text_block,
    parse_deadline,
    unique,
)
from scholarship_catalog.utils import get_logger


# Module logger
logger = get_logger("sheets")

RESPONSE_MARKER = "google.visualization.Query.setResponse("

REQUIRED_COLUMNS = ("name", "link")

COLUMN_ALIASES: Dict[str, List[str]] = {
    "name": ["scholarship name", "name"],
    "country": ["country", "countries"],
    "level": ["level", "study level"],
    "coverage": ["coverage", "benefits"],
    "deadline": ["deadline", "application deadline"],
    "link": ["link to apply", "link", "application link"],
    "fundingType": ["type of funding", "funding type"],
    "organisation": [
        "organisation offering the scholarship",
        "organization offering the scholarship",
        "provider",
    ],
    "shortSummary": ["short summary", "overview"],
    "detailedBreakdown": ["detailed breakdown", "breakdown"],
    "eligibility": ["eligibility criteria", "eligibility"],
    "subjects": ["available subjects", "fields of study"],
    "modality": ["on-campus or remote", "mode", "delivery"],
}


class SheetError(Exception):
    """Base error for failures that prevent the sheet from loading."""
    pass


class SheetFetchError(SheetError):
    """The spreadsheet endpoint could not be retrieved."""
    pass


class ParseError(SheetError):
    """The spreadsheet response could not be parsed."""
    pass


class MissingColumnsError(SheetError):
    """The header row lacks a mandatory column."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Required columns missing in sheet: {', '.join(self.missing)}")


def parse_sheet_response(payload: str) -> Dict[str, Any]:
    """
    Extract the JSON document from a gviz callback-wrapped response.

    Args:
        payload: Raw response text.

    Returns:
        The decoded gviz response object.

    Raises:
        ParseError: If the wrapper, the JSON span or the table is missing,
                    the JSON is invalid, or gviz reported an error.
    """
    marker_index = payload.find(RESPONSE_MARKER)
    if marker_index == -1:
        raise ParseError("Unexpected sheet response format: missing response wrapper")

    json_start = payload.find("{", marker_index + len(RESPONSE_MARKER))
    json_end = payload.rfind("}")
    if json_start == -1 or json_end == -1 or json_end <= json_start:
        raise ParseError("Unexpected sheet response format: unable to locate JSON payload")

    try:
        data = json.loads(payload[json_start:json_end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse sheet payload: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Sheet payload is not a JSON object")

    if data.get("status") == "error":
        messages = "; ".join(
            str(err.get("detailed_message") or err.get("message") or err.get("reason"))
            for err in data.get("errors", [])
            if isinstance(err, dict)
        )
        raise ParseError(f"Sheet query returned an error: {messages or 'unknown error'}")

    table = data.get("table")
    if not isinstance(table, dict):
        raise ParseError("Sheet payload has no table")

    return data


def normalize_header(label: Optional[str]) -> str:
    """Lowercase a header label and collapse its whitespace."""
    return " ".join((label or "").lower().split())


def build_column_index(headers: Sequence[Optional[str]]) -> Dict[str, int]:
    """
    Map each semantic field to the first column whose header matches an alias.

    Args:
        headers: Header labels in column order.

    Returns:
        Dictionary of field name to column index for every matched field.
    """
    aliases = {
        key: {normalize_header(candidate) for candidate in candidates}
        for key, candidates in COLUMN_ALIASES.items()
    }

    index: Dict[str, int] = {}
    for column_index, label in enumerate(headers):
        header = normalize_header(label)
        if not header:
            continue
        for key, candidates in aliases.items():
            if key not in index and header in candidates:
                index[key] = column_index

    return index


def _cell_text(cell: Any) -> Optional[str]:
    if not isinstance(cell, dict):
        return None
    value = cell.get("v")
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def read_cell(cells: Optional[Sequence[Any]], index: Dict[str, int], key: str) -> Optional[str]:
    """
    Read one field from a row.

    Args:
        cells: The row's gviz cells (each {"v": ...} or null).
        index: Column index built by build_column_index.
        key: Semantic field name.

    Returns:
        Trimmed cell text, or None when the column or value is absent.
    """
    column = index.get(key)
    if column is None or not cells or column >= len(cells):
        return None
    return _cell_text(cells[column])


def extract_headers(table: Dict[str, Any]) -> List[Optional[str]]:
    """
    Return the header labels of a gviz table.

    When gviz did not detect a header row (all column labels blank), the
    first data row holds the headers and is removed from the table rows.
    """
    cols = table.get("cols") or []
    labels = [col.get("label") if isinstance(col, dict) else None for col in cols]
    if any(normalize_header(label) for label in labels):
        return labels

    rows = table.get("rows") or []
    if not rows:
        return labels

    header_row = rows.pop(0)
    cells = header_row.get("c") if isinstance(header_row, dict) else None
    logger.debug("Sheet columns carry no labels, using first row as header")
    return [_cell_text(cell) for cell in (cells or [])]


def map_row(
    cells: Optional[Sequence[Any]],
    index: Dict[str, int],
    now: Optional[datetime] = None
) -> Optional[Scholarship]:
    """
    Convert one sheet row into a Scholarship.

    Args:
        cells: The row's gviz cells.
        index: Column index built by build_column_index.
        now: Reference time for the expiry check. Defaults to now.

    Returns:
        Scholarship, or None when the name or link is missing.
    """
    name = read_cell(cells, index, "name")
    link = read_cell(cells, index, "link")
    if not name or not link:
        return None

    countries = unique(normalize_list(read_cell(cells, index, "country")))
    coverage = [capitalize(item) for item in unique(normalize_list(read_cell(cells, index, "coverage")))]
    funding_type_raw = normalize_text_block(read_cell(cells, index, "fundingType"))
    funding_type = capitalize(funding_type_raw) if funding_type_raw else None
    deadline = parse_deadline(read_cell(cells, index, "deadline"))
    reference = now or datetime.now()

    return Scholarship(
        id=create_scholarship_id(name, link),
        name=name,
        link=link,
        countries=countries,
        level_tags=normalize_levels(read_cell(cells, index, "level")),
        coverage=coverage,
        funding_type=funding_type,
        organisation=normalize_text_block(read_cell(cells, index, "organisation")),
        deadline_label=deadline.label,
        deadline_date=deadline.date,
        is_expired=deadline.date is not None and deadline.date < reference,
        sheet_summary=normalize_text_block(read_cell(cells, index, "shortSummary")),
        sheet_breakdown=normalize_text_block(read_cell(cells, index, "detailedBreakdown")),
        eligibility=unique(normalize_list(read_cell(cells, index, "eligibility"))),
        subjects=unique(normalize_list(read_cell(cells, index, "subjects"))),
        delivery_modes=[
            capitalize(mode) for mode in unique(normalize_list(read_cell(cells, index, "modality")))
        ],
        canonical_countries=normalize_countries(countries),
        funding_category=determine_funding_category(funding_type, coverage),
    )


def parse_sheet(payload: str, now: Optional[datetime] = None) -> List[Scholarship]:
    """
    Parse a raw sheet response into scholarships.

    Args:
        payload: Raw gviz response text.
        now: Reference time for expiry checks.

    Returns:
        Scholarships in sheet order; incomplete rows are dropped.

    Raises:
        ParseError: If the response cannot be decoded.
        MissingColumnsError: If the name or link column cannot be found.
    """
    table = parse_sheet_response(payload)["table"]
    headers = extract_headers(table)
    index = build_column_index(headers)

    missing = [key for key in REQUIRED_COLUMNS if key not in index]
    if missing:
        raise MissingColumnsError(missing)

    scholarships = []
    dropped = 0
    for row_number, row in enumerate(table.get("rows") or []):
        cells = row.get("c") if isinstance(row, dict) else None
        scholarship = map_row(cells, index, now=now)
        if scholarship is None:
            dropped += 1
            logger.debug(f"Skipping sheet row {row_number}: missing name or link")
            continue
        scholarships.append(scholarship)

    logger.info(f"Parsed {len(scholarships)} scholarship(s) from sheet ({dropped} row(s) skipped)")
    return scholarships


def fetch_sheet(
    url: str = DEFAULT_SHEET_URL,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    now: Optional[datetime] = None
) -> List[Scholarship]:
    """
    Fetch and parse the published sheet.

    Args:
        url: Sheet endpoint returning gviz JSON.
        session: Session to reuse. A new one is created (and closed) if None.
        timeout: Request timeout in seconds.
        now: Reference time for expiry checks.

    Returns:
        Parsed scholarships.

    Raises:
        SheetFetchError: If the endpoint could not be retrieved.
        ParseError: If the response cannot be decoded.
        MissingColumnsError: If the name or link column cannot be found.
    """
    owns_session = session is None
    if owns_session:
        session = create_session()

    try:
        result = fetch_single_url(url, session, timeout)
    finally:
        if owns_session:
            session.close()

    if not result.success or result.content is None:
        raise SheetFetchError(f"Failed to fetch spreadsheet: {result.error_message}")

    return parse_sheet(result.content, now=now)
