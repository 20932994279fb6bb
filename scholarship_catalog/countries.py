"""
Country classifier for the Scholarship Catalog.

Maps verbose location strings from the sheet ("Multiple universities in
the UK", "Remote (USA)", "Oxford") to canonical country names. This is a
best-effort heuristic: unknown tokens are title-cased rather than dropped,
and the sentinels "Global" and "Multiple" stand in when nothing specific
can be recognized.
"""

import re
from typing import Iterable, List, Optional

from scholarship_catalog.normalize import unique


GLOBAL = "Global"
MULTIPLE = "Multiple"

COUNTRY_ALIASES = {
    "uk": "United Kingdom",
    "u.k.": "United Kingdom",
    "england": "United Kingdom",
    "scotland": "United Kingdom",
    "wales": "United Kingdom",
    "britain": "United Kingdom",
    "usa": "United States",
    "us": "United States",
    "u.s.": "United States",
    "u.s.a.": "United States",
    "america": "United States",
    "uae": "United Arab Emirates",
    "ksa": "Saudi Arabia",
    "holland": "Netherlands",
    "korea": "South Korea",
}

CITY_TO_COUNTRY = {
    "london": "United Kingdom",
    "edinburgh": "United Kingdom",
    "birmingham": "United Kingdom",
    "bristol": "United Kingdom",
    "cambridge": "United Kingdom",
    "oxford": "United Kingdom",
    "nottingham": "United Kingdom",
    "liverpool": "United Kingdom",
    "coventry": "United Kingdom",
    "toronto": "Canada",
    "beijing": "China",
    "shanghai": "China",
    "hong kong": "China",
    "hongkong": "China",
    "zurich": "Switzerland",
    "geneva": "Switzerland",
    "paris": "France",
    "reims": "France",
    "delft": "Netherlands",
    "groningen": "Netherlands",
    "amsterdam": "Netherlands",
    "nijmegen": "Netherlands",
    "enschede": "Netherlands",
    "maastricht": "Netherlands",
    "leuven": "Belgium",
    "gothenburg": "Sweden",
    "uppsala": "Sweden",
    "lund": "Sweden",
    "stockholm": "Sweden",
    "roskilde": "Denmark",
    "thuwal": "Saudi Arabia",
    "melbourne": "Australia",
    "sydney": "Australia",
    "oregon": "United States",
}

KNOWN_COUNTRIES = [
    "United Kingdom",
    "United States",
    "United Arab Emirates",
    "Netherlands",
    "Spain",
    "Austria",
    "Switzerland",
    "Thailand",
    "Turkey",
    "Singapore",
    "South Korea",
    "Sweden",
    "New Zealand",
    "Oman",
    "Portugal",
    "Qatar",
    "Russia",
    "Saudi Arabia",
    "Italy",
    "Japan",
    "Iceland",
    "Hungary",
    "Germany",
    "China",
    "Canada",
    "France",
    "Finland",
    "India",
    "Denmark",
    "Belgium",
    "Australia",
    "Uganda",
    "Norway",
    "Ireland",
]

# Includes the sentinels so that they survive normalization unchanged
RECOGNIZED = set(KNOWN_COUNTRIES) | {GLOBAL, MULTIPLE, "Various"}

MULTI_MARKERS = ("multi", "various", "multiple universities")
REMOTE_MARKERS = ("remote", "online")

# Institution fragments that must not be read as places
INSTITUTION_MARKERS = (
    "university",
    "institut",
    "nus",
    "ntu",
    "smu",
    "sutd",
    "cas",
    "ucas",
    "ustc",
)

_TOKEN_SPLIT = re.compile(r"[,;]|\s+")
_NON_LETTERS = re.compile(r"[^a-zA-Z.]")


def _title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def normalize_country_name(raw: str) -> str:
    """
    Normalize a single country-like string.

    Checks aliases, then city names, then the known country list;
    anything else is title-cased.

    Args:
        raw: A country, city or alias.

    Returns:
        Canonical country name, or the title-cased input.
    """
    normalized = raw.strip().lower()

    if normalized in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[normalized]

    for city, country in CITY_TO_COUNTRY.items():
        if city in normalized:
            return country

    for country in RECOGNIZED:
        if normalized == country.lower():
            return country

    return _title_case(raw.strip())


def _is_recognized(name: str) -> bool:
    return name in RECOGNIZED


def _scan_phrases(lowered: str) -> List[str]:
    """Find multi-word country and city names on word boundaries."""
    found = []
    for country in KNOWN_COUNTRIES:
        if " " in country and re.search(rf"\b{re.escape(country.lower())}\b", lowered):
            found.append(country)
    for city, country in CITY_TO_COUNTRY.items():
        if " " in city and re.search(rf"\b{re.escape(city)}\b", lowered):
            found.append(country)
    return found


def _first_recognized(words: Iterable[str]) -> Optional[str]:
    for word in words:
        cleaned = _NON_LETTERS.sub("", word)
        if not cleaned:
            continue
        country = normalize_country_name(cleaned)
        if _is_recognized(country):
            return country
    return None


def extract_countries(location: Optional[str]) -> List[str]:
    """
    Extract canonical country names from a verbose location string.

    Args:
        location: Free-text location from the sheet.

    Returns:
        Canonical countries in first-found order. ["Global"] when empty or
        remote without a base country, ["Multiple"] for unspecified
        multi-country listings.
    """
    text = (location or "").strip()
    if not text:
        return [GLOBAL]

    lowered = text.lower()

    if any(marker in lowered for marker in MULTI_MARKERS):
        countries = list(_scan_phrases(lowered))
        for part in text.split():
            clean = re.sub(r"[^a-zA-Z]", "", part)
            if len(clean) > 2:
                country = normalize_country_name(clean)
                if country in KNOWN_COUNTRIES:
                    countries.append(country)
        countries = unique(countries)
        return countries or [MULTIPLE]

    if any(marker in lowered for marker in REMOTE_MARKERS):
        phrases = _scan_phrases(lowered)
        if phrases:
            return [phrases[0]]
        base = _first_recognized(text.split())
        if base and base in KNOWN_COUNTRIES:
            return [base]
        return [GLOBAL]

    countries = _scan_phrases(lowered)
    parts = [part.strip() for part in _TOKEN_SPLIT.split(text) if part and part.strip()]

    for part in parts:
        cleaned = _NON_LETTERS.sub("", part)
        cleaned_lower = cleaned.lower()
        if len(cleaned) < 3 or any(marker in cleaned_lower for marker in INSTITUTION_MARKERS):
            continue

        country = normalize_country_name(cleaned)
        if _is_recognized(country) or cleaned_lower in CITY_TO_COUNTRY:
            countries.append(country)

    countries = unique(countries)
    if countries:
        return countries

    first = _first_recognized(text.split()[:1])
    if first:
        return [first]

    if len(parts) == 1:
        return [normalize_country_name(parts[0])]

    return [GLOBAL]


def normalize_countries(countries: Optional[Iterable[str]]) -> List[str]:
    """
    Resolve a list of location strings to a sorted set of countries.

    Args:
        countries: Location strings as listed in the sheet.

    Returns:
        Sorted canonical country names; ["Global"] when the list is empty.
    """
    entries = [entry for entry in (countries or []) if entry and entry.strip()]
    if not entries:
        return [GLOBAL]

    resolved = set()
    for entry in entries:
        resolved.update(extract_countries(entry))

    return sorted(resolved)
