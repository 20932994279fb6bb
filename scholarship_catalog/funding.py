"""
Funding classifier for the Scholarship Catalog.

Derives one of four funding categories from a scholarship's funding-type
label and coverage items:
- "Full": full funding only
- "Partial": partial funding only
- "Full (and more)": full funding with additional benefits
- "Partial (and more)": partial funding with additional benefits
"""

from typing import List, Optional, Sequence


FULL = "Full"
PARTIAL = "Partial"
FULL_AND_MORE = "Full (and more)"
PARTIAL_AND_MORE = "Partial (and more)"

FULL_KEYWORDS = ["full tuition", "full coverage", "fully funded", "complete funding"]
PARTIAL_KEYWORDS = ["partial tuition", "partial coverage", "partial support"]

# Benefits beyond base tuition funding
ADDITIONAL_BENEFIT_KEYWORDS = [
    "living allowance",
    "stipend",
    "travel",
    "accommodation",
    "housing",
    "meals",
    "flight",
    "airfare",
    "relocation",
    "book allowance",
    "research grant",
    "conference",
]

# Coverage item counts used when no keyword decides
FULL_COVERAGE_MIN_ITEMS = 3


def _infer_from_label(funding_type: Optional[str]) -> Optional[str]:
    if not funding_type:
        return None

    lowered = funding_type.lower()
    if "full" in lowered:
        return FULL
    if "partial" in lowered:
        return PARTIAL
    return None


def _infer_from_coverage(coverage: Sequence[str]) -> Optional[str]:
    if not coverage:
        return None

    coverage_text = " ".join(coverage).lower()
    if any(keyword in coverage_text for keyword in FULL_KEYWORDS):
        return FULL
    if any(keyword in coverage_text for keyword in PARTIAL_KEYWORDS):
        return PARTIAL
    if len(coverage) >= FULL_COVERAGE_MIN_ITEMS:
        return FULL
    return PARTIAL


def has_additional_benefits(coverage: Sequence[str]) -> bool:
    coverage_text = " ".join(coverage or []).lower()
    return any(keyword in coverage_text for keyword in ADDITIONAL_BENEFIT_KEYWORDS)


def determine_funding_category(
    funding_type: Optional[str],
    coverage: Optional[Sequence[str]]
) -> Optional[str]:
    """
    Determine the funding category of a scholarship.

    The funding-type label decides full vs. partial when it says so;
    otherwise coverage keywords, then the number of coverage items.

    Args:
        funding_type: Funding label from the sheet, e.g. "Full Tuition".
        coverage: Coverage items, e.g. ["Tuition", "Stipend"].

    Returns:
        One of the four categories, or None when neither input carries
        any signal.
    """
    coverage = list(coverage or [])

    base = _infer_from_label(funding_type) or _infer_from_coverage(coverage)
    if base is None:
        return None

    if has_additional_benefits(coverage):
        return FULL_AND_MORE if base == FULL else PARTIAL_AND_MORE
    return base


def get_all_funding_categories() -> List[str]:
    """All funding categories, in filter display order."""
    return [FULL, PARTIAL, FULL_AND_MORE, PARTIAL_AND_MORE]
