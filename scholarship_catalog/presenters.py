"""
Template text for scholarships without scraped descriptions.

Every record must always carry some readable description, so these
excerpts are composed from the record's own structured fields.
"""

from typing import Sequence

from scholarship_catalog.models import Scholarship


def format_list(values: Sequence[str], conjunction: str = "and") -> str:
    """Join values as "a", "a and b" or "a, b, and c"."""
    if not values:
        return ""
    if len(values) == 1:
        return values[0]
    if len(values) == 2:
        return f"{values[0]} {conjunction} {values[1]}"
    return f"{', '.join(values[:-1])}, {conjunction} {values[-1]}"


def build_scholarship_excerpt(scholarship: Scholarship) -> str:
    """
    Compose a short description from levels, countries, coverage and deadline.

    Args:
        scholarship: Any scholarship shape.

    Returns:
        A one-paragraph description.
    """
    location = format_list(scholarship.countries) if scholarship.countries else "global talent"
    level = format_list(scholarship.level_tags) if scholarship.level_tags else "exceptional scholars"

    coverage = scholarship.coverage[:3]
    if coverage:
        coverage_text = f"Highlights include {format_list(coverage).lower()}."
    else:
        coverage_text = "Comprehensive benefits support your journey abroad."

    deadline = scholarship.deadline_label or "a rolling review timeline"
    return (
        f"{scholarship.name} rewards {level.lower()} pursuing opportunities in {location}. "
        f"{coverage_text} Submit your application by {deadline}."
    )


def build_scholarship_image_alt(scholarship: Scholarship) -> str:
    location = format_list(scholarship.countries) if scholarship.countries else "global destinations"
    level = format_list(scholarship.level_tags) if scholarship.level_tags else "emerging leaders"
    return f"{scholarship.name} scholarship imagery celebrating {level.lower()} heading to {location}."
