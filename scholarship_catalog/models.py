"""
Data model for the Scholarship Catalog.

Records flow through three shapes:
- Scholarship: one normalized spreadsheet row
- ScholarshipPreview: a scholarship plus a preview image and short description
- ScholarshipDetail: a preview plus an image gallery and long-form text

Attributes are snake_case in Python; to_dict() produces the camelCase
keys served by the API.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional


# Assigned when no level keyword is recognized
DEFAULT_LEVEL = "Other"


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return list(value)
    return value


@dataclass
class Scholarship:
    """
    A single scholarship listing normalized from one spreadsheet row.

    Attributes:
        id: Deterministic identifier derived from name and link.
        name: Scholarship name (mandatory).
        link: External application link (mandatory).
        countries: Country entries as written in the sheet.
        level_tags: Canonical study levels, never empty.
        coverage: Covered items (tuition, stipend, ...).
        funding_type: Funding label from the sheet, if any.
        organisation: Offering organisation, if any.
        deadline_label: Human-readable deadline text.
        deadline_date: Parsed deadline at midday local time, if parseable.
        is_expired: Whether the deadline lies in the past.
        sheet_summary: Short summary column from the sheet.
        sheet_breakdown: Detailed breakdown column from the sheet.
        eligibility: Eligibility criteria.
        subjects: Available subjects.
        delivery_modes: On-campus / remote delivery modes.
        canonical_countries: Countries resolved by the country classifier.
        funding_category: Full / Partial / "(and more)" variants, or None.
    """
    id: str
    name: str
    link: str
    countries: List[str] = field(default_factory=list)
    level_tags: List[str] = field(default_factory=lambda: [DEFAULT_LEVEL])
    coverage: List[str] = field(default_factory=list)
    funding_type: Optional[str] = None
    organisation: Optional[str] = None
    deadline_label: str = "Rolling"
    deadline_date: Optional[datetime] = None
    is_expired: bool = False
    sheet_summary: Optional[str] = None
    sheet_breakdown: Optional[str] = None
    eligibility: List[str] = field(default_factory=list)
    subjects: List[str] = field(default_factory=list)
    delivery_modes: List[str] = field(default_factory=list)
    canonical_countries: List[str] = field(default_factory=list)
    funding_category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary representation."""
        return {
            _camel_case(f.name): _serialize(getattr(self, f.name))
            for f in fields(self)
        }

    def base_fields(self) -> Dict[str, Any]:
        """Return the fields shared by every scholarship shape."""
        return {f.name: getattr(self, f.name) for f in fields(Scholarship)}


@dataclass
class ScholarshipPreview(Scholarship):
    """Scholarship with a representative image and short description."""
    preview_image: Optional[str] = None
    short_description: Optional[str] = None
    metadata_refreshed_at: Optional[datetime] = None

    @classmethod
    def from_scholarship(
        cls,
        scholarship: Scholarship,
        preview_image: Optional[str] = None,
        short_description: Optional[str] = None,
        metadata_refreshed_at: Optional[datetime] = None
    ) -> "ScholarshipPreview":
        return cls(
            **scholarship.base_fields(),
            preview_image=preview_image,
            short_description=short_description,
            metadata_refreshed_at=metadata_refreshed_at,
        )


@dataclass
class ScholarshipDetail(ScholarshipPreview):
    """Preview with the full image gallery and long-form description."""
    images: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    long_description: Optional[str] = None
    image_alt: Optional[str] = None

    @classmethod
    def from_preview(
        cls,
        preview: ScholarshipPreview,
        images: List[str],
        summary: Optional[str],
        long_description: Optional[str],
        image_alt: Optional[str] = None
    ) -> "ScholarshipDetail":
        return cls(
            **preview.base_fields(),
            preview_image=preview.preview_image,
            short_description=preview.short_description,
            metadata_refreshed_at=preview.metadata_refreshed_at,
            images=list(images),
            summary=summary,
            long_description=long_description,
            image_alt=image_alt,
        )


@dataclass
class MetadataEntry:
    """
    Metadata scraped from a scholarship's external page.

    Values are stored as scraped; record-specific fallbacks are applied
    when the entry is merged into a scholarship.
    """
    images: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    long_description: Optional[str] = None
    fetched_at: Optional[datetime] = None
