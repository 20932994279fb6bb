"""
Tests for the normalize module.

Tests cover:
- List splitting on every supported delimiter
- Level keyword matching and the fallback category
- Deadline parsing (formats, generic fallback, DATE literals, rolling text)
- Deterministic scholarship ids
- Text block and capitalization helpers
"""

import pytest
from datetime import datetime

from scholarship_catalog.models import DEFAULT_LEVEL
from scholarship_catalog.normalize import (
    capitalize,
    create_scholarship_id,
    format_deadline_label,
    normalize_levels,
    normalize_list,
    normalize_text_block,
    parse_deadline,
    slugify,
    unique,
)


class TestNormalizeList:
    """Tests for free-text list splitting."""

    def test_splits_on_all_delimiters(self):
        """Test every delimiter produces separate entries."""
        text = "Tuition\nStipend, Travel; Housing/Books|Meals • Insurance"

        assert normalize_list(text) == [
            "Tuition", "Stipend", "Travel", "Housing", "Books", "Meals", "Insurance"
        ]

    def test_drops_empty_entries(self):
        """Test that runs of delimiters and whitespace yield no empty strings."""
        result = normalize_list(" ,; \n , UK ,, ;  USA /// ")

        assert result == ["UK", "USA"]
        assert all(entry for entry in result)

    @pytest.mark.parametrize("value", [None, "", "   ", ",;/|", 42])
    def test_empty_or_invalid_input(self, value):
        """Test that blank or non-string input returns an empty list."""
        assert normalize_list(value) == []


class TestNormalizeLevels:
    """Tests for study level normalization."""

    def test_simple_levels(self):
        """Test common level names map to canonical tags."""
        assert normalize_levels("Masters") == ["Masters"]
        assert normalize_levels("PhD") == ["PhD"]
        assert normalize_levels("Undergraduate") == ["Undergraduate"]

    def test_and_separator(self):
        """Test that ' and ' splits tokens."""
        assert normalize_levels("Masters and PhD") == ["Masters", "PhD"]

    def test_dash_separator_and_list(self):
        """Test dash separators and list delimiters."""
        assert normalize_levels("Bachelor - Master, Doctoral") == ["Undergraduate", "Masters", "PhD"]

    def test_keyword_variants(self):
        """Test keyword variants such as doctoral, MBA and business administration."""
        assert normalize_levels("Doctoral programme") == ["PhD"]
        assert normalize_levels("MBA") == ["MBA"]
        assert normalize_levels("Master of Business Administration") == ["Masters", "MBA"]
        assert normalize_levels("Postdoc fellow") == ["Postdoctoral", "Fellowship"]

    def test_graduate_does_not_match_inside_undergraduate(self):
        """Test word-boundary matching keeps undergraduate distinct."""
        assert normalize_levels("Undergraduate") == ["Undergraduate"]
        assert normalize_levels("Postgraduate") == ["Postgraduate"]

    def test_any_level_expands(self):
        """Test that any/all/various/multiple expand to both broad levels."""
        assert normalize_levels("Any level") == ["Undergraduate", "Postgraduate"]
        assert normalize_levels("All levels") == ["Undergraduate", "Postgraduate"]

    def test_deduplicates(self):
        """Test that repeated levels appear once."""
        assert normalize_levels("Masters / Master's / MSc") == ["Masters"]

    @pytest.mark.parametrize("value", [None, "", "Unknown", "????", "High school"])
    def test_never_empty(self, value):
        """Test that unrecognized input falls back to the default category."""
        assert normalize_levels(value) == [DEFAULT_LEVEL]


class TestParseDeadline:
    """Tests for deadline parsing."""

    def test_rolling(self):
        """Test rolling deadlines have no date."""
        info = parse_deadline("Rolling")

        assert info.label == "Rolling"
        assert info.date is None

    def test_empty_is_rolling(self):
        """Test empty input is treated as rolling."""
        assert parse_deadline("").label == "Rolling"
        assert parse_deadline("").date is None
        assert parse_deadline(None).date is None
        assert parse_deadline("   ").label == "Rolling"

    @pytest.mark.parametrize("text", ["open until filled", "Varies", "TBA", "N/A", "ongoing"])
    def test_rolling_keywords(self, text):
        """Test every rolling keyword yields a capitalized label and no date."""
        info = parse_deadline(text)

        assert info.date is None
        assert info.label == capitalize(text)

    def test_iso_date(self):
        """Test ISO dates parse to midday with a formatted label."""
        info = parse_deadline("2025-06-01")

        assert info.date == datetime(2025, 6, 1, 12, 0)
        assert info.label == "Sunday, June 1st, 2025"

    @pytest.mark.parametrize("text", [
        "1 June 2025",
        "1 Jun 2025",
        "June 1, 2025",
        "Jun 1, 2025",
        "06/01/2025",
    ])
    def test_known_formats(self, text):
        """Test each supported format resolves to the same day."""
        info = parse_deadline(text)

        assert info.date == datetime(2025, 6, 1, 12, 0)

    def test_day_first_fallback(self):
        """Test day-first dates that cannot be month-first."""
        info = parse_deadline("25/12/2025")

        assert info.date == datetime(2025, 12, 25, 12, 0)
        assert info.label == "Thursday, December 25th, 2025"

    def test_month_year(self):
        """Test month-year deadlines land on the first of the month."""
        assert parse_deadline("March 2026").date == datetime(2026, 3, 1, 12, 0)

    def test_generic_fallback(self):
        """Test the generic parser handles formats outside the fixed list."""
        info = parse_deadline("2025-06-01T23:30:00Z")

        assert info.date == datetime(2025, 6, 1, 12, 0)

    def test_generic_fallback_with_ordinal_day(self):
        """Test the generic parser handles ordinal days with a month name."""
        info = parse_deadline("1st June 2025")

        assert info.date == datetime(2025, 6, 1, 12, 0)

    @pytest.mark.parametrize("text,label", [
        ("June", "June"),
        ("2025", "2025"),
        ("10", "10"),
        ("15 June", "15 June"),
    ])
    def test_partial_dates_have_no_date(self, text, label):
        """Test partial dates are never completed from today's date."""
        info = parse_deadline(text)

        assert info.date is None
        assert info.label == label

    def test_formula_literal(self):
        """Test a leftover DATE(y,m,d) formula literal."""
        info = parse_deadline("DATE(2025,6,1)")

        assert info.date == datetime(2025, 6, 1, 12, 0)

    def test_gviz_date_literal_is_zero_based(self):
        """Test a gviz Date(y,m,d) value uses zero-based months."""
        info = parse_deadline("Date(2025,5,1)")

        assert info.date == datetime(2025, 6, 1, 12, 0)

    def test_unparseable_text(self):
        """Test unparseable text keeps a capitalized label and no date."""
        info = parse_deadline("closes when quota is reached")

        assert info.date is None
        assert info.label == "Closes When Quota Is Reached"


class TestFormatDeadlineLabel:
    """Tests for ordinal deadline labels."""

    @pytest.mark.parametrize("day,expected", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"),
        (11, "11th"), (12, "12th"), (13, "13th"),
        (21, "21st"), (22, "22nd"), (23, "23rd"), (31, "31st"),
    ])
    def test_ordinals(self, day, expected):
        """Test ordinal suffixes, including the teens."""
        label = format_deadline_label(datetime(2025, 1, day))

        assert f"January {expected}, 2025" in label


class TestCreateScholarshipId:
    """Tests for scholarship id generation."""

    def test_deterministic(self):
        """Test identical inputs give identical ids."""
        first = create_scholarship_id("Chevening Scholarship", "https://chevening.org")
        second = create_scholarship_id("Chevening Scholarship", "https://chevening.org")

        assert first == second

    def test_format(self):
        """Test the id is the name slug plus an 8 character hash."""
        scholarship_id = create_scholarship_id("Chevening Scholarship", "https://chevening.org")

        slug, digest = scholarship_id.rsplit("-", 1)
        assert slug == "chevening-scholarship"
        assert len(digest) == 8

    def test_changes_with_name_or_link(self):
        """Test that changing either input changes the id."""
        base = create_scholarship_id("Chevening Scholarship", "https://chevening.org")

        assert create_scholarship_id("Chevening Scholarships", "https://chevening.org") != base
        assert create_scholarship_id("Chevening Scholarship", "https://chevening.org/apply") != base

    def test_name_and_link_boundary(self):
        """Test moving characters between name and link changes the id."""
        assert create_scholarship_id("a-", "b") != create_scholarship_id("a", "-b")
        assert create_scholarship_id("Award 2", "025") != create_scholarship_id("Award 20", "25")

    def test_non_latin_name(self):
        """Test names without slug characters still get an id."""
        scholarship_id = create_scholarship_id("奖学金", "https://example.cn")

        assert scholarship_id.startswith("scholarship-")


class TestHelpers:
    """Tests for small text helpers."""

    def test_capitalize(self):
        """Test words are title-cased."""
        assert capitalize("full TUITION  waiver") == "Full Tuition Waiver"

    def test_unique_preserves_order(self):
        """Test unique keeps first occurrences."""
        assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_slugify(self):
        """Test slugs are lowercase and hyphenated."""
        assert slugify("  United Kingdom! ") == "united-kingdom"

    def test_normalize_text_block(self):
        """Test whitespace is collapsed and blank lines squeezed."""
        text = "  First   line \n\n\n\n  Second\tline  "

        assert normalize_text_block(text) == "First line\n\nSecond line"

    def test_normalize_text_block_empty(self):
        """Test blank input returns None."""
        assert normalize_text_block("   \n  ") is None
        assert normalize_text_block(None) is None
