"""
Tests for the export entry point, settings and record serialization.
"""

import json
import os
import tempfile
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from scholarship_catalog.config import (
    DEFAULT_ENRICH_CONCURRENCY,
    DEFAULT_SHEET_URL,
    CatalogSettings,
)
from scholarship_catalog.main import (
    DEFAULT_OUTPUT_PATH,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    get_output_filepath,
    run_pipeline,
)
from scholarship_catalog.models import Scholarship, ScholarshipPreview
from scholarship_catalog.presenters import (
    build_scholarship_excerpt,
    build_scholarship_image_alt,
    format_list,
)
from scholarship_catalog.sheets import SheetFetchError


class TestGetOutputFilepath:
    """Tests for output path resolution."""

    def test_default(self):
        """Test the default path is used without DATA_PATH."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_output_filepath() == DEFAULT_OUTPUT_PATH

    def test_custom(self):
        """Test DATA_PATH overrides the default."""
        with patch.dict(os.environ, {"DATA_PATH": " /tmp/out.json "}):
            assert get_output_filepath() == "/tmp/out.json"


class TestRunPipeline:
    """Tests for the export run."""

    def test_writes_snapshot(self):
        """Test the catalog is written as a JSON snapshot."""
        catalog = MagicMock()
        catalog.load_scholarships_fresh.return_value = [
            ScholarshipPreview(
                id="alpha-1",
                name="Alpha Award",
                link="https://alpha.example",
                deadline_date=datetime(2025, 6, 1, 12, 0),
                funding_category="Full",
            )
        ]

        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "data", "scholarships.json")

            assert run_pipeline(path, catalog=catalog) == EXIT_SUCCESS

            with open(path, encoding="utf-8") as f:
                data = json.load(f)

        assert data["count"] == 1
        assert data["last_updated"].endswith("Z")
        assert data["scholarships"][0]["id"] == "alpha-1"
        assert data["scholarships"][0]["deadlineDate"] == "2025-06-01T12:00:00"
        catalog.close.assert_not_called()

    def test_sheet_failure(self):
        """Test ingestion failures produce a failing exit code and no file."""
        catalog = MagicMock()
        catalog.load_scholarships_fresh.side_effect = SheetFetchError("HTTP 500")

        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "scholarships.json")

            assert run_pipeline(path, catalog=catalog) == EXIT_FAILURE
            assert not os.path.exists(path)


class TestCatalogSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Test defaults apply without environment overrides."""
        with patch.dict(os.environ, {}, clear=True):
            settings = CatalogSettings.from_env()

        assert settings.sheet_url == DEFAULT_SHEET_URL
        assert settings.enrich_concurrency == DEFAULT_ENRICH_CONCURRENCY

    def test_overrides(self):
        """Test environment values override defaults."""
        env = {
            "SHEET_URL": "https://sheets.example/gviz",
            "METADATA_TTL_SECONDS": "60",
            "ENRICH_CONCURRENCY": "8",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = CatalogSettings.from_env()

        assert settings.sheet_url == "https://sheets.example/gviz"
        assert settings.metadata_ttl_seconds == 60.0
        assert settings.enrich_concurrency == 8

    def test_invalid_values_keep_defaults(self):
        """Test unparseable numbers fall back to defaults."""
        with patch.dict(os.environ, {"ENRICH_CONCURRENCY": "lots"}, clear=True):
            settings = CatalogSettings.from_env()

        assert settings.enrich_concurrency == DEFAULT_ENRICH_CONCURRENCY

    def test_concurrency_at_least_one(self):
        """Test concurrency is clamped to one worker."""
        with patch.dict(os.environ, {"ENRICH_CONCURRENCY": "0"}, clear=True):
            assert CatalogSettings.from_env().enrich_concurrency == 1


class TestToDict:
    """Tests for record serialization."""

    def test_camel_case_keys(self):
        """Test keys are camelCase and defaults are present."""
        data = Scholarship(id="a", name="A", link="https://a.example").to_dict()

        assert data["levelTags"] == ["Other"]
        assert data["deadlineLabel"] == "Rolling"
        assert data["deadlineDate"] is None
        assert data["isExpired"] is False
        assert "canonicalCountries" in data


class TestPresenters:
    """Tests for template text."""

    @pytest.mark.parametrize("values,expected", [
        ([], ""),
        (["a"], "a"),
        (["a", "b"], "a and b"),
        (["a", "b", "c"], "a, b, and c"),
    ])
    def test_format_list(self, values, expected):
        """Test list joining."""
        assert format_list(values) == expected

    def test_excerpt(self):
        """Test the excerpt reads from levels, countries, coverage and deadline."""
        scholarship = Scholarship(
            id="a",
            name="Alpha Award",
            link="https://a.example",
            countries=["Germany"],
            level_tags=["Masters", "PhD"],
            coverage=["Tuition", "Stipend"],
            deadline_label="Sunday, June 1st, 2025",
        )

        assert build_scholarship_excerpt(scholarship) == (
            "Alpha Award rewards masters and phd pursuing opportunities in Germany. "
            "Highlights include tuition and stipend. "
            "Submit your application by Sunday, June 1st, 2025."
        )

    def test_excerpt_without_details(self):
        """Test generic wording when fields are empty."""
        scholarship = Scholarship(id="a", name="Alpha", link="x", level_tags=[])

        excerpt = build_scholarship_excerpt(scholarship)

        assert "exceptional scholars" in excerpt
        assert "global talent" in excerpt
        assert "Comprehensive benefits" in excerpt

    def test_image_alt(self):
        """Test alt text wording."""
        scholarship = Scholarship(id="a", name="Alpha", link="x", countries=["Chile"])

        assert build_scholarship_image_alt(scholarship) == (
            "Alpha scholarship imagery celebrating other heading to Chile."
        )
