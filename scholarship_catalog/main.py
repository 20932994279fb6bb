#!/usr/bin/env python3
"""
Main entry point for the Scholarship Catalog.

Builds the catalog once:
fetch sheet → normalize rows → enrich metadata → sort → export

and writes the enriched scholarships to a JSON snapshot.
"""

import os
import sys
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional

from scholarship_catalog.catalog import Catalog
from scholarship_catalog.config import CatalogSettings
from scholarship_catalog.models import ScholarshipPreview
from scholarship_catalog.sheets import SheetError
from scholarship_catalog.utils import get_logger, safe_write_json, setup_logging


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

DEFAULT_OUTPUT_PATH = "data/scholarships.json"


def get_output_filepath() -> str:
    """
    Get the filepath for the exported snapshot.

    Checks for DATA_PATH environment variable,
    falls back to default path if not set.

    Returns:
        Path to the snapshot JSON file.
    """
    custom_path = os.environ.get("DATA_PATH", "")

    if custom_path.strip():
        return custom_path.strip()

    return DEFAULT_OUTPUT_PATH


def log_summary(scholarships: List[ScholarshipPreview]) -> None:
    """Log totals, expired count and the funding category breakdown."""
    logger = get_logger("main")

    expired = sum(1 for s in scholarships if s.is_expired)
    described = sum(1 for s in scholarships if s.preview_image)
    funding = Counter(s.funding_category or "Unknown" for s in scholarships)

    logger.info(f"Summary: {len(scholarships)} total, {expired} expired, {described} with images")
    for category, count in sorted(funding.items()):
        logger.info(f"  {category}: {count}")


def run_pipeline(output_path: str, catalog: Optional[Catalog] = None) -> int:
    """
    Load the catalog and export it as a JSON snapshot.

    Args:
        output_path: Destination of the snapshot.
        catalog: Catalog to load. Built from environment settings if None.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    logger = get_logger("main")

    logger.info("=" * 60)
    logger.info("Scholarship Catalog Export - Starting")
    logger.info("=" * 60)

    owns_catalog = catalog is None
    if owns_catalog:
        catalog = Catalog(CatalogSettings.from_env())

    try:
        scholarships = catalog.load_scholarships_fresh()
    except SheetError as e:
        logger.error(f"Unable to load scholarships: {e}")
        return EXIT_FAILURE
    finally:
        if owns_catalog:
            catalog.close()

    log_summary(scholarships)

    data = {
        "last_updated": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "count": len(scholarships),
        "scholarships": [s.to_dict() for s in scholarships],
    }
    if not safe_write_json(output_path, data):
        logger.error(f"Failed to write snapshot to {output_path}")
        return EXIT_FAILURE

    logger.info(f"Wrote {len(scholarships)} scholarship(s) to {output_path}")
    logger.info("=" * 60)
    logger.info("Scholarship Catalog Export - Complete")
    logger.info("=" * 60)

    return EXIT_SUCCESS


def main() -> int:
    """
    Main entry point for the catalog export.

    Sets up logging and runs the export with proper error handling.

    Returns:
        Exit code for the process.
    """
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    setup_logging(log_level)
    logger = get_logger("main")

    try:
        return run_pipeline(get_output_filepath())

    except KeyboardInterrupt:
        logger.warning("Export interrupted by user")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error in export: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
