"""
Scholarship Catalog - curated scholarship listings from a published sheet.

This package provides functionality to:
- Fetch the published scholarship spreadsheet and map its columns by header
- Normalize free-text fields (lists, levels, deadlines, ids)
- Classify countries and funding categories
- Enrich listings with metadata scraped from each scholarship's page
- Serve the assembled catalog over a small JSON API
"""

__version__ = "1.0.0"
__author__ = "Scholarship Catalog Team"
