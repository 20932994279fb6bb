"""
HTTP API for the Scholarship Catalog.

Routes:
- GET /scholarships              -> {"scholarships": [preview, ...]}
- GET /scholarships/facets       -> {"countries", "levels", "funding", "modalities", "eligibility"}
- GET /scholarships/<id>         -> detail, or 404 when the id is unknown

Only ingestion failures (the sheet cannot be fetched or parsed) surface as
errors (HTTP 500); enrichment problems are absorbed by the catalog.
"""

import os
import sys
from typing import Optional

from flask import Flask, jsonify, request

from scholarship_catalog.catalog import (
    SORT_OPTIONS,
    Catalog,
    build_facets,
    filter_scholarships,
    order_scholarships,
)
from scholarship_catalog.config import CatalogSettings
from scholarship_catalog.sheets import SheetError
from scholarship_catalog.utils import get_logger, setup_logging


logger = get_logger("api")

FALSE_VALUES = ("false", "0", "no")


def create_app(catalog: Optional[Catalog] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        catalog: Catalog to serve. Built from environment settings if None.

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    if catalog is None:
        catalog = Catalog(CatalogSettings.from_env())
    app.config["CATALOG"] = catalog

    @app.errorhandler(SheetError)
    def handle_sheet_error(error: SheetError):
        logger.error(f"Unable to load scholarships: {error}")
        return jsonify({"message": "Unable to load scholarships"}), 500

    @app.get("/scholarships")
    def list_scholarships():
        sort = request.args.get("sort", "name")
        if sort not in SORT_OPTIONS:
            return jsonify({"message": f"Unknown sort option: {sort}"}), 400

        scholarships = app.config["CATALOG"].load_scholarships()
        include_expired = request.args.get("include_expired", "true").lower() not in FALSE_VALUES

        matches = filter_scholarships(
            scholarships,
            country=request.args.get("country"),
            level=request.args.get("level"),
            funding=request.args.get("funding"),
            modality=request.args.get("modality"),
            eligibility=request.args.get("eligibility"),
            query=request.args.get("q"),
            include_expired=include_expired,
        )
        ordered = order_scholarships(matches, sort)
        return jsonify({"scholarships": [item.to_dict() for item in ordered]})

    @app.get("/scholarships/facets")
    def scholarship_facets():
        return jsonify(build_facets(app.config["CATALOG"].load_scholarships()))

    @app.get("/scholarships/<scholarship_id>")
    def scholarship_detail(scholarship_id: str):
        detail = app.config["CATALOG"].get_scholarship_detail(scholarship_id)
        if detail is None:
            return jsonify({"message": "Scholarship not found"}), 404
        return jsonify(detail.to_dict())

    return app


def main() -> int:
    """Serve the API with Flask's built-in server (HOST/PORT from environment)."""
    setup_logging(os.environ.get("LOG_LEVEL", "INFO").upper())

    host = os.environ.get("HOST", "127.0.0.1")
    try:
        port = int(os.environ.get("PORT", "8000"))
    except ValueError:
        logger.error(f"Invalid PORT value: {os.environ.get('PORT')!r}")
        return 2

    create_app().run(host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
