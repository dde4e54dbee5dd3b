# agrobridge/server/api.py

"""Flask JSON API exposing the location-filtered category query.

``GET /`` answers a plain-text liveness message and
``GET /products/category/<category>`` answers one page of the category,
split into deliverable and non-deliverable products for the caller's
coordinates.

Query parameters:
    page (int): Required, >= 1.
    products_per_page (int): Required, >= 1.
    lng, lat (float): Required, finite WGS84 degrees within ±180 / ±90.
"""

import logging
from math import isfinite

from flask import Flask, jsonify, request

from agrobridge.models.location import Location
from agrobridge.server.catalog_db import CatalogDB
from agrobridge.server.geo_query import query_category

logger = logging.getLogger("agrobridge.server")

HEALTH_TEXT = "AgroBridge Server is running"


def create_app(catalog: CatalogDB) -> Flask:
    """Factory to create and configure the Flask application instance."""
    app = Flask(__name__)

    @app.route("/")
    def index():
        """Liveness probe used by the health checker."""
        return HEALTH_TEXT

    @app.route("/products/category/<category>")
    def products_by_category(category: str):
        """Return one page of *category* for the caller's location."""
        page = request.args.get("page", type=int)
        page_size = request.args.get("products_per_page", type=int)
        lng = request.args.get("lng", type=float)
        lat = request.args.get("lat", type=float)

        if page is None or page_size is None or lng is None or lat is None:
            return jsonify({
                "message": "page, products_per_page, lng and lat are required"
            }), 400
        if page < 1 or page_size < 1:
            return jsonify({
                "message": "page and products_per_page must be positive"
            }), 400
        if not (isfinite(lng) and isfinite(lat)):
            return jsonify({"message": "lng and lat must be finite numbers"}), 400
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            return jsonify({
                "message": "lng must be within ±180 and lat within ±90"
            }), 400

        try:
            products = catalog.get_by_category(category)
            body = query_category(
                products, page, page_size, Location(lng, lat)
            )
        except Exception:
            logger.error(
                "Category query failed for '%s'", category, exc_info=True,
            )
            return jsonify({"message": "Internal server error"}), 500

        logger.info(
            "GET category=%s page=%d size=%d -> %d/%d hasMore=%s",
            category,
            page,
            page_size,
            len(body["deliverableProducts"]),
            len(body["nonDeliverableProducts"]),
            body["hasMore"],
        )
        return jsonify(body), 200

    return app
