"""
main/routes.py - Main Blueprint Routes

Routes for service status and discovery.
"""

from __future__ import annotations

from flask import Response, jsonify

from main_app import get_context
from main_app.main import bp
from refops import __version__


@bp.route("/health")
def health() -> Response:
    """
    Health check endpoint returning service status and metadata.

    Returns:
        Response: JSON object with keys:
            - "status": service health string (e.g., "healthy").
            - "service": service name.
            - "version": service version.
            - "templates": number of templates in the loaded registry.
    """
    return jsonify({
        "status": "healthy",
        "service": "refhelper",
        "version": __version__,
        "templates": len(get_context()),
    })


@bp.route("/")
def index() -> Response:
    """List the API endpoints and the registered templates."""
    return jsonify({
        "service": "refhelper",
        "templates": [metadata.name for metadata in get_context()],
        "endpoints": {
            "POST /api/scan": "List the citations and references of a document",
            "POST /api/update": "Rewrite a reference and rename its citations",
            "POST /api/remove": "Remove a reference or a citation",
            "POST /api/cite": "Cite an existing reference at a position",
            "POST /api/insert": "Insert a new reference at a position",
            "GET /api/templates": "List the known reference templates",
        },
    })
