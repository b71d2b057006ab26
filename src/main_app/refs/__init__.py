"""
refs - References API Blueprint

This blueprint exposes the refops engine as stateless JSON endpoints:
- Scanning a document (scan)
- Editing references and citations (update, remove, cite, insert)
- Listing known templates (templates)

Every request carries the full document text; nothing is stored between requests.
"""

from flask import Blueprint

bp = Blueprint("refs", __name__)

from main_app.refs import routes  # Import routes after bp is created
