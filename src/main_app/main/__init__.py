"""
main - Main Blueprint

This blueprint handles the service-level routes:
- Health check (health)
- API index (index)
"""

from flask import Blueprint

bp = Blueprint("main", __name__)

from main_app.main import routes  # Import routes after bp is created
