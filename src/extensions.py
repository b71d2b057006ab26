"""
extensions.py - Flask Extensions Module

This module initializes Flask extensions without binding them to a specific
application instance, so they can be imported anywhere without circular
imports. They are bound to the app in create_app() with the init_app pattern.

Example:
    from extensions import csrf, limiter

    def create_app(config_class=Config):
        app = Flask(__name__)
        app.config.from_object(config_class)

        csrf.init_app(app)
        limiter.init_app(app)

        return app
"""

from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

# Deferred initialization; bound in create_app()
csrf = CSRFProtect()

# Default limits and storage come from RATELIMIT_DEFAULT / RATELIMIT_STORAGE_URI.
# Limits can be customized per-route using @limiter.limit()
limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
)
