"""
main_app - Flask Application Package

This package exposes the refops engine as a stateless JSON API using the
factory pattern. The create_app() function is the entry point for creating
application instances.

Usage:
    # Development
    from main_app import create_app
    app = create_app()

    # Production
    from main_app import create_app
    from config import ProductionConfig
    app = create_app(ProductionConfig)

    # Testing
    from main_app import create_app
    from config import TestingConfig
    app = create_app(TestingConfig)
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from flask import Flask, Response, current_app, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from config import Config, DevelopmentConfig
from extensions import csrf, limiter
from refops.metadata import TemplateContext
from refops.templatedata import fetch_context, load_templatedata

# Key under app.extensions holding the TemplateContext
CONTEXT_KEY = "refops"


def create_app(config_class: Optional[type] = None) -> Flask:
    """
    Create and configure a Flask application with extensions, blueprints, error handlers, and the template registry.

    Parameters:
        config_class (type, optional): Configuration class to apply to the app. If omitted, uses DevelopmentConfig when the environment variable FLASK_DEBUG is "1", otherwise uses Config.

    Returns:
        Flask: The configured Flask application instance.
    """
    if config_class is None:
        if os.environ.get("FLASK_DEBUG") == "1":
            config_class = DevelopmentConfig
        else:
            config_class = Config

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    csrf.init_app(app)
    limiter.init_app(app)

    # Configure logging for production
    if not app.debug and not app.testing:
        _configure_logging(app)

    app.extensions[CONTEXT_KEY] = _load_context(app)

    # Register blueprints
    from main_app.main import bp as main_bp
    from main_app.refs import bp as refs_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(refs_bp, url_prefix="/api")

    # The JSON API carries no session cookie to protect
    csrf.exempt(refs_bp)

    app.register_error_handler(RequestEntityTooLarge, _handle_large_request)
    app.after_request(_add_security_headers)

    return app


def get_context() -> TemplateContext:
    """The TemplateContext of the current application."""
    return current_app.extensions[CONTEXT_KEY]


def _load_context(app: Flask) -> TemplateContext:
    """
    Build the template registry from the configured TemplateData source.

    TEMPLATEDATA_PATH wins over fetching; with neither configured the registry
    is empty and every reference is treated as free text.
    """
    language = app.config.get("CONTENT_LANGUAGE", "en")
    path = app.config.get("TEMPLATEDATA_PATH")
    if path:
        context = load_templatedata(path, language)
        app.logger.info("Loaded %d templates from %s", len(context), path)
        return context

    if app.config.get("TEMPLATEDATA_FETCH"):
        context = fetch_context(
            app.config.get("CITATION_TEMPLATES", []),
            api_url=app.config["TEMPLATEDATA_API_URL"],
            timeout=app.config.get("TEMPLATEDATA_TIMEOUT", 10),
            language=language,
        )
        app.logger.info("Fetched %d templates from %s", len(context), app.config["TEMPLATEDATA_API_URL"])
        return context

    app.logger.warning("No TemplateData configured; template detection is disabled")
    return TemplateContext()


def _handle_large_request(e: RequestEntityTooLarge) -> tuple[Response, int]:
    """
    Return a 413 JSON response for requests that exceed the configured maximum content length.

    Parameters:
        e (RequestEntityTooLarge): The exception raised for an oversized request.

    Returns:
        tuple[Response, int]: A JSON response containing `error` and `message` fields, and the HTTP status code 413.
    """
    return jsonify({
        "error": "Request too large",
        "message": "Uploaded data exceeds the allowed size limit"
    }), 413


def _add_security_headers(response: Response) -> Response:
    """
    Attach common security-related HTTP headers to the given response.

    Adds X-Content-Type-Options, X-Frame-Options and X-XSS-Protection, plus Strict-Transport-Security
    when SESSION_COOKIE_SECURE is enabled.
    """
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    # Only add HSTS in production with HTTPS
    if current_app.config.get("SESSION_COOKIE_SECURE"):
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


def _configure_logging(app: Flask) -> None:
    """
    Set up rotating file logging for production.

    Creates a "logs" directory if it does not exist and attaches a
    RotatingFileHandler writing to "logs/refhelper.log" at INFO level. The
    refops loggers share the handler so engine warnings end up in the same file.
    """
    if not os.path.exists("logs"):
        os.mkdir("logs")

    file_handler = RotatingFileHandler(
        "logs/refhelper.log",
        maxBytes=10240,  # 10KB per file
        backupCount=10
    )
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"
    ))
    file_handler.setLevel(logging.INFO)

    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    logging.getLogger("refops").addHandler(file_handler)
    app.logger.info("RefHelper startup")
