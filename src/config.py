# config.py
# Flask application configuration

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_list(name: str, default: str = "") -> list:
    """Comma-separated environment variable as a list of non-empty items."""
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


class Config:
    """Flask configuration class."""

    # Secret key for session security
    _secret_key = os.environ.get("FLASK_SECRET_KEY")
    if not _secret_key:
        warnings.warn(
            "FLASK_SECRET_KEY not set. Using default key which is insecure for production!",
            UserWarning,
            stacklevel=2
        )
        _secret_key = "change-me-in-production"
    SECRET_KEY = _secret_key

    # Maximum request size (5MB); documents travel in every request body
    try:
        MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 5 * 1024 * 1024))
    except ValueError:
        MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    # Saved TemplateData response (JSON) used as the template registry
    _templatedata_path = os.environ.get("TEMPLATEDATA_PATH")
    TEMPLATEDATA_PATH = Path(_templatedata_path).resolve() if _templatedata_path else None

    # Fetch TemplateData from the wiki at start-up when no file is configured
    TEMPLATEDATA_FETCH = os.environ.get("TEMPLATEDATA_FETCH", "0") == "1"
    TEMPLATEDATA_API_URL = os.environ.get("TEMPLATEDATA_API_URL", "https://en.wikipedia.org/w/api.php")
    TEMPLATEDATA_TIMEOUT = 10

    # Templates offered as reference templates
    CITATION_TEMPLATES = _env_list(
        "CITATION_TEMPLATES",
        "Template:Cite book,Template:Cite web,Template:Cite news,Template:Cite journal",
    )

    # Language used for parameter labels and descriptions
    CONTENT_LANGUAGE = os.environ.get("CONTENT_LANGUAGE", "en")

    # Rate limiting (flask-limiter)
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "200 per day;50 per hour")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"

    # WTF CSRF protection
    WTF_CSRF_ENABLED = True


class DevelopmentConfig(Config):
    """Configuration for local development."""

    DEBUG = True


class TestingConfig(Config):
    """Configuration for the test suite."""

    TESTING = True
    DEBUG = True
    WTF_CSRF_ENABLED = False
    # Route limits stay active; the blanket default is loose enough for a test run
    RATELIMIT_DEFAULT = "1000 per minute"
    TEMPLATEDATA_PATH = None
    TEMPLATEDATA_FETCH = False


class ProductionConfig(Config):
    """Configuration for production deployments."""

    DEBUG = False
    SESSION_COOKIE_SECURE = True
