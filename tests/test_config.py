"""
tests/test_config.py - Tests for configuration module

Tests the Config class and its variants (DevelopmentConfig, TestingConfig, ProductionConfig).
"""

from __future__ import annotations

import os
from unittest.mock import patch

from config import Config, DevelopmentConfig, TestingConfig, ProductionConfig, _env_list


class TestConfig:
    """Tests for the base Config class."""

    def test_secret_key_is_set(self):
        """Test that SECRET_KEY always has a value, falling back to a default."""
        assert Config.SECRET_KEY is not None
        assert isinstance(Config.SECRET_KEY, str)

    def test_max_content_length_is_int(self):
        """Test that MAX_CONTENT_LENGTH is a positive integer."""
        assert isinstance(Config.MAX_CONTENT_LENGTH, int)
        assert Config.MAX_CONTENT_LENGTH > 0

    def test_templatedata_timeout(self):
        """Test that the TemplateData request timeout is 10 seconds."""
        assert Config.TEMPLATEDATA_TIMEOUT == 10

    def test_templatedata_api_url(self):
        """Test that the TemplateData endpoint is a MediaWiki api.php URL."""
        assert Config.TEMPLATEDATA_API_URL.endswith("/api.php")

    def test_citation_templates_is_list(self):
        """Test that CITATION_TEMPLATES is a non-empty list of titles."""
        assert isinstance(Config.CITATION_TEMPLATES, list)
        assert all(isinstance(title, str) and title for title in Config.CITATION_TEMPLATES)

    def test_rate_limit_defaults(self):
        """Test that rate limiting has defaults for flask-limiter."""
        assert Config.RATELIMIT_DEFAULT
        assert Config.RATELIMIT_STORAGE_URI

    def test_debug_is_bool(self):
        """Test that DEBUG is a boolean."""
        assert isinstance(Config.DEBUG, bool)

    def test_wtf_csrf_enabled(self):
        """Test that CSRF protection is enabled by default."""
        assert Config.WTF_CSRF_ENABLED is True


class TestEnvList:
    """Tests for comma-separated environment settings."""

    def test_default_used_when_unset(self):
        """Test that the default is split when the variable is missing."""
        with patch.dict(os.environ, {}, clear=True):
            assert _env_list("REFHELPER_UNSET", "a, b") == ["a", "b"]

    def test_empty_items_dropped(self):
        """Test that blank items between commas are ignored."""
        with patch.dict(os.environ, {"REFHELPER_LIST": "Cite web,, ,Cite book"}):
            assert _env_list("REFHELPER_LIST") == ["Cite web", "Cite book"]


class TestDevelopmentConfig:
    """Tests for DevelopmentConfig."""

    def test_debug_enabled(self):
        """Test that DEBUG is enabled in development."""
        assert DevelopmentConfig.DEBUG is True

    def test_inherits_from_config(self):
        """Test that DevelopmentConfig inherits from Config."""
        assert issubclass(DevelopmentConfig, Config)


class TestTestingConfig:
    """Tests for TestingConfig."""

    def test_testing_enabled(self):
        """Test that TESTING is enabled."""
        assert TestingConfig.TESTING is True

    def test_csrf_disabled(self):
        """Test that CSRF is disabled for easier testing."""
        assert TestingConfig.WTF_CSRF_ENABLED is False

    def test_rate_limiting_kept_on(self):
        """Test that the limiter stays registered under the test configuration."""
        assert getattr(TestingConfig, "RATELIMIT_ENABLED", True) is True
        assert TestingConfig.RATELIMIT_DEFAULT == "1000 per minute"

    def test_no_templatedata_source(self):
        """Test that tests never read or fetch TemplateData unless they opt in."""
        assert TestingConfig.TEMPLATEDATA_PATH is None
        assert TestingConfig.TEMPLATEDATA_FETCH is False


class TestProductionConfig:
    """Tests for ProductionConfig."""

    def test_debug_disabled(self):
        """Test that DEBUG is disabled in production."""
        assert ProductionConfig.DEBUG is False

    def test_session_cookie_secure(self):
        """Test that secure cookies are enabled for production."""
        assert ProductionConfig.SESSION_COOKIE_SECURE is True

    def test_inherits_from_config(self):
        """Test that ProductionConfig inherits from Config."""
        assert issubclass(ProductionConfig, Config)
