"""
tests/test_extensions.py - Tests for Flask extensions

Tests for CSRF protection and rate limiting extensions.
"""

from __future__ import annotations

from config import Config, TestingConfig
from extensions import csrf, limiter
from main_app import create_app


class TestCSRFProtection:
    """Tests for CSRF protection extension."""

    def test_csrf_initialized(self):
        """Test that CSRF extension is initialized."""
        app = create_app(TestingConfig)
        assert "csrf" in app.extensions

    def test_csrf_disabled_in_testing(self):
        """Test that CSRF is disabled in testing configuration."""
        app = create_app(TestingConfig)
        assert app.config["WTF_CSRF_ENABLED"] is False

    def test_csrf_enabled_by_default(self):
        """Test that CSRF is enabled in the base configuration."""
        assert Config.WTF_CSRF_ENABLED is True

    def test_api_exempt_from_csrf(self):
        """Test that JSON API posts work with CSRF enabled and no token."""
        test_config = type(
            "CsrfConfig",
            (TestingConfig,),
            {"WTF_CSRF_ENABLED": True}
        )
        client = create_app(test_config).test_client()
        response = client.post("/api/scan", json={"text": "<ref>x</ref>"})
        assert response.status_code == 200


class TestRateLimiter:
    """Tests for rate limiting extension."""

    def test_limiter_initialized(self):
        """Test that limiter extension is initialized."""
        app = create_app(TestingConfig)
        assert "limiter" in app.extensions

    def test_scan_rate_limited(self):
        """Test that /api/scan is limited per client address."""
        client = create_app(TestingConfig).test_client()
        statuses = [
            client.post("/api/scan", json={"text": ""}).status_code
            for _ in range(61)
        ]
        assert statuses[:60] == [200] * 60
        assert statuses[60] == 429


class TestExtensionIntegration:
    """Tests for extension integration with the app."""

    def test_extensions_initialized_per_app(self):
        """Test that extensions can be initialized for multiple apps."""
        app1 = create_app(TestingConfig)
        app2 = create_app(TestingConfig)

        assert "csrf" in app1.extensions
        assert "csrf" in app2.extensions
        assert "limiter" in app1.extensions
        assert "limiter" in app2.extensions

    def test_extensions_deferred_initialization(self):
        """Test that extensions use deferred initialization pattern."""
        assert csrf is not None
        assert limiter is not None

        app = create_app(TestingConfig)
        assert "csrf" in app.extensions
        assert "limiter" in app.extensions
