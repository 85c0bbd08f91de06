"""
Tests for the infrastructure health check endpoint.
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError

LOCMEM_CACHE = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
}


@pytest.mark.django_db
class TestHealthCheck:
    """GET /health/"""

    def test_healthy(self, client, settings):
        settings.CACHES = LOCMEM_CACHE

        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected",
        }

    def test_database_down_is_unhealthy(self, client, settings):
        """
        Why it matters: the load balancer must stop routing to an instance
        that cannot persist messages.
        """
        settings.CACHES = LOCMEM_CACHE

        with patch("core.views._check_database", return_value=False):
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_cache_down_is_still_healthy(self, client, settings):
        settings.CACHES = LOCMEM_CACHE

        with patch("core.views.cache") as cache:
            cache.set.side_effect = ConnectionError
            response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"

    def test_database_check_catches_driver_errors(self):
        from core.views import _check_database

        with patch("core.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError
            assert _check_database() is False

    def test_missing_channel_layer_reported(self, client, settings):
        settings.CACHES = LOCMEM_CACHE

        with patch("core.views.get_channel_layer", return_value=None):
            response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["channel_layer"] == "disconnected"
