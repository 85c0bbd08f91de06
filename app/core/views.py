"""
Infrastructure endpoints.

Nothing here belongs to the messaging domain; these views exist for the
load balancer and container orchestration.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _check_database() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except Exception:
        logger.exception("Health check: database unreachable")
        return False
    return True


def _check_cache() -> bool:
    try:
        cache.set("health_check", "ok", timeout=1)
        return cache.get("health_check") == "ok"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        return False


def _check_channel_layer() -> bool:
    layer = get_channel_layer()
    if layer is None:
        return False
    try:
        async_to_sync(layer.new_channel)()
    except Exception:
        logger.warning("Health check: channel layer unreachable", exc_info=True)
        return False
    return True


def health_check(request):
    """
    Report database, cache and channel layer reachability.

    Only the database is critical: without the cache the service is slower,
    and without the channel layer messages are stored but not pushed live.

    Returns:
        200 with {"status": "healthy", ...} when the database answers,
        503 with {"status": "unhealthy", ...} otherwise.
    """
    database_ok = _check_database()
    health_status = {
        "status": "healthy" if database_ok else "unhealthy",
        "database": "connected" if database_ok else "disconnected",
        "cache": "connected" if _check_cache() else "disconnected",
        "channel_layer": "connected" if _check_channel_layer() else "disconnected",
    }

    return JsonResponse(health_status, status=200 if database_ok else 503)
