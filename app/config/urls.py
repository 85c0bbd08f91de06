"""
URL configuration for the messaging service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Token endpoints (Simple JWT)
        token/                     - Obtain access/refresh pair
        token/refresh/             - Refresh access token
    /api/v1/messaging/             - Messaging endpoints
        conversations/             - Inbox list / private create
        conversations/group/       - Group create
        conversations/user/{id}/   - Private conversation lookup
        conversations/{id}/        - Conversation detail
        conversations/{id}/leave/  - Leave conversation
        conversations/{id}/edit/   - Rename / re-avatar a group
        conversations/{id}/add-user/ - Add group members
        conversations/{id}/read/   - Mark conversation as read
        conversations/{id}/messages/ - Message history
        messages/                  - Send message
        messages/{id}/             - Delete message
        messages/{id}/reaction/    - React to message

    ws/messaging/?token=<jwt>      - Real-time events (see config.asgi)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("messaging/", include("messaging.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Messaging Admin"
admin.site.site_title = "Messaging Admin"
admin.site.index_title = "Conversations and messages"
