"""
URL configuration for authentication app.

Issues the Simple JWT access tokens used by the messaging API and the
messaging socket.

URL structure:
    /api/v1/auth/token/           - Obtain access/refresh pair (email + password)
    /api/v1/auth/token/refresh/   - Exchange a refresh token for a new access token

Usage:
    The access token goes into the Authorization header for HTTP calls
    (Authorization: Bearer <token>) and into ?token=<token> for the socket.
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

app_name = "authentication"

urlpatterns = [
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
]
