"""
Tests for the token endpoints.

These issue the JWTs accepted by the messaging API and socket.
"""

from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory


class TestTokenObtain:
    """POST /api/v1/auth/token/"""

    def test_valid_credentials_return_token_pair(self, db):
        user = UserFactory(email="alice@example.com", password="s3cret-pass")

        response = APIClient().post(
            "/api/v1/auth/token/",
            {"email": "alice@example.com", "password": "s3cret-pass"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert AccessToken(response.data["access"])["user_id"] in (user.id, str(user.id))
        assert "refresh" in response.data

    def test_wrong_password_is_401(self, db):
        UserFactory(email="alice@example.com", password="s3cret-pass")

        response = APIClient().post(
            "/api/v1/auth/token/",
            {"email": "alice@example.com", "password": "wrong"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_issues_new_access_token(self, db):
        UserFactory(email="alice@example.com", password="s3cret-pass")
        client = APIClient()
        pair = client.post(
            "/api/v1/auth/token/",
            {"email": "alice@example.com", "password": "s3cret-pass"},
            format="json",
        ).data

        response = client.post(
            "/api/v1/auth/token/refresh/", {"refresh": pair["refresh"]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data
