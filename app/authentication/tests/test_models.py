"""
Tests for the identity models the messaging core depends on.

Covers:
- Profile auto-creation via signal
- Username routing from create_user() onto Profile
- display_name fallback used in info messages
"""

import pytest

from authentication.models import Profile, User
from authentication.tests.factories import UserFactory


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user()."""

    def test_creates_profile_automatically(self, db):
        """
        Every new user gets a profile row.

        Why it matters: participant projections read the profile and must
        never hit Profile.DoesNotExist.
        """
        user = User.objects.create_user(email="new@example.com", password="pw")

        assert Profile.objects.filter(user=user).exists()

    def test_username_is_stored_lowercase_on_profile(self, db):
        """Usernames passed to create_user() end up normalized on the profile."""
        user = User.objects.create_user(email="a@example.com", username="Alice")

        user.refresh_from_db()
        assert user.profile.username == "alice"

    def test_rejects_missing_email(self, db):
        """An email is the login identifier and cannot be empty."""
        with pytest.raises(ValueError):
            User.objects.create_user(email="")

    def test_user_without_password_cannot_log_in(self, db):
        """Accounts created without a password get an unusable one."""
        user = User.objects.create_user(email="nopw@example.com")

        assert user.has_usable_password() is False


class TestUserDisplayName:
    """Tests for User.display_name."""

    def test_uses_profile_username(self, db):
        """
        The profile username is the display name.

        Why it matters: info messages read "<display name> left the group".
        """
        user = UserFactory(username="bob")

        assert user.display_name == "bob"

    def test_falls_back_to_email_local_part(self, db):
        """Users without a username are shown by their email local part."""
        user = UserFactory(email="carol@example.com", username="")

        assert user.display_name == "carol"
