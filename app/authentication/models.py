"""
Authentication models.

This module defines the identity models the messaging core relies on:
- User: Custom user model with email-based authentication (slim, auth-focused)
- Profile: Public display data (OneToOne with User)

The messaging core treats identity as a collaborator: it only needs a stable
user id, an existence check and a short display projection (username, full
name, avatar), all of which live here.

Related files:
    - managers.py: Custom user manager for email-based creation
    - signals.py: Auto-create profile on user creation
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel


def validate_username_format(value):
    """Validate username format: 3-30 chars, alphanumeric + _ + -."""
    if not re.match(r"^[a-zA-Z0-9_-]{3,30}$", value):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Display data (username, name, avatar) is stored on Profile.

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='securepassword',
            username='alice',
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        try:
            return self.profile.full_name or self.email
        except Profile.DoesNotExist:
            return self.email

    def get_short_name(self):
        return self.email.split("@")[0]

    @property
    def display_name(self) -> str:
        """
        Name used in info messages ("alice left the group").

        Profile username when set, otherwise the local part of the email.
        """
        try:
            username = self.profile.username
        except Profile.DoesNotExist:
            username = ""
        return username or self.get_short_name()


class Profile(BaseModel):
    """
    Public profile data shown next to messages and in participant lists.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        username: Unique username (3-30 chars, alphanumeric + _ + -)
        full_name: Free-form display name
        avatar_url: Locator of the user's avatar image

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )
    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_username_format],
        help_text="Unique username (3-30 chars, alphanumeric + _ + -)",
    )
    full_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's display name",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Locator of the user's avatar image",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            # Case-insensitive unique constraint for username
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    def save(self, *args, **kwargs):
        if self.username:
            self.username = self.username.lower()
        super().save(*args, **kwargs)
