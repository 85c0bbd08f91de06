"""
Custom user manager for email-based authentication.

Related files:
    - models.py: User model that uses this manager
    - signals.py: Creates the Profile that the username is written to
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for the email-keyed User model.

    A username passed to create_user() is stored on the auto-created Profile
    rather than on the User row.

    Usage:
        user = User.objects.create_user(email='user@example.com', username='alice')
        admin = User.objects.create_superuser(email='admin@example.com', password='pw')
    """

    def create_user(self, email, password=None, username="", **extra_fields):
        """
        Create and save a regular user.

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("The Email field must be set")

        email = self.normalize_email(email)
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)

        if username:
            from authentication.models import Profile

            profile, _ = Profile.objects.update_or_create(
                user=user, defaults={"username": username.lower()}
            )
            # Replace the empty profile cached by the post_save signal
            user.profile = profile
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create and save a superuser.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)
