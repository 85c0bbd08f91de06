"""
Authentication application.

Identity for the messaging core: the email-keyed User model and the Profile
that carries each user's public display data.

Usage:
    from authentication.models import User, Profile
"""
