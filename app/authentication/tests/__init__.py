"""
Tests for authentication app.

- test_models.py: User, Profile and UserManager behaviour
- test_views.py: Token obtain and refresh endpoints
- factories.py: UserFactory shared with the messaging tests
"""
