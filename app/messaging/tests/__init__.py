"""
Tests for messaging app.

This package contains test modules for:
- test_maps.py: ReactionMap and UnreadCounters
- test_models.py: Conversation, Message model tests
- test_payloads.py: Typed payload validation
- test_presence.py: PresenceRegistry
- test_delivery.py: DeliveryRouter and persist-then-push ordering
- test_services.py: ConversationService and MessageService tests
- test_views.py: REST API endpoint tests
- test_consumers.py: WebSocket consumer tests

Usage:
    pytest messaging/tests/
    pytest messaging/tests/test_consumers.py
"""
