"""
Messaging app for real-time conversations.

This app handles:
- Private (1:1) and group conversations
- Typed messages (text, image, product, post, profile) with replies
- Reactions, tombstone deletes and read receipts
- Per-user unread counters
- WebSocket push of events to online participants

Related apps:
    - authentication: User model for participants
    - core: ServiceResult, BaseService, error kinds

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the per-user socket.
    See delivery.py for the event router.

Usage:
    from messaging.services import ConversationService, MessageService

    # Open (or reuse) a private conversation
    result = ConversationService.get_or_create_private(user, other_user.id)

    # Send a text message
    result = MessageService.send(
        conversation_id=result.data.id,
        sender=user,
        message_type="text",
        payload={"text": "Hello!"},
    )
"""
