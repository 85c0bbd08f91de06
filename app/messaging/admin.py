"""
Django admin configuration for messaging models.

Provides admin interfaces for:
- Conversation management
- Participant viewing
- Message moderation
"""

from django.contrib import admin

from messaging.models import Conversation, DirectConversationPair, Message, Participant


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["created_at", "unread_count"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = ["id", "kind", "name", "created_by", "created_at", "updated_at"]
    list_filter = ["kind", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at", "avatar_handle"]
    raw_id_fields = ["created_by", "last_message"]
    inlines = [ParticipantInline]
    ordering = ["-updated_at"]


@admin.register(DirectConversationPair)
class DirectConversationPairAdmin(admin.ModelAdmin):
    """Admin interface for DirectConversationPair model."""

    list_display = ["conversation", "user_lower", "user_higher"]
    raw_id_fields = ["conversation", "user_lower", "user_higher"]


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    """Admin interface for Participant model."""

    list_display = ["id", "conversation", "user", "unread_count", "created_at"]
    search_fields = ["user__email", "conversation__name"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["conversation", "user"]
    ordering = ["-created_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "message_type",
        "content_preview",
        "delivery_state",
        "created_at",
    ]
    list_filter = ["message_type", "delivery_state", "created_at"]
    search_fields = ["text", "sender__email"]
    readonly_fields = ["created_at", "updated_at", "message_type", "reactions"]
    raw_id_fields = ["conversation", "sender", "reply_to"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        content = obj.text or obj.payload_value or ""
        if len(content) > max_length:
            return content[:max_length] + "..."
        return content
