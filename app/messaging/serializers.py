"""
Serializers for the messaging API.

This module provides serializers for the messaging system:
- Read serializers shared by the HTTP API and pushed socket events
- Write serializers validating request shape before the service layer

Serializer Hierarchy:
    UserSummarySerializer: Participant projection (id, username, avatar)
    MessageSerializer: Message with typed payload fields and reactions
    ConversationSerializer: Conversation with participants, last message, unread counters

    PrivateConversationCreateSerializer: Open a private conversation
    GroupCreateSerializer: Create a group
    ConversationEditSerializer: Rename and/or replace the avatar
    AddUsersSerializer: Add group members
    MessageCreateSerializer: Send a typed message
    ReactionSerializer: Toggle a reaction
    HistoryQuerySerializer: Page/limit query parameters

Design Decisions:
    - Write serializers check types only. Business rules (group size, name
      required, payload-per-type) live in the services so the error codes are
      the same for every entry point.
    - Read serializers use snake_case fields; event envelopes
      (newMessage, messageReaction, ...) are assembled by the services.
"""

from __future__ import annotations

from rest_framework import serializers

from messaging.constants import GROUP_CONFIG, MESSAGE_CONFIG, REACTION_CONFIG
from messaging.models import Conversation, Message


# =============================================================================
# Read Serializers
# =============================================================================


class UserSummarySerializer(serializers.Serializer):
    """Public projection of a participant."""

    id = serializers.IntegerField(read_only=True)
    username = serializers.SerializerMethodField()
    full_name = serializers.SerializerMethodField()
    avatar_url = serializers.SerializerMethodField()
    display_name = serializers.CharField(read_only=True)

    def _profile(self, obj):
        return getattr(obj, "profile", None)

    def get_username(self, obj) -> str:
        profile = self._profile(obj)
        return profile.username if profile else ""

    def get_full_name(self, obj) -> str:
        profile = self._profile(obj)
        return profile.full_name if profile else ""

    def get_avatar_url(self, obj) -> str:
        profile = self._profile(obj)
        return profile.avatar_url if profile else ""


class MessageSerializer(serializers.ModelSerializer):
    """
    Full message representation.

    Tombstones keep their id, sender and timestamps; every payload field
    is empty, reference and reactions are {}.

    Reference messages carry the display snapshot taken when they were
    sent. Replies carry a short summary of the original so clients can
    render the quote without a second request.
    """

    conversation_id = serializers.IntegerField(read_only=True)
    sender = UserSummarySerializer(read_only=True, allow_null=True)
    type = serializers.CharField(source="message_type", read_only=True)
    product_id = serializers.CharField(source="product_ref", read_only=True)
    post_id = serializers.CharField(source="post_ref", read_only=True)
    profile_id = serializers.CharField(source="profile_ref", read_only=True)
    reference = serializers.JSONField(read_only=True)
    reply_to = serializers.SerializerMethodField(
        help_text="Summary of the replied-to message"
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "type",
            "text",
            "image_url",
            "product_id",
            "post_id",
            "profile_id",
            "delivery_state",
            "reactions",
            "reference",
            "reply_to",
            "created_at",
        ]
        read_only_fields = fields

    def get_reply_to(self, obj: Message) -> dict | None:
        original = obj.reply_to
        if original is None:
            return None
        return {
            "id": original.pk,
            "type": original.message_type,
            "text": original.text,
            "sender_id": original.sender_id,
        }


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation with its participants projection.

    Includes computed fields:
    - participants: Current members in join order
    - unread: Counter per participant id
    - unread_count: The requesting user's counter (0 without a request)
    - last_message: Most recent message, info messages included

    Querysets should prefetch "participants__user__profile" and select
    "last_message__sender__profile" and "last_message__reply_to" to avoid
    per-row queries.
    """

    participants = serializers.SerializerMethodField(
        help_text="Current participants in join order"
    )
    unread = serializers.SerializerMethodField(
        help_text="Unread counter per participant id"
    )
    unread_count = serializers.SerializerMethodField(
        help_text="Unread counter of the requesting user"
    )
    last_message = MessageSerializer(read_only=True, allow_null=True)
    created_by = serializers.IntegerField(
        source="created_by_id", read_only=True, allow_null=True
    )

    class Meta:
        model = Conversation
        fields = [
            "id",
            "kind",
            "name",
            "avatar_url",
            "created_by",
            "participants",
            "unread",
            "unread_count",
            "last_message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_participants(self, obj: Conversation) -> list[dict]:
        users = [p.user for p in obj.participants.all()]
        return UserSummarySerializer(users, many=True).data

    def get_unread(self, obj: Conversation) -> dict[str, int]:
        return {str(p.user_id): p.unread_count for p in obj.participants.all()}

    def get_unread_count(self, obj: Conversation) -> int:
        request = self.context.get("request")
        if not request or not request.user.is_authenticated:
            return 0
        for participant in obj.participants.all():
            if participant.user_id == request.user.id:
                return participant.unread_count
        return 0


# =============================================================================
# Write Serializers
# =============================================================================


class PrivateConversationCreateSerializer(serializers.Serializer):
    participant_id = serializers.IntegerField(
        help_text="User to open a private conversation with"
    )


class GroupCreateSerializer(serializers.Serializer):
    """Group creation request. Size and name rules are enforced by the service."""

    name = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_NAME_LENGTH,
        allow_blank=True,
        help_text="Group name (required, non-blank)",
    )
    participants = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        help_text="User ids to add besides the creator",
    )


class ConversationEditSerializer(serializers.Serializer):
    """Rename a group and/or replace its avatar (multipart)."""

    name = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_NAME_LENGTH,
        required=False,
        allow_blank=True,
        help_text="New group name",
    )
    avatar = serializers.ImageField(
        required=False,
        help_text="New group avatar image",
    )

    def validate(self, attrs: dict) -> dict:
        if "name" not in attrs and "avatar" not in attrs:
            raise serializers.ValidationError("Provide a name or an avatar")
        return attrs


class AddUsersSerializer(serializers.Serializer):
    users = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        help_text="User ids to add to the group",
    )


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending messages.

    Exactly the field matching type must be provided; the service rejects
    missing or foreign fields.
    """

    conversation_id = serializers.IntegerField(help_text="Target conversation")
    type = serializers.CharField(help_text="text, image, product, post or profile")
    text = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
    )
    image_url = serializers.CharField(required=False, allow_blank=True, max_length=500)
    product_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    post_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    profile_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    reply_to = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Message in the same conversation being replied to",
    )


class ReactionSerializer(serializers.Serializer):
    emoji = serializers.CharField(
        allow_blank=True,
        max_length=64,
        help_text=f"Emoji to toggle (max {REACTION_CONFIG.MAX_EMOJI_LENGTH} characters)",
    )


class HistoryQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    # Values above HISTORY_MAX_LIMIT are clamped by the service
    limit = serializers.IntegerField(
        min_value=1,
        default=MESSAGE_CONFIG.HISTORY_DEFAULT_LIMIT,
    )
