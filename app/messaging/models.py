"""
Messaging models.

This module defines the persisted entities of the messaging system:
- Private (1:1) conversations, unique per unordered user pair
- Group conversations of up to ten participants

Models:
    Conversation: Container for messages between participants
    DirectConversationPair: Helper for enforcing uniqueness of private conversations
    Participant: Current membership of a user, carrying their unread counter
    Message: Individual typed message within a conversation

Design Decisions:
    - Participant rows exist only for current members. Leaving deletes the row,
      so the unread counter of a former participant disappears with it.
    - A group whose last participant leaves is hard deleted together with all of
      its messages. Private conversations are never deleted automatically.
    - Deleting a message turns it into a tombstone: content fields and reactions
      are cleared and the type becomes DELETED. The tombstone is terminal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django_fsm import FSMField, transition

from core.models import BaseModel
from messaging.maps import ReactionMap, UnreadCounters

if TYPE_CHECKING:
    from authentication.models import User


class ConversationKind(models.TextChoices):
    """
    Kind of conversation.

    PRIVATE: Exactly two participants, immutable membership, no name
    GROUP: Named conversation with mutable membership (1..10 participants)
    """

    PRIVATE = "private", "Private"
    GROUP = "group", "Group"


class MessageType(models.TextChoices):
    """
    Type of message content.

    Each user-sendable type owns exactly one payload field:
        TEXT     -> text
        IMAGE    -> image_url
        PRODUCT  -> product_ref
        POST     -> post_ref
        PROFILE  -> profile_ref

    INFO: Generated membership/metadata notice (sender is NULL, text is set)
    DELETED: Tombstone left behind by a sender's delete
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    PRODUCT = "product", "Product Reference"
    POST = "post", "Post Reference"
    PROFILE = "profile", "Profile Reference"
    INFO = "info", "Info"
    DELETED = "deleted", "Deleted"


class DeliveryState(models.TextChoices):
    """
    Read progress of a message.

    Transitions are monotonic: SENT -> READ, triggered by mark-read.
    DELIVERED is reserved for a future per-device acknowledgement and is
    never assigned by the services.
    """

    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"


# Payload field owned by each user-sendable message type
PAYLOAD_FIELDS: dict[str, str] = {
    MessageType.TEXT: "text",
    MessageType.IMAGE: "image_url",
    MessageType.PRODUCT: "product_ref",
    MessageType.POST: "post_ref",
    MessageType.PROFILE: "profile_ref",
}

CONTENT_FIELDS: tuple[str, ...] = tuple(PAYLOAD_FIELDS.values())


class Conversation(BaseModel):
    """
    A conversation between two or more users.

    Conversation Kinds:
        PRIVATE: Exactly 2 participants, no name.
                 Unique per user pair (enforced via DirectConversationPair).
                 Never auto-deleted.

        GROUP: Named, 1..10 participants after creation.
               Hard deleted with its messages when the last participant leaves.

    Fields:
        kind: Kind of conversation (private or group)
        name: Group name (empty string for private)
        avatar_url: Locator of the group avatar
        avatar_handle: Opaque media-storage handle used to delete the avatar
        created_by: User who created the conversation
        last_message: Most recent message (info messages included)

    Relationships:
        participants: Participant rows of the current members
        messages: All Message records for this conversation
        direct_pair: DirectConversationPair if kind is PRIVATE
    """

    kind = models.CharField(
        max_length=10,
        choices=ConversationKind.choices,
        default=ConversationKind.GROUP,
        db_index=True,
        help_text="Kind of conversation (private or group)",
    )

    name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Name for group conversations (empty for private)",
    )

    avatar_url = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Locator of the group avatar image",
    )

    avatar_handle = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Opaque media-storage handle for deleting the avatar",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created this conversation",
    )

    last_message = models.ForeignKey(
        "messaging.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message in this conversation",
    )

    class Meta:
        db_table = "messaging_conversation"
        ordering = ["-updated_at", "-id"]
        indexes = [
            # Inbox sort by last activity
            models.Index(
                fields=["-updated_at", "-id"],
                name="msg_conv_updated_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        if self.is_private:
            return f"Private({self.pk})"
        if self.name:
            return f"Group: {self.name}"
        return f"Group({self.pk})"

    @property
    def is_private(self) -> bool:
        """Check if this is a private (1:1) conversation."""
        return self.kind == ConversationKind.PRIVATE

    @property
    def is_group(self) -> bool:
        """Check if this is a group conversation."""
        return self.kind == ConversationKind.GROUP

    def participant_ids(self) -> list[int]:
        """User ids of current participants, in join order."""
        return list(self.participants.values_list("user_id", flat=True))

    def has_participant(self, user: User | int) -> bool:
        user_id = getattr(user, "pk", user)
        return self.participants.filter(user_id=user_id).exists()

    def unread_counters(self) -> UnreadCounters:
        """
        Snapshot of unread counters keyed by participant user id.

        Former participants are absent (and read as 0).
        """
        return UnreadCounters(
            dict(self.participants.values_list("user_id", "unread_count"))
        )


class DirectConversationPair(models.Model):
    """
    Enforces uniqueness of private conversations between two users.

    Stores the user pair in canonical order (lower user id first) so that
    regardless of who initiates, only one private conversation exists per pair.

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    conversation = models.OneToOneField(
        Conversation,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
        help_text="The private conversation this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this conversation pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this conversation pair",
    )

    class Meta:
        db_table = "messaging_direct_conversation_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"


class Participant(BaseModel):
    """
    Current membership of a user in a conversation.

    The row is the unread counter holder: every current participant has
    exactly one row, a former participant has none.

    Fields:
        conversation: Conversation this membership belongs to
        user: Participating user
        unread_count: Messages from others since the user last marked read
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="User participating in the conversation",
    )

    unread_count = models.PositiveIntegerField(
        default=0,
        help_text="Unread messages for this participant",
    )

    class Meta:
        db_table = "messaging_participant"
        ordering = ["created_at", "id"]
        indexes = [
            # User's conversations (inbox lookup by membership)
            models.Index(
                fields=["user", "conversation"],
                name="msg_part_user_conv_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_participation",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Participant: {self.user_id} in {self.conversation_id} [{self.unread_count} unread]"


class Message(BaseModel):
    """
    A typed message within a conversation.

    Exactly the payload field that belongs to message_type is populated
    (see PAYLOAD_FIELDS). INFO messages use text; DELETED tombstones have
    every content field and the reactions cleared.

    Fields:
        conversation: Conversation this message belongs to
        sender: User who sent the message (NULL for info messages)
        message_type: Type of message
        text / image_url / product_ref / post_ref / profile_ref: Payload fields
        reference: Resolver projection captured when a reference is sent
        delivery_state: SENT or READ
        reactions: JSON {emoji: [user ids]} with empty sets pruned
        reply_to: Message in the same conversation being replied to
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        help_text="User who sent this message (null for info messages)",
    )

    message_type = FSMField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        db_index=True,
        help_text="Type of message content (tombstoning managed by FSM)",
    )

    text = models.TextField(
        blank=True,
        default="",
        help_text="Text body (text and info messages)",
    )

    image_url = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Image locator (image messages)",
    )

    product_ref = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Referenced product id (product messages)",
    )

    post_ref = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Referenced post id (post messages)",
    )

    profile_ref = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Referenced user id (profile messages)",
    )

    reference = models.JSONField(
        default=dict,
        blank=True,
        help_text="Display snapshot of the referenced product, post or profile",
    )

    delivery_state = models.CharField(
        max_length=10,
        choices=DeliveryState.choices,
        default=DeliveryState.SENT,
        help_text="Read progress of the message",
    )

    reactions = models.JSONField(
        default=dict,
        blank=True,
        help_text="Reactions as {emoji: [user_id, ...]}",
    )

    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
        help_text="Message being replied to (same conversation)",
    )

    class Meta:
        db_table = "messaging_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (history paging)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="msg_msg_conv_created_idx",
            ),
        ]
        constraints = [
            # Tombstones carry no content
            models.CheckConstraint(
                condition=~Q(message_type="deleted")
                | Q(
                    text="",
                    image_url="",
                    product_ref="",
                    post_ref="",
                    profile_ref="",
                ),
                name="deleted_message_has_no_content",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        sender_str = f"User {self.sender_id}" if self.sender_id else "Info"
        if self.is_deleted:
            return f"{sender_str}: [deleted]"
        preview = self.text or self.payload_value or ""
        if len(preview) > 50:
            preview = preview[:50] + "..."
        return f"{sender_str} ({self.message_type}): {preview}"

    @property
    def is_deleted(self) -> bool:
        """Check if this message is a tombstone."""
        return self.message_type == MessageType.DELETED

    @property
    def payload_value(self) -> str | None:
        """Value of the payload field owned by message_type, if any."""
        field = PAYLOAD_FIELDS.get(self.message_type)
        return getattr(self, field) if field else None

    def reaction_map(self) -> ReactionMap:
        return ReactionMap(self.reactions)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=message_type,
        source=[
            MessageType.TEXT,
            MessageType.IMAGE,
            MessageType.PRODUCT,
            MessageType.POST,
            MessageType.PROFILE,
            MessageType.INFO,
        ],
        target=MessageType.DELETED,
    )
    def tombstone(self):
        """
        Replace the message with a deletion tombstone.

        Transition: any content type -> DELETED (terminal)

        Every content field, the reference snapshot and the reactions are
        cleared. The caller saves.
        """
        for field in CONTENT_FIELDS:
            setattr(self, field, "")
        self.reference = {}
        self.reactions = {}
