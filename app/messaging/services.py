"""
Messaging service layer.

This module provides the business logic for the messaging system,
encapsulating all operations on conversations and messages.

Services:
    ConversationService: Conversation lifecycle (private dedup, groups, membership,
                         rename/avatar, read marking, listing)
    MessageService: Message lifecycle (send, react, delete, history)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Per-conversation mutations lock the conversation row
      (select_for_update) inside a transaction
    - Persist then push: events are scheduled with after_commit() and never
      sent for a rolled-back change; a failed push never undoes a commit
    - Membership changes and group metadata edits append an info message

Usage:
    from messaging.services import ConversationService, MessageService

    # Open (or reuse) a private conversation
    result = ConversationService.get_or_create_private(user, other_user.id)
    if result.success:
        conversation = result.data

    # Send a message
    result = MessageService.send(
        conversation_id=conversation.id,
        sender=user,
        message_type="text",
        payload={"text": "Hello!"},
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import F, Prefetch, QuerySet

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService, ServiceResult

from messaging.constants import (
    GROUP_CONFIG,
    MESSAGE_CONFIG,
    REACTION_CONFIG,
    ErrorCode,
    EventKind,
)
from messaging.models import (
    CONTENT_FIELDS,
    Conversation,
    ConversationKind,
    DeliveryState,
    DirectConversationPair,
    Message,
    MessageType,
    Participant,
)
from messaging.payloads import normalize_payload
from messaging.serializers import MessageSerializer

if TYPE_CHECKING:
    from django.core.files import File

    from authentication.models import User

User = get_user_model()


def messaging_runtime():
    """The MessagingConfig holding presence, router and collaborators."""
    return apps.get_app_config("messaging")


class MessagingService(BaseService):
    """
    Shared helpers for the messaging services.

    Lookups raise core exceptions; public methods convert them at the
    boundary with ServiceResult.from_exception().
    """

    @classmethod
    def _lock_conversation(cls, conversation_id: int) -> Conversation:
        """
        Fetch and row-lock a conversation. Must run inside cls.atomic().

        Raises:
            NotFoundError: Conversation does not exist (or was just cascaded away)
        """
        try:
            return Conversation.objects.select_for_update().get(pk=conversation_id)
        except Conversation.DoesNotExist:
            raise NotFoundError(
                "Conversation not found",
                error_code=ErrorCode.CONVERSATION_NOT_FOUND,
            )

    @classmethod
    def _require_participant(cls, conversation: Conversation, user: User) -> Participant:
        participant = conversation.participants.filter(user_id=user.pk).first()
        if participant is None:
            raise PermissionDeniedError(
                "You are not a participant in this conversation",
                error_code=ErrorCode.NOT_PARTICIPANT,
            )
        return participant

    @classmethod
    def _require_group(cls, conversation: Conversation) -> None:
        if not conversation.is_group:
            raise ValidationError(
                "This operation is only available for group conversations",
                error_code=ErrorCode.NOT_GROUP,
            )

    @classmethod
    def _append_info(cls, conversation: Conversation, text: str) -> Message:
        """
        Internal: Append an info message and make it the last message.

        Info messages have no sender and do not touch unread counters.
        Call within an existing transaction.
        """
        message = Message.objects.create(
            conversation=conversation,
            sender=None,
            message_type=MessageType.INFO,
            text=text,
        )
        conversation.last_message = message
        conversation.save(update_fields=["last_message", "updated_at"])
        return message

    @classmethod
    def _push(
        cls,
        participant_ids: list[int],
        event_kind: str,
        payload: dict[str, Any],
        exclude_actor: int | None = None,
    ) -> None:
        """Schedule a push to participants once the transaction commits."""
        recipients = list(participant_ids)

        def deliver():
            messaging_runtime().router.push_to_participants(
                recipients, event_kind, payload, exclude_actor=exclude_actor
            )

        cls.after_commit(deliver)

    @classmethod
    def _push_new_message(cls, participant_ids: list[int], message: Message) -> None:
        cls._push(
            participant_ids,
            EventKind.NEW_MESSAGE,
            {
                "conversationId": message.conversation_id,
                "message": MessageSerializer(message).data,
            },
        )


# =============================================================================
# ConversationService
# =============================================================================


class ConversationService(MessagingService):
    """
    Service for conversation lifecycle operations.

    Methods:
        get_or_create_private: Private conversation for a user pair (idempotent)
        create_group: Create a group with its founding members
        add_members: Add users to a group
        leave: Leave a group (deleting it when the last participant leaves)
        rename: Rename a group
        set_avatar: Replace a group's avatar
        update_group: Rename and/or replace the avatar in one transaction
        mark_read: Reset the caller's unread counter and advance read state
        fetch: Load one conversation for a participant
        list_for_user: The caller's inbox queryset
    """

    @classmethod
    def get_or_create_private(
        cls,
        user: User,
        other_user_id: int,
    ) -> ServiceResult[Conversation]:
        """
        Return the private conversation between two users, creating it if needed.

        Private conversations are unique per unordered pair. Concurrent calls
        for the same pair (in either order) converge on one conversation: the
        loser of a creation race hits the pair's unique constraint and returns
        the winner's conversation.

        Implementation:
            1. Validate users are different and the other user exists
            2. Canonicalize order (lower user id first)
            3. Look up existing DirectConversationPair
            4. If not found, create conversation, pair and participants atomically
            5. On IntegrityError, re-read the pair created concurrently

        Args:
            user: Requesting user
            other_user_id: The other participant

        Returns:
            ServiceResult with Conversation (existing or new)

        Error codes:
            SAME_USER: Cannot open a private conversation with yourself
            USER_NOT_FOUND: Other user does not exist or is inactive
        """
        if user.pk == other_user_id:
            return ServiceResult.failure(
                "Cannot create a private conversation with yourself",
                error_code=ErrorCode.SAME_USER,
            )

        other = User.objects.filter(pk=other_user_id, is_active=True).first()
        if other is None:
            return ServiceResult.failure(
                "User not found",
                error_code=ErrorCode.USER_NOT_FOUND,
            )

        lower_id, higher_id = sorted((user.pk, other.pk))

        existing = cls._find_private(lower_id, higher_id)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing private conversation {existing.id} "
                f"between users {lower_id} and {higher_id}"
            )
            return ServiceResult.success(existing)

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    kind=ConversationKind.PRIVATE,
                    name="",
                    created_by=user,
                )
                DirectConversationPair.objects.create(
                    conversation=conversation,
                    user_lower_id=lower_id,
                    user_higher_id=higher_id,
                )
                Participant.objects.create(conversation=conversation, user=user)
                Participant.objects.create(conversation=conversation, user=other)
        except IntegrityError:
            existing = cls._find_private(lower_id, higher_id)
            if existing is None:
                raise
            cls.get_logger().info(
                f"Lost private conversation creation race for users "
                f"{lower_id} and {higher_id}; using {existing.id}"
            )
            return ServiceResult.success(existing)

        cls.get_logger().info(
            f"Created private conversation {conversation.id} "
            f"between users {lower_id} and {higher_id}"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def _find_private(cls, lower_id: int, higher_id: int) -> Conversation | None:
        pair = (
            DirectConversationPair.objects.select_related("conversation")
            .filter(user_lower_id=lower_id, user_higher_id=higher_id)
            .first()
        )
        return pair.conversation if pair else None

    @classmethod
    def create_group(
        cls,
        creator: User,
        name: str,
        member_ids: list[int],
    ) -> ServiceResult[Conversation]:
        """
        Create a new group conversation.

        The creator plus the distinct member ids must number between
        GROUP_CONFIG.MIN_PARTICIPANTS and GROUP_CONFIG.MAX_PARTICIPANTS. An info message announces the
        creation.

        Args:
            creator: User creating the group (first participant)
            name: Required group name (cannot be blank)
            member_ids: Other users to include (creator and duplicates ignored)

        Returns:
            ServiceResult with new Conversation

        Error codes:
            NAME_REQUIRED: Group name cannot be empty
            INVALID_GROUP_SIZE: Too few or too many participants
            USER_NOT_FOUND: A member does not exist or is inactive
        """
        name = name.strip() if name else ""
        if not name:
            return ServiceResult.failure(
                "Group name is required",
                error_code=ErrorCode.NAME_REQUIRED,
            )

        others = [uid for uid in dict.fromkeys(member_ids or []) if uid != creator.pk]
        total = 1 + len(others)
        if not GROUP_CONFIG.MIN_PARTICIPANTS <= total <= GROUP_CONFIG.MAX_PARTICIPANTS:
            return ServiceResult.failure(
                f"A group needs between {GROUP_CONFIG.MIN_PARTICIPANTS} "
                f"and {GROUP_CONFIG.MAX_PARTICIPANTS} participants",
                error_code=ErrorCode.INVALID_GROUP_SIZE,
            )

        members = User.objects.filter(pk__in=others, is_active=True).in_bulk()
        missing = [uid for uid in others if uid not in members]
        if missing:
            return ServiceResult.failure(
                f"Users not found: {missing}",
                error_code=ErrorCode.USER_NOT_FOUND,
            )

        with cls.atomic():
            conversation = Conversation.objects.create(
                kind=ConversationKind.GROUP,
                name=name,
                created_by=creator,
            )
            Participant.objects.create(conversation=conversation, user=creator)
            for uid in others:
                Participant.objects.create(conversation=conversation, user=members[uid])

            info = cls._append_info(
                conversation, f"{creator.display_name} created the group {name}"
            )
            cls._push_new_message([creator.pk, *others], info)

        cls.get_logger().info(
            f"Created group conversation {conversation.id} "
            f"named '{name}' with {total} participants"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def add_members(
        cls,
        conversation_id: int,
        requester: User,
        new_member_ids: list[int],
    ) -> ServiceResult[Conversation]:
        """
        Add users to a group.

        Ids already present are silently ignored. If nobody new remains, the
        call succeeds without an info message.

        Error codes:
            NO_USERS: Empty list
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_GROUP
            USER_NOT_FOUND: A new member does not exist
            INVALID_GROUP_SIZE: The group would exceed the maximum size
        """
        if not new_member_ids:
            return ServiceResult.failure(
                "No users to add",
                error_code=ErrorCode.NO_USERS,
            )

        try:
            with cls.atomic():
                conversation = cls._lock_conversation(conversation_id)
                cls._require_participant(conversation, requester)
                cls._require_group(conversation)

                current = conversation.participant_ids()
                added = [uid for uid in dict.fromkeys(new_member_ids) if uid not in current]
                if not added:
                    return ServiceResult.success(conversation)

                users = User.objects.filter(pk__in=added, is_active=True).in_bulk()
                missing = [uid for uid in added if uid not in users]
                if missing:
                    raise NotFoundError(
                        f"Users not found: {missing}",
                        error_code=ErrorCode.USER_NOT_FOUND,
                    )

                if len(current) + len(added) > GROUP_CONFIG.MAX_PARTICIPANTS:
                    raise ValidationError(
                        f"A group cannot have more than "
                        f"{GROUP_CONFIG.MAX_PARTICIPANTS} participants",
                        error_code=ErrorCode.INVALID_GROUP_SIZE,
                    )

                for uid in added:
                    Participant.objects.create(conversation=conversation, user=users[uid])

                names = ", ".join(users[uid].display_name for uid in added)
                info = cls._append_info(
                    conversation,
                    f"{requester.display_name} added {names} to the group",
                )
                cls._push_new_message([*current, *added], info)
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        cls.get_logger().info(
            f"User {requester.pk} added {added} to conversation {conversation.id}"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def leave(
        cls,
        conversation_id: int,
        requester: User,
    ) -> ServiceResult[dict]:
        """
        Leave a group conversation.

        The requester's participant row (and with it their unread counter) is
        removed. If participants remain, an info message is appended. If the
        requester was the last participant, the conversation and all of its
        messages are deleted in the same transaction instead.

        Two concurrent leaves serialize on the conversation row lock; the one
        that runs second no longer finds the conversation and fails with
        CONVERSATION_NOT_FOUND, so the cascade happens exactly once.

        Returns:
            ServiceResult with {"conversation_id": int, "deleted": bool}

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_GROUP
        """
        try:
            with cls.atomic():
                conversation = cls._lock_conversation(conversation_id)
                participant = cls._require_participant(conversation, requester)
                cls._require_group(conversation)

                participant.delete()
                remaining = conversation.participant_ids()

                if remaining:
                    info = cls._append_info(
                        conversation, f"{requester.display_name} left the group"
                    )
                    cls._push_new_message(remaining, info)
                    deleted = False
                else:
                    avatar_handle = conversation.avatar_handle
                    # Messages first, then the conversation
                    Message.objects.filter(conversation=conversation).delete()
                    conversation.delete()
                    if avatar_handle:
                        cls._schedule_avatar_cleanup(avatar_handle)
                    deleted = True
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        if deleted:
            cls.get_logger().info(
                f"Deleted conversation {conversation_id} and its messages "
                f"(last participant {requester.pk} left)"
            )
        else:
            cls.get_logger().info(
                f"User {requester.pk} left conversation {conversation_id}"
            )
        return ServiceResult.success(
            {"conversation_id": conversation_id, "deleted": deleted}
        )

    @classmethod
    def rename(
        cls,
        conversation_id: int,
        requester: User,
        name: str,
    ) -> ServiceResult[Conversation]:
        """Rename a group. See update_group()."""
        return cls.update_group(conversation_id, requester, name=name or "")

    @classmethod
    def set_avatar(
        cls,
        conversation_id: int,
        requester: User,
        upload: File,
    ) -> ServiceResult[Conversation]:
        """Replace a group's avatar. See update_group()."""
        return cls.update_group(conversation_id, requester, upload=upload)

    @classmethod
    def update_group(
        cls,
        conversation_id: int,
        requester: User,
        name: str | None = None,
        upload: File | None = None,
    ) -> ServiceResult[Conversation]:
        """
        Rename a group and/or replace its avatar as one change.

        The upload is stored before the conversation row is locked, so a
        storage failure leaves the group untouched. Name and avatar are then
        written under a single lock in one transaction, each with its own
        info message. The old avatar is deleted by a Celery task after
        commit; if the update fails, the freshly stored file is deleted
        instead.

        Args:
            conversation_id: Group to edit
            requester: Participant making the change
            name: New name, or None to keep the current one
            upload: New avatar file, or None to keep the current one

        Error codes:
            NAME_REQUIRED, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_GROUP
            MEDIA_STORAGE_ERROR: The media store rejected the upload
        """
        if name is not None:
            name = name.strip()
            if not name:
                return ServiceResult.failure(
                    "Group name is required",
                    error_code=ErrorCode.NAME_REQUIRED,
                )

        stored = None
        try:
            conversation = Conversation.objects.filter(pk=conversation_id).first()
            if conversation is None:
                raise NotFoundError(
                    "Conversation not found",
                    error_code=ErrorCode.CONVERSATION_NOT_FOUND,
                )
            cls._require_participant(conversation, requester)
            cls._require_group(conversation)

            if upload is not None:
                stored = messaging_runtime().media_storage.store(upload)
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        try:
            with cls.atomic():
                conversation = cls._lock_conversation(conversation_id)
                cls._require_participant(conversation, requester)
                cls._require_group(conversation)

                previous_handle = conversation.avatar_handle
                changed = ["updated_at"]
                if name is not None:
                    conversation.name = name
                    changed.append("name")
                if stored is not None:
                    conversation.avatar_url = stored.locator
                    conversation.avatar_handle = stored.handle
                    changed += ["avatar_url", "avatar_handle"]
                conversation.save(update_fields=changed)

                participant_ids = conversation.participant_ids()
                if name is not None:
                    info = cls._append_info(
                        conversation,
                        f"{requester.display_name} updated the group's name to '{name}'",
                    )
                    cls._push_new_message(participant_ids, info)
                if stored is not None:
                    info = cls._append_info(
                        conversation,
                        f"{requester.display_name} updated the group's avatar",
                    )
                    cls._push_new_message(participant_ids, info)
                    if previous_handle:
                        cls._schedule_avatar_cleanup(previous_handle)
        except BaseApplicationError as e:
            if stored is not None:
                cls._schedule_avatar_cleanup(stored.handle)
            return ServiceResult.from_exception(e)

        cls.get_logger().info(
            f"User {requester.pk} updated conversation {conversation_id} "
            f"(name={name is not None}, avatar={stored is not None})"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def _schedule_avatar_cleanup(cls, handle: str) -> None:
        from messaging.tasks import delete_avatar_media

        cls.after_commit(lambda: delete_avatar_media.delay(handle))

    @classmethod
    def mark_read(
        cls,
        conversation_id: int,
        user: User,
    ) -> ServiceResult[int]:
        """
        Mark a conversation as read for a user.

        Resets the user's unread counter to 0 and advances every message
        not sent by the user from SENT to READ. Other participants are sent
        a messagesRead receipt.

        Returns:
            ServiceResult with the number of messages advanced to READ

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            with cls.atomic():
                conversation = cls._lock_conversation(conversation_id)
                participant = cls._require_participant(conversation, user)

                Participant.objects.filter(pk=participant.pk).update(unread_count=0)
                advanced = (
                    Message.objects.filter(
                        conversation=conversation,
                        delivery_state=DeliveryState.SENT,
                    )
                    .exclude(sender_id=user.pk)
                    .update(delivery_state=DeliveryState.READ)
                )

                cls._push(
                    conversation.participant_ids(),
                    EventKind.MESSAGES_READ,
                    {"conversationId": conversation.id, "userId": user.pk},
                    exclude_actor=user.pk,
                )
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        cls.get_logger().debug(
            f"User {user.pk} marked conversation {conversation_id} as read "
            f"({advanced} messages)"
        )
        return ServiceResult.success(advanced)

    @classmethod
    def fetch(cls, conversation_id: int, user: User) -> ServiceResult[Conversation]:
        """
        Load one conversation with its projections for a participant.

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        conversation = cls.with_projections(
            Conversation.objects.filter(pk=conversation_id)
        ).first()
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code=ErrorCode.CONVERSATION_NOT_FOUND,
            )
        if not any(p.user_id == user.pk for p in conversation.participants.all()):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code=ErrorCode.NOT_PARTICIPANT,
            )
        return ServiceResult.success(conversation)

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[Conversation]:
        """The user's conversations, most recently active first."""
        return cls.with_projections(
            Conversation.objects.filter(participants__user=user)
        ).order_by("-updated_at", "-id")

    @staticmethod
    def with_projections(queryset: QuerySet[Conversation]) -> QuerySet[Conversation]:
        """Attach what ConversationSerializer reads, avoiding per-row queries."""
        return queryset.select_related(
            "last_message__sender__profile", "last_message__reply_to"
        ).prefetch_related(
            Prefetch(
                "participants",
                queryset=Participant.objects.select_related("user__profile").order_by(
                    "created_at", "id"
                ),
            )
        )


# =============================================================================
# MessageService
# =============================================================================


@dataclass
class HistoryPage:
    """One page of message history, oldest first."""

    messages: list[Message]
    page: int
    limit: int
    has_more: bool


class MessageService(MessagingService):
    """
    Service for message operations.

    Methods:
        send: Send a typed message
        react: Toggle a reaction
        delete: Replace a message with a tombstone
        history: Page through a conversation's messages
    """

    @classmethod
    def send(
        cls,
        conversation_id: int,
        sender: User,
        message_type: str,
        payload: dict[str, Any],
        reply_to: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a typed message to a conversation.

        The message becomes the conversation's last message and every other
        participant's unread counter is incremented by one. After commit the
        message is pushed to all online participants, the sender included.

        Args:
            conversation_id: Target conversation
            sender: User sending the message
            message_type: text, image, product, post or profile
            payload: Request fields (text, image_url, product_id, post_id, profile_id)
            reply_to: Optional id of a message in the same conversation

        Returns:
            ServiceResult with new Message

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
            INVALID_MESSAGE_TYPE: Unknown type, or info/deleted
            INVALID_PAYLOAD: Missing field for the type, or fields of another type
            REFERENCE_NOT_FOUND: Product/post/profile id does not resolve
            REPLY_NOT_FOUND: reply_to is not a message of this conversation
        """
        try:
            with cls.atomic():
                conversation = cls._lock_conversation(conversation_id)
                cls._require_participant(conversation, sender)

                fields = normalize_payload(
                    message_type, payload, messaging_runtime().resolvers
                )

                reply_target = None
                if reply_to is not None:
                    reply_target = Message.objects.filter(
                        pk=reply_to, conversation=conversation
                    ).first()
                    if reply_target is None:
                        raise NotFoundError(
                            "Reply target not found in this conversation",
                            error_code=ErrorCode.REPLY_NOT_FOUND,
                        )

                message = Message.objects.create(
                    conversation=conversation,
                    sender=sender,
                    message_type=message_type,
                    reply_to=reply_target,
                    **fields,
                )

                conversation.last_message = message
                conversation.save(update_fields=["last_message", "updated_at"])

                Participant.objects.filter(conversation=conversation).exclude(
                    user_id=sender.pk
                ).update(unread_count=F("unread_count") + 1)

                cls._push_new_message(conversation.participant_ids(), message)
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        cls.get_logger().debug(
            f"User {sender.pk} sent {message_type} message {message.id} "
            f"to conversation {conversation_id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def react(
        cls,
        message_id: int,
        user: User,
        emoji: str,
    ) -> ServiceResult[Message]:
        """
        Toggle the user's reaction with emoji on a message.

        Reacting twice with the same emoji restores the prior state; emojis
        nobody reacts with any more are removed from the map. The updated map
        is broadcast to all participants.

        Error codes:
            EMOJI_REQUIRED, INVALID_EMOJI
            MESSAGE_NOT_FOUND
            MESSAGE_DELETED: Tombstones cannot be reacted to
            NOT_PARTICIPANT
        """
        emoji = emoji.strip() if emoji else ""
        if not emoji:
            return ServiceResult.failure(
                "Emoji is required",
                error_code=ErrorCode.EMOJI_REQUIRED,
            )
        if len(emoji) > REACTION_CONFIG.MAX_EMOJI_LENGTH:
            return ServiceResult.failure(
                "Invalid emoji",
                error_code=ErrorCode.INVALID_EMOJI,
            )

        try:
            with cls.atomic():
                message = cls._lock_message(message_id)
                if message.is_deleted:
                    raise ValidationError(
                        "Cannot react to a deleted message",
                        error_code=ErrorCode.MESSAGE_DELETED,
                    )
                conversation = message.conversation
                cls._require_participant(conversation, user)

                reactions = message.reaction_map()
                added = reactions.toggle(emoji, user.pk)
                message.reactions = reactions.to_dict()
                message.save(update_fields=["reactions", "updated_at"])

                cls._push(
                    conversation.participant_ids(),
                    EventKind.MESSAGE_REACTION,
                    {
                        "conversationId": conversation.id,
                        "messageId": message.id,
                        "reactions": message.reactions,
                    },
                )
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        cls.get_logger().debug(
            f"User {user.pk} {'added' if added else 'removed'} {emoji} "
            f"on message {message_id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def delete(
        cls,
        message_id: int,
        requester: User,
    ) -> ServiceResult[Message]:
        """
        Replace a message with a tombstone.

        Only the sender may delete. Content fields, the reference snapshot and
        reactions are cleared and the type becomes DELETED; the deletion event carries no content.

        Error codes:
            MESSAGE_NOT_FOUND
            NOT_SENDER: Only the sender may delete
            ALREADY_DELETED: The message is already a tombstone
        """
        try:
            with cls.atomic():
                message = cls._lock_message(message_id)
                if message.sender_id != requester.pk:
                    raise PermissionDeniedError(
                        "Only the sender can delete this message",
                        error_code=ErrorCode.NOT_SENDER,
                    )
                if message.is_deleted:
                    raise ConflictError(
                        "Message already deleted",
                        error_code=ErrorCode.ALREADY_DELETED,
                    )

                message.tombstone()
                message.save(
                    update_fields=[
                        *CONTENT_FIELDS,
                        "reference",
                        "reactions",
                        "message_type",
                        "updated_at",
                    ]
                )

                cls._push(
                    message.conversation.participant_ids(),
                    EventKind.MESSAGE_DELETED,
                    {
                        "conversationId": message.conversation_id,
                        "messageId": message.id,
                        "type": MessageType.DELETED.value,
                    },
                )
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)

        cls.get_logger().info(
            f"User {requester.pk} deleted message {message_id} "
            f"in conversation {message.conversation_id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def _lock_message(cls, message_id: int) -> Message:
        try:
            return (
                Message.objects.select_for_update(of=("self",))
                .select_related("conversation")
                .get(pk=message_id)
            )
        except Message.DoesNotExist:
            raise NotFoundError(
                "Message not found",
                error_code=ErrorCode.MESSAGE_NOT_FOUND,
            )

    @classmethod
    def history(
        cls,
        conversation_id: int,
        user: User,
        page: int = 1,
        limit: int = MESSAGE_CONFIG.HISTORY_DEFAULT_LIMIT,
    ) -> ServiceResult[HistoryPage]:
        """
        Page through a conversation's messages.

        Pages are counted from the newest message backwards (page 1 holds the
        most recent `limit` messages); each page is returned oldest first.
        Ties on created_at are broken by id.

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        page = max(int(page), 1)
        limit = min(max(int(limit), 1), MESSAGE_CONFIG.HISTORY_MAX_LIMIT)

        conversation = Conversation.objects.filter(pk=conversation_id).first()
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code=ErrorCode.CONVERSATION_NOT_FOUND,
            )
        if not conversation.has_participant(user):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code=ErrorCode.NOT_PARTICIPANT,
            )

        offset = (page - 1) * limit
        window = list(
            conversation.messages.select_related("sender__profile", "reply_to")
            .order_by("-created_at", "-id")[offset : offset + limit + 1]
        )
        has_more = len(window) > limit
        messages = list(reversed(window[:limit]))

        return ServiceResult.success(
            HistoryPage(messages=messages, page=page, limit=limit, has_more=has_more)
        )
