"""
Factory Boy factories for messaging models.

Provides realistic test data generation for:
- Conversation: Private and group conversations
- Participant: Current membership with unread counter
- Message: Typed messages

Usage:
    from messaging.tests.factories import (
        GroupConversationFactory,
        MessageFactory,
        ParticipantFactory,
        PrivateConversationFactory,
    )

    # Group of the creator plus two members
    conversation = GroupConversationFactory(members=[alice, bob])

    # Private conversation between two users
    conversation = PrivateConversationFactory(user1=alice, user2=bob)

    # Message in a conversation
    message = MessageFactory(conversation=conversation, sender=alice)
"""

import factory

from authentication.tests.factories import UserFactory
from messaging.models import (
    Conversation,
    ConversationKind,
    DeliveryState,
    DirectConversationPair,
    Message,
    MessageType,
    Participant,
)


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Base factory for Conversation model.

    Creates a bare group conversation without participants.
    Use GroupConversationFactory or PrivateConversationFactory for
    conversations with members.
    """

    class Meta:
        model = Conversation

    kind = ConversationKind.GROUP
    name = factory.Sequence(lambda n: f"Group Chat {n}")
    created_by = factory.SubFactory(UserFactory)


class GroupConversationFactory(ConversationFactory):
    """
    Factory for group conversations with participants.

    The creator is always the first participant; pass members=[...] for
    the others.

    Examples:
        conversation = GroupConversationFactory()
        conversation = GroupConversationFactory(created_by=alice, members=[bob, carol])
    """

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        """Add the creator and the extracted members as participants."""
        if not create:
            return

        ParticipantFactory(conversation=self, user=self.created_by)
        for user in extracted or []:
            ParticipantFactory(conversation=self, user=user)


class PrivateConversationFactory(ConversationFactory):
    """
    Factory for private (1:1) conversations.

    Creates the conversation with its DirectConversationPair and both
    participants.

    Examples:
        conversation = PrivateConversationFactory()
        conversation = PrivateConversationFactory(user1=alice, user2=bob)
    """

    kind = ConversationKind.PRIVATE
    name = ""
    created_by = None

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Create private conversation with participants and pair."""
        user1 = kwargs.pop("user1", None) or UserFactory()
        user2 = kwargs.pop("user2", None) or UserFactory()
        kwargs.setdefault("created_by", user1)

        # Ensure canonical order (lower ID first)
        user_lower, user_higher = (
            (user1, user2) if user1.id < user2.id else (user2, user1)
        )

        conversation = super()._create(model_class, *args, **kwargs)

        DirectConversationPair.objects.create(
            conversation=conversation,
            user_lower=user_lower,
            user_higher=user_higher,
        )
        ParticipantFactory(conversation=conversation, user=user1)
        ParticipantFactory(conversation=conversation, user=user2)

        return conversation


class ParticipantFactory(factory.django.DjangoModelFactory):
    """
    Factory for Participant model.

    Examples:
        participant = ParticipantFactory(conversation=conversation, user=user)
        participant = ParticipantFactory(unread_count=3)
    """

    class Meta:
        model = Participant

    conversation = factory.SubFactory(ConversationFactory)
    user = factory.SubFactory(UserFactory)
    unread_count = 0


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Creates text messages by default. Counters and last_message are not
    touched; use MessageService.send() when those matter.

    Examples:
        message = MessageFactory(conversation=conv, sender=user)
        image = MessageFactory(message_type=MessageType.IMAGE, text="",
                               image_url="https://cdn.example.com/a.png")
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    sender = factory.SubFactory(UserFactory)
    message_type = MessageType.TEXT
    text = factory.Faker("sentence")
    delivery_state = DeliveryState.SENT
    reactions = factory.LazyFunction(dict)


class InfoMessageFactory(MessageFactory):
    """Factory for generated info messages (no sender)."""

    sender = None
    message_type = MessageType.INFO
    text = factory.Sequence(lambda n: f"user{n} joined the group")
