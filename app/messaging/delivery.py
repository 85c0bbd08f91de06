"""
Best-effort push of events to connected participants.

DeliveryRouter resolves each participant's connection through the
PresenceRegistry and hands the event to a ClientTransport. There is no
queue and no retry: offline participants are skipped and a failing send
is logged and forgotten. Callers schedule pushes with
BaseService.after_commit() so nothing is sent for a rolled-back change.

Transports:
    ChannelLayerTransport: Sends to a Channels channel name; the consumer
                           owning that channel relays it to its socket.

Usage:
    router = apps.get_app_config("messaging").router
    router.push_to_participants(
        participant_ids,
        EventKind.NEW_MESSAGE,
        {"conversationId": conversation.id, "message": data},
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

if TYPE_CHECKING:
    from messaging.presence import PresenceRegistry

logger = logging.getLogger(__name__)


class ClientTransport(Protocol):
    """Sends one event to one live connection handle."""

    def send(self, handle: str, event_kind: str, payload: dict[str, Any]) -> None: ...


class ChannelLayerTransport:
    """
    Transport backed by the configured Channels layer.

    The message type "chat.event" is dispatched to
    MessagingConsumer.chat_event on the receiving side.
    """

    message_type = "chat.event"

    def send(self, handle: str, event_kind: str, payload: dict[str, Any]) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer configured; dropping event")
            return
        async_to_sync(channel_layer.send)(
            handle,
            {"type": self.message_type, "event": event_kind, "payload": payload},
        )


class DeliveryRouter:
    """Fans an event out to the online members of a participant set."""

    def __init__(self, presence: PresenceRegistry, transport: ClientTransport):
        self.presence = presence
        self.transport = transport

    def push_to_participants(
        self,
        participants: Iterable[int],
        event_kind: str,
        payload: dict[str, Any],
        exclude_actor: int | None = None,
    ) -> int:
        """
        Send event_kind to every reachable participant.

        Args:
            participants: User ids to notify
            event_kind: Event name (see constants.EventKind)
            payload: JSON-serializable event body
            exclude_actor: User id to skip (e.g. the reader of a read receipt)

        Returns:
            Number of connections the event was handed to
        """
        delivered = 0
        for user_id in participants:
            if exclude_actor is not None and user_id == exclude_actor:
                continue

            handle = self.presence.resolve(user_id)
            if handle is None:
                logger.debug(f"User {user_id} offline, skipping {event_kind}")
                continue

            try:
                self.transport.send(handle, event_kind, payload)
            except Exception:
                logger.warning(
                    f"Failed to push {event_kind} to user {user_id}",
                    exc_info=True,
                )
                continue
            delivered += 1

        return delivered
