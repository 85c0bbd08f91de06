"""
WebSocket consumer for the messaging application.

One socket per user carries every event for every conversation the user
participates in. The consumer's channel name is the connection handle
stored in the PresenceRegistry; DeliveryRouter sends events straight to it.

Consumers:
    MessagingConsumer: Per-user event stream

Authentication:
    Users are authenticated via JWT token (query string or subprotocol).
    JWTAuthMiddleware attaches the user to self.scope["user"].

Presence:
    - connect: register (user_id, channel_name); a previous connection of the
      same user is told to close with code 4009
    - disconnect: unregister this channel name only

Message Types (from client):
    - ping: Keep-alive, answered with pong

Frames (to client):
    - {"event": <kind>, "data": <payload>}: newMessage, messageReaction,
      messageDeleted, messagesRead
    - {"type": "pong"}
    - {"type": "error", "message": str}
"""

from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.apps import apps

from messaging.constants import PRESENCE_CONFIG

logger = logging.getLogger(__name__)


class MessagingConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer relaying pushed events to one user.

    Attributes:
        user_id: Authenticated user id (None until accepted)
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id: int | None = None

    @staticmethod
    def _presence():
        return apps.get_app_config("messaging").presence

    async def connect(self):
        """
        Handle WebSocket connection.

        Rejects anonymous users with code 4001. Otherwise accepts, registers
        the connection and supersedes any earlier one of the same user.
        """
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated messaging connection")
            await self.close(code=PRESENCE_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        # Echo the jwt subprotocol so browsers complete the handshake
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol=subprotocol)

        self.user_id = user.id
        replaced = self._presence().register(user.id, self.channel_name)
        if replaced:
            await self.channel_layer.send(replaced, {"type": "presence.superseded"})

        logger.info(f"User {user.id} connected on {self.channel_name}")

    async def disconnect(self, close_code):
        """Drop this connection from presence unless it was already superseded."""
        if self.user_id is None:
            return

        removed = self._presence().unregister(self.channel_name)
        logger.info(
            f"User {self.user_id} disconnected ({close_code})"
            + ("" if removed else ", already superseded")
        )

    async def receive_json(self, content, **kwargs):
        """
        Handle incoming WebSocket frames.

        Expected frame format:
            {"type": "ping"}
        """
        frame_type = content.get("type") if isinstance(content, dict) else None

        if frame_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_json(
                {
                    "type": "error",
                    "message": f"Unknown message type: {frame_type}",
                }
            )

    async def chat_event(self, event):
        """
        Handle chat.event messages from DeliveryRouter.

        Sends the event to the WebSocket client.
        """
        await self.send_json({"event": event["event"], "data": event["payload"]})

    async def presence_superseded(self, event):
        """A newer connection of the same user took over; close this one."""
        logger.info(f"Closing superseded connection {self.channel_name}")
        await self.close(code=PRESENCE_CONFIG.CLOSE_SUPERSEDED)
