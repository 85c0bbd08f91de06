"""
Messaging application configuration.

This app provides the messaging system with:
- Private (1:1) and group conversations
- Typed messages with reactions, read state and deletion
- Best-effort push to connected participants

Runtime collaborators are built once in ready() and shared by reference:
    presence: PresenceRegistry of connected users
    router: DeliveryRouter pushing events through the channel layer
    media_storage: MediaStorage for group avatars
    resolvers: EntityResolver per reference message type
"""

from django.apps import AppConfig
from django.conf import settings


class MessagingConfig(AppConfig):
    """Configuration for the messaging application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "messaging"
    verbose_name = "Messaging"

    def ready(self):
        from messaging.collaborators import (
            ModelEntityResolver,
            UserDirectoryResolver,
            load_media_storage,
        )
        from messaging.delivery import ChannelLayerTransport, DeliveryRouter
        from messaging.presence import PresenceRegistry

        # Registers the messaging error codes with their error kinds
        import messaging.constants  # noqa: F401

        self.presence = PresenceRegistry()
        self.router = DeliveryRouter(self.presence, ChannelLayerTransport())
        self.media_storage = load_media_storage(
            getattr(
                settings,
                "MESSAGING_MEDIA_STORAGE",
                "messaging.collaborators.DefaultStorageMedia",
            )
        )
        self.resolvers = {
            "product": ModelEntityResolver(
                getattr(settings, "MESSAGING_PRODUCT_MODEL", "")
            ),
            "post": ModelEntityResolver(getattr(settings, "MESSAGING_POST_MODEL", "")),
            "profile": UserDirectoryResolver(),
        }
