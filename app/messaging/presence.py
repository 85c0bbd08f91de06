"""
In-process registry of connected users.

Maps a user id to the single live connection handle (a Channels channel
name) through which that user can currently be reached. A user is
reachable on at most one connection: registering again replaces the
previous handle, and the caller is told which handle was superseded so
it can close that connection.

Entries are never persisted. They exist only while the socket is open
and disappear on process restart.

The registry is built once by MessagingConfig.ready() and shared by
reference; read it through:

    from django.apps import apps
    presence = apps.get_app_config("messaging").presence
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """
    Lock-guarded user id -> connection handle map.

    Usage:
        registry = PresenceRegistry()
        replaced = registry.register(user.id, channel_name)
        registry.resolve(user.id)      # channel_name
        registry.unregister(channel_name)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handles: dict[int, str] = {}
        self._owners: dict[str, int] = {}

    def register(self, user_id: int, handle: str) -> str | None:
        """
        Make handle the user's live connection. Last registration wins.

        Returns:
            The handle this registration replaced, or None
        """
        with self._lock:
            previous = self._handles.get(user_id)
            if previous is not None and previous != handle:
                self._owners.pop(previous, None)
            else:
                previous = None
            self._handles[user_id] = handle
            self._owners[handle] = user_id

        if previous:
            logger.info(f"User {user_id} reconnected, superseding {previous}")
        return previous

    def unregister(self, handle: str) -> bool:
        """
        Drop the entry owning handle, if it still points at exactly that handle.

        A connection that was superseded by a newer registration must not
        remove its replacement when it finally closes.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            user_id = self._owners.pop(handle, None)
            if user_id is None or self._handles.get(user_id) != handle:
                return False
            del self._handles[user_id]
        return True

    def resolve(self, user_id: int) -> str | None:
        with self._lock:
            return self._handles.get(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
