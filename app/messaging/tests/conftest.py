"""
Test configuration and fixtures for messaging tests.

This module provides:
- Named user fixtures (alice, bob, carol, dave)
- Conversation fixtures (private and group)
- A recording runtime replacing presence, router, resolvers and media storage
- API client helpers for JWT-authenticated requests

Pushes are scheduled with transaction.on_commit(). Tests that assert on
pushed events wrap the service call in django_capture_on_commit_callbacks:

    def test_example(group, alice, runtime, django_capture_on_commit_callbacks):
        runtime.connect(alice)
        with django_capture_on_commit_callbacks(execute=True):
            MessageService.send(group.id, alice, "text", {"text": "hi"})
        assert runtime.events_for(alice, "newMessage")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from django.apps import apps
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from core.exceptions import ExternalServiceError
from messaging.collaborators import StoredMedia, UserDirectoryResolver
from messaging.constants import ErrorCode
from messaging.delivery import DeliveryRouter
from messaging.presence import PresenceRegistry
from messaging.tests.factories import (
    GroupConversationFactory,
    PrivateConversationFactory,
)


# =============================================================================
# Runtime Doubles
# =============================================================================


class RecordingTransport:
    """ClientTransport that records sends; handles in fail_for raise."""

    def __init__(self):
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_for: set[str] = set()

    def send(self, handle: str, event_kind: str, payload: dict[str, Any]) -> None:
        if handle in self.fail_for:
            raise ConnectionError(f"connection {handle} is gone")
        self.sent.append((handle, event_kind, payload))


class StaticResolver:
    """EntityResolver over a fixed id -> projection table."""

    def __init__(self, known: dict[str, dict[str, Any]]):
        self.known = {str(key): value for key, value in known.items()}

    def resolve(self, entity_id: str) -> dict[str, Any] | None:
        return self.known.get(str(entity_id))


class InMemoryMediaStorage:
    """MediaStorage keeping uploads in a dict."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail = False
        self._counter = 0

    def store(self, upload) -> StoredMedia:
        if self.fail:
            raise ExternalServiceError(
                "Media storage unavailable",
                error_code=ErrorCode.MEDIA_STORAGE_ERROR,
            )
        self._counter += 1
        handle = f"messaging/avatars/{self._counter}-{upload.name}"
        self.files[handle] = upload.read()
        return StoredMedia(locator=f"https://media.example.com/{handle}", handle=handle)

    def delete(self, handle: str) -> None:
        self.files.pop(handle, None)
        self.deleted.append(handle)


@dataclass
class MessagingRuntime:
    """The collaborators installed on the messaging app config for a test."""

    presence: PresenceRegistry
    transport: RecordingTransport
    router: DeliveryRouter
    resolvers: dict[str, Any]
    media_storage: InMemoryMediaStorage
    handles: dict[int, str] = field(default_factory=dict)

    def connect(self, user, handle: str | None = None) -> str:
        """Register user as online and return their connection handle."""
        handle = handle or f"conn-{user.pk}"
        self.presence.register(user.pk, handle)
        self.handles[user.pk] = handle
        return handle

    def events_for(self, user, kind: str | None = None) -> list[dict[str, Any]]:
        """Payloads sent to user's handle, optionally filtered by event kind."""
        handle = self.handles.get(user.pk)
        return [
            payload
            for sent_handle, sent_kind, payload in self.transport.sent
            if sent_handle == handle and (kind is None or sent_kind == kind)
        ]

    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.transport.sent]


PRODUCTS = {"42": {"id": 42, "title": "Vintage lamp"}}
POSTS = {"7": {"id": 7, "caption": "Sunset"}}


@pytest.fixture(autouse=True)
def runtime(monkeypatch):
    """
    Replace the messaging runtime collaborators with recording doubles.

    Product 42 and post 7 exist; profiles resolve against real users.
    """
    config = apps.get_app_config("messaging")
    presence = PresenceRegistry()
    transport = RecordingTransport()
    state = MessagingRuntime(
        presence=presence,
        transport=transport,
        router=DeliveryRouter(presence, transport),
        resolvers={
            "product": StaticResolver(PRODUCTS),
            "post": StaticResolver(POSTS),
            "profile": UserDirectoryResolver(),
        },
        media_storage=InMemoryMediaStorage(),
    )

    monkeypatch.setattr(config, "presence", state.presence)
    monkeypatch.setattr(config, "router", state.router)
    monkeypatch.setattr(config, "resolvers", state.resolvers)
    monkeypatch.setattr(config, "media_storage", state.media_storage)
    return state


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(username="alice")


@pytest.fixture
def bob(db):
    return UserFactory(username="bob")


@pytest.fixture
def carol(db):
    return UserFactory(username="carol")


@pytest.fixture
def dave(db):
    return UserFactory(username="dave")


@pytest.fixture
def outsider(db):
    """A user who is not a participant in any test conversation."""
    return UserFactory(username="outsider")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def group(alice, bob, carol):
    """Group created by alice with bob and carol."""
    return GroupConversationFactory(
        name="Weekend Plans", created_by=alice, members=[bob, carol]
    )


@pytest.fixture
def private(alice, bob):
    """Private conversation between alice and bob."""
    return PrivateConversationFactory(user1=alice, user2=bob)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, alice):
            client = authenticated_client_factory(alice)
            response = client.get("/api/v1/messaging/conversations/")
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


@pytest.fixture
def alice_client(authenticated_client_factory, alice):
    return authenticated_client_factory(alice)


@pytest.fixture
def bob_client(authenticated_client_factory, bob):
    return authenticated_client_factory(bob)


@pytest.fixture
def outsider_client(authenticated_client_factory, outsider):
    return authenticated_client_factory(outsider)
