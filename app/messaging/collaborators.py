"""
Narrow interfaces to the systems messaging depends on but does not own.

Protocols:
    MediaStorage: Stores an uploaded binary, returns a locator plus a deletion handle
    EntityResolver: Confirms a foreign id exists and returns a display projection

Default adapters:
    DefaultStorageMedia: Django's default_storage (S3 or local, per settings)
    ModelEntityResolver: Looks ids up on a configurable Django model
    UserDirectoryResolver: Resolves profile references against the User model

Products and posts belong to other services. Point MESSAGING_PRODUCT_MODEL /
MESSAGING_POST_MODEL at an "app_label.Model" to resolve them locally; when
left empty the resolver resolves nothing and such messages are rejected.

Usage:
    from django.apps import apps

    config = apps.get_app_config("messaging")
    stored = config.media_storage.store(request.FILES["avatar"])
    product = config.resolvers["product"].resolve("42")
"""

from __future__ import annotations

import logging
import posixpath
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from django.apps import apps
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from django.core.files import File

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredMedia:
    """Result of storing an upload."""

    locator: str
    handle: str


@runtime_checkable
class MediaStorage(Protocol):
    def store(self, upload: File) -> StoredMedia: ...

    def delete(self, handle: str) -> None: ...


@runtime_checkable
class EntityResolver(Protocol):
    def resolve(self, entity_id: str) -> dict[str, Any] | None:
        """Return a read-only projection, or None when the id does not exist."""
        ...


# =============================================================================
# Media storage
# =============================================================================


class DefaultStorageMedia:
    """
    MediaStorage backed by django.core.files.storage.default_storage.

    The storage name doubles as the deletion handle; the locator is the
    storage URL.
    """

    upload_prefix = "messaging/avatars"

    def store(self, upload: File) -> StoredMedia:
        extension = posixpath.splitext(getattr(upload, "name", "") or "")[1].lower()
        name = posixpath.join(self.upload_prefix, f"{uuid.uuid4().hex}{extension}")
        try:
            saved_name = default_storage.save(name, upload)
            locator = default_storage.url(saved_name)
        except Exception as e:
            logger.error(f"Media storage failed for {name}: {e}", exc_info=True)
            raise ExternalServiceError(
                "Could not store the uploaded file",
                error_code="MEDIA_STORAGE_ERROR",
            ) from e
        return StoredMedia(locator=locator, handle=saved_name)

    def delete(self, handle: str) -> None:
        if handle and default_storage.exists(handle):
            default_storage.delete(handle)


def load_media_storage(dotted_path: str) -> MediaStorage:
    return import_string(dotted_path)()


# =============================================================================
# Entity resolvers
# =============================================================================


class ModelEntityResolver:
    """
    Resolve ids against a Django model given as "app_label.ModelName".

    The projection is the row's concrete field values (foreign keys as ids).
    An empty model label yields a resolver that resolves nothing.
    """

    def __init__(self, model_label: str = "", fields: tuple[str, ...] | None = None):
        self.model_label = model_label
        self.fields = fields

    def _model(self):
        if not self.model_label:
            return None
        return apps.get_model(self.model_label)

    def resolve(self, entity_id: str) -> dict[str, Any] | None:
        model = self._model()
        if model is None:
            return None

        try:
            pk = model._meta.pk.to_python(entity_id)
        except DjangoValidationError:
            return None

        queryset = model._default_manager.filter(pk=pk)
        if self.fields:
            row = queryset.values(*self.fields).first()
        else:
            row = queryset.values().first()
        return dict(row) if row is not None else None


class UserDirectoryResolver:
    """Profile references resolve to the public profile of an active user."""

    def resolve(self, entity_id: str) -> dict[str, Any] | None:
        User = get_user_model()
        try:
            user_id = int(entity_id)
        except (TypeError, ValueError):
            return None

        user = (
            User.objects.filter(pk=user_id, is_active=True)
            .select_related("profile")
            .first()
        )
        if user is None:
            return None
        return user_projection(user)


def user_projection(user) -> dict[str, Any]:
    """Public, read-only view of a user as shown in conversations."""
    profile = getattr(user, "profile", None)
    return {
        "id": user.pk,
        "username": profile.username if profile else "",
        "full_name": profile.full_name if profile else "",
        "avatar_url": profile.avatar_url if profile else "",
        "display_name": user.display_name,
    }
