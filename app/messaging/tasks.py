"""
Celery tasks for the messaging app.

This module defines async tasks for:
- Deleting replaced group avatars from media storage

Related files:
    - services.py: ConversationService.update_group() schedules the cleanup
    - collaborators.py: MediaStorage adapters

Usage:
    from messaging.tasks import delete_avatar_media

    delete_avatar_media.delay(handle)
"""

import logging

from celery import shared_task
from django.apps import apps

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(ExternalServiceError, OSError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def delete_avatar_media(self, handle: str) -> bool:
    """
    Delete a stored avatar that is no longer referenced.

    Args:
        handle: Opaque deletion handle returned by MediaStorage.store()

    Returns:
        True if a deletion was attempted, False for an empty handle
    """
    if not handle:
        return False

    storage = apps.get_app_config("messaging").media_storage
    storage.delete(handle)
    logger.info(f"Deleted avatar media {handle}")
    return True
