"""
Typed payload validation for outgoing messages.

A client sends a message type plus a flat payload:

    {"type": "text",    "text": "hi"}
    {"type": "image",   "image_url": "https://..."}
    {"type": "product", "product_id": "42"}
    {"type": "post",    "post_id": "7"}
    {"type": "profile", "profile_id": "3"}

normalize_payload() checks that exactly the field belonging to the type is
present and usable, resolves foreign references through the configured
EntityResolver, and returns the Message field values to persist. Reference
types also return the resolver projection as a JSON-safe "reference" snapshot.

Errors are raised as core exceptions and converted to ServiceResult by
MessageService.send().
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from core.exceptions import NotFoundError, ValidationError

from messaging.collaborators import EntityResolver
from messaging.constants import MESSAGE_CONFIG, ErrorCode
from messaging.models import PAYLOAD_FIELDS, MessageType

# Request key -> Message field, per sendable type
REQUEST_KEYS: dict[str, str] = {
    MessageType.TEXT: "text",
    MessageType.IMAGE: "image_url",
    MessageType.PRODUCT: "product_id",
    MessageType.POST: "post_id",
    MessageType.PROFILE: "profile_id",
}

REFERENCE_TYPES = (MessageType.PRODUCT, MessageType.POST, MessageType.PROFILE)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _snapshot(projection: Mapping[str, Any]) -> dict[str, Any]:
    # Decimals, dates and UUIDs from model rows become strings
    return json.loads(json.dumps(dict(projection), cls=DjangoJSONEncoder))


def normalize_payload(
    message_type: str,
    payload: Mapping[str, Any],
    resolvers: Mapping[str, EntityResolver],
) -> dict[str, Any]:
    """
    Validate a payload against its declared type.

    Args:
        message_type: One of the user-sendable MessageType values
        payload: Request data keyed by REQUEST_KEYS values
        resolvers: EntityResolver per reference type ("product", "post", "profile")

    Returns:
        Dict of Message field -> value for the single payload field, plus
        "reference" (the resolved projection) for reference types

    Raises:
        ValidationError: Unknown/unsendable type, missing field, or foreign fields present
        NotFoundError: A reference id that does not resolve
    """
    if message_type not in REQUEST_KEYS:
        raise ValidationError(
            f"Messages of type '{message_type}' cannot be sent",
            error_code=ErrorCode.INVALID_MESSAGE_TYPE,
        )

    key = REQUEST_KEYS[message_type]
    foreign = [
        other_key
        for other_type, other_key in REQUEST_KEYS.items()
        if other_type != message_type and _clean(payload.get(other_key))
    ]
    if foreign:
        raise ValidationError(
            f"Fields {', '.join(sorted(foreign))} do not belong to a {message_type} message",
            error_code=ErrorCode.INVALID_PAYLOAD,
            details={"fields": {name: ["Not allowed for this type."] for name in foreign}},
        )

    value = _clean(payload.get(key))
    if not value:
        raise ValidationError(
            f"A {message_type} message requires '{key}'",
            error_code=ErrorCode.INVALID_PAYLOAD,
            details={"fields": {key: ["This field is required."]}},
        )

    if message_type == MessageType.TEXT and len(value) > MESSAGE_CONFIG.MAX_TEXT_LENGTH:
        raise ValidationError(
            f"Text cannot exceed {MESSAGE_CONFIG.MAX_TEXT_LENGTH} characters",
            error_code=ErrorCode.INVALID_PAYLOAD,
            details={"fields": {key: ["Too long."]}},
        )

    fields: dict[str, Any] = {PAYLOAD_FIELDS[message_type]: value}

    if message_type in REFERENCE_TYPES:
        resolver = resolvers.get(str(message_type))
        projection = resolver.resolve(value) if resolver is not None else None
        if projection is None:
            raise NotFoundError(
                f"Referenced {message_type} {value} does not exist",
                error_code=ErrorCode.REFERENCE_NOT_FOUND,
            )
        fields["reference"] = _snapshot(projection)

    return fields
