"""
Constants and configuration for the messaging app.

This module centralizes:
- Group size bounds and message history paging
- Reaction restrictions
- Event kinds pushed to connected clients
- Error codes returned by the services, registered with their error kind

Import example:
    from messaging.constants import GROUP_CONFIG, EventKind, ErrorCode
"""

from typing import Final

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    register_error_codes,
)


# =============================================================================
# Group Configuration
# =============================================================================


class GROUP_CONFIG:
    """Bounds on group membership."""

    # Distinct users, creator included
    MIN_PARTICIPANTS: Final[int] = 2
    MAX_PARTICIPANTS: Final[int] = 10
    MAX_NAME_LENGTH: Final[int] = 100


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message history and content."""

    HISTORY_DEFAULT_LIMIT: Final[int] = 50
    HISTORY_MAX_LIMIT: Final[int] = 100
    MAX_TEXT_LENGTH: Final[int] = 10000  # Characters


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    # Max characters for a single emoji (handles compound emojis)
    MAX_EMOJI_LENGTH: Final[int] = 8


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Close codes used by the socket consumer."""

    CLOSE_UNAUTHENTICATED: Final[int] = 4001
    CLOSE_SUPERSEDED: Final[int] = 4009


# =============================================================================
# Event Kinds
# =============================================================================


class EventKind:
    """Event names pushed to connected participants."""

    NEW_MESSAGE: Final[str] = "newMessage"
    MESSAGE_REACTION: Final[str] = "messageReaction"
    MESSAGE_DELETED: Final[str] = "messageDeleted"
    MESSAGES_READ: Final[str] = "messagesRead"


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Machine-readable failure codes returned in ServiceResult.error_code."""

    # NotFound
    CONVERSATION_NOT_FOUND: Final[str] = "CONVERSATION_NOT_FOUND"
    MESSAGE_NOT_FOUND: Final[str] = "MESSAGE_NOT_FOUND"
    USER_NOT_FOUND: Final[str] = "USER_NOT_FOUND"
    REFERENCE_NOT_FOUND: Final[str] = "REFERENCE_NOT_FOUND"
    REPLY_NOT_FOUND: Final[str] = "REPLY_NOT_FOUND"

    # Unauthorized
    NOT_PARTICIPANT: Final[str] = "NOT_PARTICIPANT"
    NOT_SENDER: Final[str] = "NOT_SENDER"

    # Validation
    SAME_USER: Final[str] = "SAME_USER"
    NOT_GROUP: Final[str] = "NOT_GROUP"
    NAME_REQUIRED: Final[str] = "NAME_REQUIRED"
    INVALID_GROUP_SIZE: Final[str] = "INVALID_GROUP_SIZE"
    NO_USERS: Final[str] = "NO_USERS"
    INVALID_MESSAGE_TYPE: Final[str] = "INVALID_MESSAGE_TYPE"
    INVALID_PAYLOAD: Final[str] = "INVALID_PAYLOAD"
    MESSAGE_DELETED: Final[str] = "MESSAGE_DELETED"
    EMOJI_REQUIRED: Final[str] = "EMOJI_REQUIRED"
    INVALID_EMOJI: Final[str] = "INVALID_EMOJI"

    # Conflict
    ALREADY_DELETED: Final[str] = "ALREADY_DELETED"

    # Collaborators
    MEDIA_STORAGE_ERROR: Final[str] = "MEDIA_STORAGE_ERROR"


register_error_codes(
    NotFoundError,
    ErrorCode.CONVERSATION_NOT_FOUND,
    ErrorCode.MESSAGE_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND,
    ErrorCode.REFERENCE_NOT_FOUND,
    ErrorCode.REPLY_NOT_FOUND,
)
register_error_codes(
    PermissionDeniedError,
    ErrorCode.NOT_PARTICIPANT,
    ErrorCode.NOT_SENDER,
)
register_error_codes(
    ValidationError,
    ErrorCode.SAME_USER,
    ErrorCode.NOT_GROUP,
    ErrorCode.NAME_REQUIRED,
    ErrorCode.INVALID_GROUP_SIZE,
    ErrorCode.NO_USERS,
    ErrorCode.INVALID_MESSAGE_TYPE,
    ErrorCode.INVALID_PAYLOAD,
    ErrorCode.MESSAGE_DELETED,
    ErrorCode.EMOJI_REQUIRED,
    ErrorCode.INVALID_EMOJI,
)
register_error_codes(ConflictError, ErrorCode.ALREADY_DELETED)
register_error_codes(ExternalServiceError, ErrorCode.MEDIA_STORAGE_ERROR)
