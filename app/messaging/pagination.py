"""
Pagination classes for the messaging API.

Conversation lists (the inbox) use cursor pagination so new activity does
not shift pages while a client scrolls. Message history uses explicit
page/limit parameters handled by MessageService.history().
"""

from rest_framework.pagination import CursorPagination


class ConversationCursorPagination(CursorPagination):
    """
    Cursor pagination for the inbox.

    Orders conversations by most recent activity (updated_at, then id).
    Every send and every info message refreshes updated_at.

    Default: 20 conversations per page
    Maximum: 50 conversations per page

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of conversations (optional override)
    """

    page_size = 20
    max_page_size = 50
    page_size_query_param = "page_size"
    ordering = ("-updated_at", "-id")
    cursor_query_param = "cursor"
