"""
ViewSets for the messaging API.

This module provides REST API endpoints for the messaging system:
- ConversationViewSet: Inbox, private/group creation and group actions
- MessageViewSet: Send, delete and react

URL Structure:
    /api/v1/messaging/conversations/                      GET, POST
    /api/v1/messaging/conversations/group/                POST
    /api/v1/messaging/conversations/user/{user_id}/       GET
    /api/v1/messaging/conversations/{id}/                 GET
    /api/v1/messaging/conversations/{id}/leave/           PUT
    /api/v1/messaging/conversations/{id}/edit/            PUT
    /api/v1/messaging/conversations/{id}/add-user/        PUT
    /api/v1/messaging/conversations/{id}/read/            PUT
    /api/v1/messaging/conversations/{id}/messages/        GET
    /api/v1/messaging/messages/                           POST
    /api/v1/messaging/messages/{id}/                      DELETE
    /api/v1/messaging/messages/{id}/reaction/             PUT

Design Decisions:
    - Views handle HTTP concerns only; every rule lives in the services
    - Failed ServiceResults are answered with {"error", "error_code"} and the
      status of the code's error kind (404, 403, 400, 409, 502)
    - Membership is checked by the services, so non-members get 403 and
      missing conversations 404 rather than a filtered-queryset 404
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.services import ServiceResult

from messaging.pagination import ConversationCursorPagination
from messaging.serializers import (
    AddUsersSerializer,
    ConversationEditSerializer,
    ConversationSerializer,
    GroupCreateSerializer,
    HistoryQuerySerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PrivateConversationCreateSerializer,
    ReactionSerializer,
)
from messaging.services import ConversationService, MessageService


def failure_response(result: ServiceResult) -> Response:
    """Answer a failed ServiceResult with its error body and status."""
    return Response(result.to_response(), status=result.status_code)


ERROR_RESPONSES = {
    400: OpenApiResponse(description="Validation error"),
    403: OpenApiResponse(description="Not a participant / not the sender"),
    404: OpenApiResponse(description="Conversation, message or user not found"),
}


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        tags=["Messaging - Conversations"],
    ),
    create=extend_schema(
        operation_id="open_private_conversation",
        summary="Open private conversation",
        request=PrivateConversationCreateSerializer,
        responses={200: ConversationSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={200: ConversationSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Conversations"],
    ),
)
class ConversationViewSet(viewsets.GenericViewSet):
    """
    ViewSet for conversation operations.

    list:
        The caller's conversations, most recently active first, with
        participants, last message and unread counters.

    create:
        Open the private conversation with another user (idempotent).

    retrieve:
        One conversation the caller participates in.

    group / add_user / leave / edit:
        Group lifecycle. Each change appends an info message.

    read:
        Reset the caller's unread counter and send a read receipt.

    messages:
        Paginated history, newest page first, each page oldest first.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = ConversationCursorPagination
    lookup_value_regex = r"\d+"
    serializer_class = ConversationSerializer

    def get_queryset(self):
        """Conversations where the user is a current participant."""
        return ConversationService.list_for_user(self.request.user)

    def _conversation_response(self, request, conversation_id, status_code=status.HTTP_200_OK):
        result = ConversationService.fetch(conversation_id, request.user)
        if not result.success:
            return failure_response(result)
        serializer = ConversationSerializer(result.data, context={"request": request})
        return Response(serializer.data, status=status_code)

    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, pk=None):
        return self._conversation_response(request, pk)

    def create(self, request):
        """Open (or reuse) the private conversation with participant_id."""
        serializer = PrivateConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.get_or_create_private(
            request.user, serializer.validated_data["participant_id"]
        )
        if not result.success:
            return failure_response(result)
        return self._conversation_response(request, result.data.id)

    @extend_schema(
        operation_id="get_private_conversation_with_user",
        summary="Get private conversation with user",
        responses={
            200: OpenApiResponse(description="{conversation_id}"),
            **ERROR_RESPONSES,
        },
        tags=["Messaging - Conversations"],
    )
    @action(detail=False, methods=["get"], url_path=r"user/(?P<other_user_id>\d+)")
    def with_user(self, request, other_user_id=None):
        """Conversation id of the private conversation with other_user_id."""
        result = ConversationService.get_or_create_private(
            request.user, int(other_user_id)
        )
        if not result.success:
            return failure_response(result)
        return Response({"conversation_id": result.data.id})

    @extend_schema(
        operation_id="create_group_conversation",
        summary="Create group",
        request=GroupCreateSerializer,
        responses={201: ConversationSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Groups"],
    )
    @action(detail=False, methods=["post"])
    def group(self, request):
        """Create a group with the caller and the listed participants."""
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.create_group(
            creator=request.user,
            name=serializer.validated_data["name"],
            member_ids=serializer.validated_data["participants"],
        )
        if not result.success:
            return failure_response(result)
        return self._conversation_response(
            request, result.data.id, status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="leave_group",
        summary="Leave group",
        request=None,
        responses={
            200: OpenApiResponse(description="{conversation_id, deleted}"),
            **ERROR_RESPONSES,
        },
        tags=["Messaging - Groups"],
    )
    @action(detail=True, methods=["put"])
    def leave(self, request, pk=None):
        """Leave the group; the last participant leaving deletes it."""
        result = ConversationService.leave(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response(result.data)

    @extend_schema(
        operation_id="edit_group",
        summary="Rename group and/or replace avatar",
        request={
            "multipart/form-data": ConversationEditSerializer,
            "application/json": ConversationEditSerializer,
        },
        responses={200: ConversationSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Groups"],
    )
    @action(
        detail=True,
        methods=["put"],
        parser_classes=[MultiPartParser, FormParser, JSONParser],
    )
    def edit(self, request, pk=None):
        """Rename the group and/or upload a new avatar."""
        serializer = ConversationEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConversationService.update_group(
            int(pk),
            request.user,
            name=data.get("name"),
            upload=data.get("avatar"),
        )
        if not result.success:
            return failure_response(result)

        return self._conversation_response(request, pk)

    @extend_schema(
        operation_id="add_group_members",
        summary="Add users to group",
        request=AddUsersSerializer,
        responses={200: ConversationSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Groups"],
    )
    @action(detail=True, methods=["put"], url_path="add-user")
    def add_user(self, request, pk=None):
        """Add users to the group; ids already present are ignored."""
        serializer = AddUsersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.add_members(
            int(pk), request.user, serializer.validated_data["users"]
        )
        if not result.success:
            return failure_response(result)
        return self._conversation_response(request, pk)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        request=None,
        responses={
            200: OpenApiResponse(description="{status, updated}"),
            **ERROR_RESPONSES,
        },
        tags=["Messaging - Conversations"],
    )
    @action(detail=True, methods=["put"])
    def read(self, request, pk=None):
        """Mark every message from others as read."""
        result = ConversationService.mark_read(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response({"status": "read", "updated": result.data})

    @extend_schema(
        operation_id="list_conversation_messages",
        summary="Message history",
        parameters=[
            OpenApiParameter(
                name="page",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Page number counted from the newest messages (default 1)",
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Messages per page (default 50, max 100)",
            ),
        ],
        responses={200: MessageSerializer(many=True), **ERROR_RESPONSES},
        tags=["Messaging - Messages"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        """One page of history, returned oldest first."""
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = MessageService.history(
            int(pk),
            request.user,
            page=query.validated_data["page"],
            limit=query.validated_data["limit"],
        )
        if not result.success:
            return failure_response(result)

        history = result.data
        return Response(
            {
                "messages": MessageSerializer(history.messages, many=True).data,
                "page": history.page,
                "limit": history.limit,
                "has_more": history.has_more,
            }
        )


@extend_schema_view(
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer, **ERROR_RESPONSES},
        tags=["Messaging - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={
            200: MessageSerializer,
            409: OpenApiResponse(description="Message already deleted"),
            **ERROR_RESPONSES,
        },
        tags=["Messaging - Messages"],
    ),
)
class MessageViewSet(viewsets.GenericViewSet):
    """
    ViewSet for message operations.

    create:
        Send a typed message (text, image, product, post, profile).

    destroy:
        Replace the caller's own message with a tombstone.

    reaction:
        Toggle the caller's reaction with an emoji.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer
    lookup_value_regex = r"\d+"

    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payload = {
            key: data[key]
            for key in ("text", "image_url", "product_id", "post_id", "profile_id")
            if key in data
        }
        result = MessageService.send(
            conversation_id=data["conversation_id"],
            sender=request.user,
            message_type=data["type"],
            payload=payload,
            reply_to=data.get("reply_to"),
        )
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        result = MessageService.delete(int(pk), request.user)
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="toggle_message_reaction",
        summary="Toggle reaction",
        request=ReactionSerializer,
        responses={
            200: OpenApiResponse(description="{message_id, reactions}"),
            **ERROR_RESPONSES,
        },
        tags=["Messaging - Messages"],
    )
    @action(detail=True, methods=["put"])
    def reaction(self, request, pk=None):
        """Add the reaction if absent, remove it if present."""
        serializer = ReactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.react(
            int(pk), request.user, serializer.validated_data["emoji"]
        )
        if not result.success:
            return failure_response(result)
        return Response(
            {"message_id": result.data.id, "reactions": result.data.reactions}
        )
