"""
URL configuration for the messaging API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/group/                    POST
        /conversations/user/{user_id}/           GET
        /conversations/{id}/                     GET
        /conversations/{id}/leave/               PUT
        /conversations/{id}/edit/                PUT
        /conversations/{id}/add-user/            PUT
        /conversations/{id}/read/                PUT
        /conversations/{id}/messages/            GET

    Messages:
        /messages/                               POST
        /messages/{id}/                          DELETE
        /messages/{id}/reaction/                 PUT

All URLs are prefixed with /api/v1/messaging/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from messaging.views import ConversationViewSet, MessageViewSet

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")
router.register(r"messages", MessageViewSet, basename="message")

app_name = "messaging"

urlpatterns = [
    path("", include(router.urls)),
]
