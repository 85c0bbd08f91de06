"""
WebSocket URL routing for the messaging application.

URL Patterns:
    ws/messaging/ - The authenticated user's event stream

Authentication:
    JWT token should be passed as query parameter (?token=<jwt_access_token>)
    or as subprotocol ("jwt", "<jwt_access_token>"). JWTAuthMiddleware
    validates the token and attaches the user to the consumer's scope.
"""

from django.urls import path

from messaging import consumers

websocket_urlpatterns = [
    path("ws/messaging/", consumers.MessagingConsumer.as_asgi()),
]
