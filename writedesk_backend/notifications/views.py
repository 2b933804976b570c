from __future__ import annotations

import logging

from drf_yasg.utils import no_body, swagger_auto_schema
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .filters import NotificationFilter
from .models import Notification
from .serializers import MarkAllReadSerializer, NotificationSerializer, UnreadCountSerializer

logger = logging.getLogger(__name__)


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """The signed-in user's notifications. Other users' rows are invisible (404)."""

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = NotificationFilter
    ordering_fields = ["created_at"]
    ordering = ["-created_at", "-id"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Notification.objects.none()
        return Notification.objects.filter(recipient=self.request.user).select_related("triggered_by")

    @swagger_auto_schema(
        responses={200: UnreadCountSerializer},
        operation_summary="Unread notification count",
        tags=["notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    # PUBLIC_INTERFACE
    def unread_count(self, request):
        """Return ``{"count": n}`` for the caller's unread notifications."""
        return Response({"count": Notification.unread_count(request.user)})

    @swagger_auto_schema(
        request_body=no_body,
        responses={200: NotificationSerializer, 404: "Not found"},
        operation_summary="Mark notification read",
        tags=["notifications"],
    )
    @action(detail=True, methods=["patch"], url_path="read")
    # PUBLIC_INTERFACE
    def read(self, request, pk=None):
        """Mark one of the caller's notifications read."""
        notification = self.get_object()
        notification.mark_as_read()
        return Response(self.get_serializer(notification).data)

    @swagger_auto_schema(
        request_body=no_body,
        responses={200: MarkAllReadSerializer},
        operation_summary="Mark all notifications read",
        tags=["notifications"],
    )
    @action(detail=False, methods=["patch"], url_path="mark-all-read")
    # PUBLIC_INTERFACE
    def mark_all_read(self, request):
        """Mark every unread notification of the caller read. Safe to repeat."""
        updated = Notification.mark_all_as_read(request.user)
        logger.debug("Marked %s notification(s) read for user_id=%s", updated, request.user.id)
        return Response({"updated": updated})
