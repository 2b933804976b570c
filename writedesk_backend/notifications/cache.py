"""Consumer-side notification cache.

Holds the unread count and the notification list for one signed-in user.
The cache is refreshed when it is older than the poll interval, when a
relay push arrives, and after every mark-read call. Mark-read calls go to
the gateway first and then refetch; local state is never edited in place.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Protocol

from django.conf import settings

from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


class NotificationGateway(Protocol):
    def fetch_notifications(self) -> list[dict[str, Any]]: ...

    def fetch_unread_count(self) -> int: ...

    def mark_read(self, notification_id: int) -> None: ...

    def mark_all_read(self) -> None: ...


class LocalNotificationGateway:
    """Gateway that reads one user's notifications straight from the database."""

    def __init__(self, user) -> None:
        self.user = user

    def _queryset(self):
        return Notification.objects.filter(recipient=self.user).select_related("triggered_by")

    def fetch_notifications(self) -> list[dict[str, Any]]:
        return list(NotificationSerializer(self._queryset(), many=True).data)

    def fetch_unread_count(self) -> int:
        return Notification.unread_count(self.user)

    def mark_read(self, notification_id: int) -> None:
        # Raises Notification.DoesNotExist for rows owned by someone else.
        self._queryset().get(id=notification_id).mark_as_read()

    def mark_all_read(self) -> None:
        Notification.mark_all_as_read(self.user)


class NotificationCache:
    def __init__(
        self,
        gateway: NotificationGateway,
        *,
        poll_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval is None:
            poll_interval = float(getattr(settings, "NOTIFICATION_POLL_INTERVAL", DEFAULT_POLL_INTERVAL))
        self.gateway = gateway
        self.poll_interval = poll_interval
        self._clock = clock

        self.notifications: list[dict[str, Any]] = []
        self.unread_count = 0
        self._fetched_at: float | None = None
        self._invalidated = True

    def invalidate(self) -> None:
        self._invalidated = True

    def is_stale(self) -> bool:
        if self._invalidated or self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self.poll_interval

    def refresh(self, *, force: bool = False) -> bool:
        """Refetch when stale (or forced). Returns True if a fetch happened."""
        if not force and not self.is_stale():
            return False
        self.notifications = self.gateway.fetch_notifications()
        self.unread_count = self.gateway.fetch_unread_count()
        self._fetched_at = self._clock()
        self._invalidated = False
        return True

    def poll(self) -> bool:
        """Call on a timer; fetches only once the poll interval has elapsed."""
        return self.refresh()

    def handle_relay_message(self, message: dict[str, Any]) -> bool:
        """React to a relay push. Unknown message types are ignored."""
        if not isinstance(message, dict) or message.get("type") != "notification":
            logger.debug("Ignoring relay message %r", message)
            return False
        self.invalidate()
        return self.refresh()

    def mark_read(self, notification_id: int) -> None:
        self.gateway.mark_read(notification_id)
        self.invalidate()
        self.refresh()

    def mark_all_read(self) -> None:
        self.gateway.mark_all_read()
        self.invalidate()
        self.refresh()
