"""Notification fan-out.

``NotificationWriter`` renders and persists one row per recipient.
``NotificationService`` ties the resolver, the writer and the relay together
and is what request handlers call after their primary change is saved.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from asgiref.sync import async_to_sync
from django.apps import apps

from api.models import Task, User

from .models import Notification
from .recipients import resolve_recipients
from .relay import ConnectionManager

logger = logging.getLogger(__name__)

Event = Notification.Type

UNKNOWN_ACTOR = "Someone"

TITLES = {
    Event.TASK_CREATED: "New Task Created",
    Event.TASK_ASSIGNED: "Task Assigned",
    Event.TASK_STATUS_CHANGED: "Task Status Updated",
    Event.COMMENT_ADDED: "New Comment Added",
    Event.FILE_UPLOADED: "File Uploaded",
    Event.DEADLINE_REMINDER: "Deadline Reminder",
}


@dataclass
class FanOutResult:
    """Outcome of one event's fan-out. ``error`` is set when it stopped early."""
    event: str
    task_id: int | None
    recipient_ids: list[int] = field(default_factory=list)
    notification_ids: list[int] = field(default_factory=list)
    pushed: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def partial(self) -> bool:
        return len(self.notification_ids) < len(self.recipient_ids)


def actor_name(actor: User | None) -> str:
    if actor is None:
        return UNKNOWN_ACTOR
    return getattr(actor, "display_name", "") or UNKNOWN_ACTOR


def status_label(status: str) -> str:
    try:
        return Task.Status(status).label
    except ValueError:
        return status.replace("_", " ")


def render(event: str, task: Task, actor: User | None = None, extra: dict[str, Any] | None = None) -> tuple[str, str]:
    """Return ``(title, message)`` for one event."""
    event = Event(event)
    extra = extra or {}
    who = actor_name(actor)
    ref = f'task #{task.id}: "{task.title}"'

    if event == Event.TASK_CREATED:
        message = f"{who} created {ref}"
    elif event == Event.TASK_ASSIGNED:
        assignee = extra.get("assignee")
        message = f"{who} assigned {ref}"
        if assignee is not None:
            message += f" to {actor_name(assignee)}"
    elif event == Event.TASK_STATUS_CHANGED:
        new_status = extra.get("new_status") or task.status
        message = f"{who} changed the status of {ref} to {status_label(new_status)}"
    elif event == Event.COMMENT_ADDED:
        message = f"{who} commented on {ref}"
    elif event == Event.FILE_UPLOADED:
        message = f'{who} uploaded "{extra.get("file_name", "a file")}" to {ref}'
    else:
        days_left = int(extra.get("days_left", 0))
        message = f"Task #{task.id}: \"{task.title}\" is due in {days_left} day{'s' if days_left != 1 else ''}"
    return TITLES[event], message


class NotificationWriter:
    """Persists notification rows. Database errors propagate to the caller."""

    def iter_write(
        self,
        event: str,
        recipients: Iterable[User],
        *,
        task: Task,
        actor: User | None = None,
        extra: dict[str, Any] | None = None,
    ) -> Iterator[Notification]:
        title, message = render(event, task, actor, extra)
        for recipient in recipients:
            yield Notification.objects.create(
                recipient=recipient,
                type=event,
                title=title,
                message=message,
                task=task,
                triggered_by=actor,
                is_read=False,
            )

    def write(self, event: str, recipients: Iterable[User], **kwargs) -> list[Notification]:
        return list(self.iter_write(event, recipients, **kwargs))


class NotificationService:
    """Resolve recipients, write rows, then push a refetch signal to live channels.

    ``dispatch`` never raises; failures are logged and reported on the
    returned ``FanOutResult`` so the primary change is never undone.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager | None = None,
        writer: NotificationWriter | None = None,
    ) -> None:
        self.connection_manager = connection_manager
        self.writer = writer or NotificationWriter()

    def dispatch(
        self,
        event: str,
        *,
        task: Task,
        actor: User | None = None,
        extra: dict[str, Any] | None = None,
    ) -> FanOutResult:
        result = FanOutResult(event=str(event), task_id=task.id)
        try:
            recipients = resolve_recipients(event, task=task, actor_id=actor.id if actor else None)
            result.recipient_ids = [u.id for u in recipients]
            for notification in self.writer.iter_write(event, recipients, task=task, actor=actor, extra=extra):
                result.notification_ids.append(notification.id)
            result.pushed = self.push(result.recipient_ids, event=str(event), task_id=task.id)
        except Exception as exc:
            logger.exception(
                "Notification fan-out failed event=%s task_id=%s written=%s/%s",
                event,
                task.id,
                len(result.notification_ids),
                len(result.recipient_ids),
            )
            result.error = exc
            return result

        logger.info(
            "Notification fan-out event=%s task_id=%s recipients=%s pushed=%s",
            event,
            task.id,
            result.recipient_ids,
            result.pushed,
        )
        return result

    def push(self, user_ids: list[int], *, event: str, task_id: int | None) -> int:
        """Send the refetch signal from synchronous code. Returns sends made."""
        manager = self.connection_manager
        if manager is None or not manager.has_connections(user_ids):
            return 0
        message = {"type": "notification", "data": {"type": event, "taskId": task_id}}
        return async_to_sync(manager.push)(user_ids, message)

    def notify_task_created(self, task: Task, actor: User) -> FanOutResult:
        return self.dispatch(Event.TASK_CREATED, task=task, actor=actor)

    def notify_task_assigned(self, task: Task, actor: User) -> FanOutResult:
        return self.dispatch(Event.TASK_ASSIGNED, task=task, actor=actor, extra={"assignee": task.assigned_to})

    def notify_status_changed(self, task: Task, new_status: str, actor: User) -> FanOutResult:
        return self.dispatch(Event.TASK_STATUS_CHANGED, task=task, actor=actor, extra={"new_status": new_status})

    def notify_comment_added(self, task: Task, actor: User) -> FanOutResult:
        return self.dispatch(Event.COMMENT_ADDED, task=task, actor=actor)

    def notify_file_uploaded(self, task: Task, file_name: str, actor: User) -> FanOutResult:
        return self.dispatch(Event.FILE_UPLOADED, task=task, actor=actor, extra={"file_name": file_name})

    def notify_deadline_reminder(self, task: Task, days_left: int) -> FanOutResult:
        return self.dispatch(Event.DEADLINE_REMINDER, task=task, extra={"days_left": days_left})


def get_connection_manager() -> ConnectionManager:
    return apps.get_app_config("notifications").connection_manager


def get_notification_service() -> NotificationService:
    return apps.get_app_config("notifications").notification_service
