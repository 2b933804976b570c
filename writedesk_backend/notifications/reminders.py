"""
Deadline reminders.

Tasks due in 2 days and in 1 day get one ``deadline_reminder`` fan-out per
milestone. A milestone already recorded for a task is not sent again, so
the check is safe to run as often as the scheduler likes.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime

from django.utils import timezone

from api.models import Task

from .models import Notification
from .services import NotificationService, get_notification_service

logger = logging.getLogger(__name__)

REMINDER_DAYS = (2, 1)
SECONDS_PER_DAY = 24 * 60 * 60


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days left, rounded up (a deadline 25 hours away is 2 days left)."""
    return math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY)


def reminder_already_sent(task: Task, days_left: int) -> bool:
    return Notification.objects.filter(
        task=task,
        type=Notification.Type.DEADLINE_REMINDER,
        message__contains=f"due in {days_left} day",
    ).exists()


# PUBLIC_INTERFACE
def send_deadline_reminders(
    *,
    now: datetime | None = None,
    service: NotificationService | None = None,
) -> int:
    """Send reminders for tasks at a reminder milestone. Returns tasks reminded."""
    now = now or timezone.now()
    service = service or get_notification_service()
    sent = 0

    tasks = (
        Task.objects
        .select_related("assigned_to")
        .filter(deadline__isnull=False, deadline__gt=now)
        .exclude(status=Task.Status.COMPLETED)
    )

    for task in tasks:
        days_left = days_until(task.deadline, now)
        if days_left not in REMINDER_DAYS:
            continue
        if reminder_already_sent(task, days_left):
            continue

        result = service.notify_deadline_reminder(task, days_left)
        if result.ok:
            sent += 1

    logger.info("Deadline reminders sent for %s task(s)", sent)
    return sent
