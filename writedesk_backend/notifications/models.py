from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from api.models import Task


class Notification(models.Model):
    """A per-recipient record of one task event.

    Rows are created only by the notification writer and mutated only by
    the mark-read operations. They are never deleted by the application.
    """

    class Type(models.TextChoices):
        TASK_CREATED = "task_created", "Task created"
        TASK_ASSIGNED = "task_assigned", "Task assigned"
        TASK_STATUS_CHANGED = "task_status_changed", "Task status changed"
        COMMENT_ADDED = "comment_added", "Comment added"
        FILE_UPLOADED = "file_uploaded", "File uploaded"
        DEADLINE_REMINDER = "deadline_reminder", "Deadline reminder"

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=32, choices=Type.choices, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField()

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )
    triggered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications_triggered",
    )

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
            models.Index(fields=["recipient", "created_at"], name="notif_recipient_created_idx"),
            models.Index(fields=["task", "type"], name="notif_task_type_idx"),
        ]

    def __str__(self) -> str:
        return f"Notification({self.id}) -> User({self.recipient_id}): {self.type}"

    def mark_as_read(self) -> bool:
        """Mark this notification read. Returns False if it already was."""
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at"])
        return True

    @classmethod
    def mark_all_as_read(cls, user) -> int:
        """Mark every unread notification of ``user`` read and return how many changed."""
        return cls.objects.filter(recipient=user, is_read=False).update(is_read=True, read_at=timezone.now())

    @classmethod
    def unread_count(cls, user) -> int:
        return cls.objects.filter(recipient=user, is_read=False).count()
