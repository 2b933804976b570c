from __future__ import annotations

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    """Abstract base model that adds created/updated timestamps."""
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True


class User(AbstractUser):
    """A portal account. Role is the only input to authorization decisions."""

    class Role(models.TextChoices):
        SUPERADMIN = "SUPERADMIN", "Super admin"
        SALES = "SALES", "Sales"
        TEAM_LEAD = "TEAM_LEAD", "Team lead"
        WRITER = "WRITER", "Writer"
        PROOFREADER = "PROOFREADER", "Proofreader"

    class Availability(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        BUSY = "BUSY", "Busy"
        ON_LEAVE = "ON_LEAVE", "On leave"

    full_name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.WRITER, db_index=True)
    status = models.CharField(max_length=20, choices=Availability.choices, default=Availability.AVAILABLE)
    team = models.ForeignKey(
        "api.Team",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
    )

    def __str__(self) -> str:
        return f"User({self.id}): {self.username} [{self.role}]"

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


class Team(TimeStampedModel):
    """A group of writers/proofreaders with at most one lead."""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    team_lead = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="led_teams",
    )

    class Meta:
        indexes = [
            models.Index(fields=["name"], name="api_team_name_idx"),
        ]

    def __str__(self) -> str:
        return f"Team({self.id}): {self.name}"


class Task(TimeStampedModel):
    """A writing order moving through the delivery workflow."""
    class Status(models.TextChoices):
        NEW = "NEW", "New"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        UNDER_REVIEW = "UNDER_REVIEW", "Under Review"
        SUBMITTED = "SUBMITTED", "Submitted"
        REVISION = "REVISION", "Revision"
        COMPLETED = "COMPLETED", "Completed"

    title = models.CharField(max_length=250)
    description = models.TextField(blank=True)
    word_count = models.PositiveIntegerField(null=True, blank=True)
    client_name = models.CharField(max_length=200, blank=True)
    budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NEW)

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tasks_assigned",
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tasks_created",
    )
    proofreader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tasks_proofread",
    )

    deadline = models.DateTimeField(null=True, blank=True)
    submission_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="api_task_status_idx"),
            models.Index(fields=["assigned_to"], name="api_task_assigned_to_idx"),
            models.Index(fields=["assigned_by"], name="api_task_assigned_by_idx"),
            models.Index(fields=["deadline"], name="api_task_deadline_idx"),
            models.Index(fields=["created_at"], name="api_task_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Task({self.id}): {self.title}"


class File(TimeStampedModel):
    """A file attached to a task. Content is kept inline as sent by the client."""
    class Category(models.TextChoices):
        INSTRUCTION = "INSTRUCTION", "Instruction"
        DRAFT = "DRAFT", "Draft"
        FINAL = "FINAL", "Final"
        FEEDBACK = "FEEDBACK", "Feedback"

    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="files")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="files_uploaded",
    )
    file_name = models.CharField(max_length=255)
    file_size = models.PositiveIntegerField(default=0)
    file_type = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.INSTRUCTION)
    is_submission = models.BooleanField(default=False)
    content = models.TextField(blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["task", "created_at"], name="api_file_task_created_idx"),
        ]

    def __str__(self) -> str:
        return f"File({self.id}): {self.file_name} on Task({self.task_id})"


class Comment(TimeStampedModel):
    """A comment on a task."""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="comments_authored",
    )
    content = models.TextField()

    class Meta:
        indexes = [
            models.Index(fields=["task", "created_at"], name="api_comment_task_created_idx"),
            models.Index(fields=["author"], name="api_comment_author_idx"),
        ]

    def __str__(self) -> str:
        return f"Comment({self.id}) on Task({self.task_id})"


class Activity(TimeStampedModel):
    """An audit trail row describing one mutation."""
    class Action(models.TextChoices):
        TASK_CREATED = "TASK_CREATED", "Task created"
        TASK_UPDATED = "TASK_UPDATED", "Task updated"
        TASK_ASSIGNED = "TASK_ASSIGNED", "Task assigned"
        STATUS_UPDATED = "STATUS_UPDATED", "Status updated"
        SUBMISSION = "SUBMISSION", "Submission"
        APPROVAL = "APPROVAL", "Approval"
        REVISION = "REVISION", "Revision"
        COMMENT_ADDED = "COMMENT_ADDED", "Comment added"
        FILE_UPLOADED = "FILE_UPLOADED", "File uploaded"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activities",
    )
    task = models.ForeignKey(Task, on_delete=models.CASCADE, null=True, blank=True, related_name="activities")
    action = models.CharField(max_length=50, choices=Action.choices)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name_plural = "activities"
        indexes = [
            models.Index(fields=["created_at"], name="api_activity_created_idx"),
            models.Index(fields=["action", "created_at"], name="api_activity_action_idx"),
            models.Index(fields=["task", "created_at"], name="api_activity_task_idx"),
        ]

    def __str__(self) -> str:
        return f"Activity({self.id}): {self.action}"
