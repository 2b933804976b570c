"""Audit trail for the task workflow.

Views call the ``record_*`` helpers after their change is saved. Writing
the audit row is best-effort: a failure is logged and an unsaved
``Activity`` is returned so the request still succeeds.
"""
from __future__ import annotations

import logging
from typing import Any

from .models import Activity, Task

logger = logging.getLogger(__name__)

# Audit action for a transition into each status. Unlisted statuses
# are recorded as a plain STATUS_UPDATED.
STATUS_ACTIONS: dict[str, str] = {
    Task.Status.UNDER_REVIEW: Activity.Action.SUBMISSION,
    Task.Status.SUBMITTED: Activity.Action.SUBMISSION,
    Task.Status.COMPLETED: Activity.Action.APPROVAL,
    Task.Status.REVISION: Activity.Action.REVISION,
}


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def _actor_name(user) -> str:
    return getattr(user, "display_name", "") or "Someone"


# PUBLIC_INTERFACE
def record_activity(
    user,
    action: str,
    *,
    task: Task | None = None,
    description: str = "",
    metadata: dict[str, Any] | None = None,
) -> Activity:
    activity = Activity(
        user=_actor(user),
        action=action,
        task=task,
        description=description,
        metadata=metadata or {},
    )
    try:
        activity.save()
    except Exception:
        logger.exception("Failed to record activity action=%s task_id=%s", action, getattr(task, "id", None))
    return activity


def record_task_created(user, task: Task) -> Activity:
    return record_activity(
        user,
        Activity.Action.TASK_CREATED,
        task=task,
        description=f"{_actor_name(user)} created a new task: {task.title}",
    )


def record_task_updated(user, task: Task, fields) -> Activity:
    return record_activity(
        user,
        Activity.Action.TASK_UPDATED,
        task=task,
        description=f"{_actor_name(user)} updated task: {task.title}",
        metadata={"fields": sorted(fields)},
    )


def record_assignment(user, task: Task, previous_id: int | None) -> Activity:
    assignee = task.assigned_to
    return record_activity(
        user,
        Activity.Action.TASK_ASSIGNED,
        task=task,
        description=f"{_actor_name(user)} assigned task {task.title} to {_actor_name(assignee)}",
        metadata={"assigned_to": task.assigned_to_id, "previous": previous_id},
    )


# PUBLIC_INTERFACE
def record_status_change(user, task: Task, old_status: str) -> Activity:
    """Record a move into ``task.status`` under its workflow action (submission, approval, revision)."""
    return record_activity(
        user,
        STATUS_ACTIONS.get(task.status, Activity.Action.STATUS_UPDATED),
        task=task,
        description=f"{_actor_name(user)} changed task status to {task.status}: {task.title}",
        metadata={"from": old_status, "to": task.status},
    )


def record_comment(user, task: Task, comment) -> Activity:
    return record_activity(
        user,
        Activity.Action.COMMENT_ADDED,
        task=task,
        description=f"{_actor_name(user)} commented on: {task.title}",
        metadata={"comment_id": comment.id},
    )


def record_upload(user, task: Task, file) -> Activity:
    return record_activity(
        user,
        Activity.Action.FILE_UPLOADED,
        task=task,
        description=f"{_actor_name(user)} uploaded {file.file_name} to: {task.title}",
        metadata={"file_id": file.id, "category": file.category},
    )
