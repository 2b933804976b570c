"""Recipient resolution for task events.

The rule functions are pure: they take snapshots of users and of the
team -> lead mapping and return users. ``resolve_recipients`` loads those
snapshots from the database when the caller does not supply them.

Every result is de-duplicated by user id and never contains the actor.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from api.models import Task, Team, User
from api.permissions import hears_task_created

from .models import Notification

Event = Notification.Type

TASK_UPDATE_EVENTS = frozenset(
    {
        Event.TASK_ASSIGNED,
        Event.TASK_STATUS_CHANGED,
        Event.COMMENT_ADDED,
        Event.FILE_UPLOADED,
    }
)


def _unique(users: Iterable[User], exclude_id: int | None = None) -> list[User]:
    by_id: dict[int, User] = {}
    for user in users:
        if user is None or user.id == exclude_id:
            continue
        by_id.setdefault(user.id, user)
    return [by_id[k] for k in sorted(by_id)]


def _superadmins(users: Iterable[User]) -> list[User]:
    return [u for u in users if u.role == User.Role.SUPERADMIN]


# PUBLIC_INTERFACE
def task_created_recipients(users: Iterable[User], actor_id: int | None) -> list[User]:
    """Everyone whose role hears about new tasks, minus the creator."""
    return _unique((u for u in users if hears_task_created(u.role)), exclude_id=actor_id)


# PUBLIC_INTERFACE
def task_update_recipients(
    task: Task,
    users: Iterable[User],
    team_leads: Mapping[int, int | None],
    actor_id: int | None,
) -> list[User]:
    """Super-admins, the assigner, the assignee and the assignee's team lead, minus the actor."""
    users = list(users)
    by_id = {u.id: u for u in users}

    candidates: list[User] = list(_superadmins(users))
    if task.assigned_by_id is not None:
        candidates.append(by_id.get(task.assigned_by_id))

    assignee = by_id.get(task.assigned_to_id) if task.assigned_to_id is not None else None
    if assignee is not None:
        candidates.append(assignee)
        if assignee.team_id is not None:
            lead_id = team_leads.get(assignee.team_id)
            if lead_id is not None:
                candidates.append(by_id.get(lead_id))

    return _unique(candidates, exclude_id=actor_id)


# PUBLIC_INTERFACE
def deadline_reminder_recipients(task: Task, users: Iterable[User]) -> list[User]:
    """The assignee plus every super-admin. There is no actor to exclude."""
    users = list(users)
    candidates: list[User] = list(_superadmins(users))
    if task.assigned_to_id is not None:
        candidates.extend(u for u in users if u.id == task.assigned_to_id)
    return _unique(candidates)


def load_users() -> list[User]:
    return list(User.objects.filter(is_active=True))


def load_team_leads() -> dict[int, int | None]:
    return dict(Team.objects.values_list("id", "team_lead_id"))


# PUBLIC_INTERFACE
def resolve_recipients(
    event: str,
    *,
    task: Task | None = None,
    actor_id: int | None = None,
    users: Iterable[User] | None = None,
    team_leads: Mapping[int, int | None] | None = None,
) -> list[User]:
    """Return the users who should hear about ``event``, ordered by id.

    Reads only; nothing is written.
    """
    event = Event(event)
    if users is None:
        users = load_users()

    if event == Event.TASK_CREATED:
        return task_created_recipients(users, actor_id)

    if task is None:
        raise ValueError(f"{event} requires a task")

    if event == Event.DEADLINE_REMINDER:
        return deadline_reminder_recipients(task, users)

    if event in TASK_UPDATE_EVENTS:
        if team_leads is None:
            team_leads = load_team_leads()
        return task_update_recipients(task, users, team_leads, actor_id)

    raise ValueError(f"Unhandled notification event: {event}")
