# tests/test_recipients.py

from __future__ import annotations

import pytest

from api.models import Task, User
from notifications.models import Notification
from notifications.recipients import (
    deadline_reminder_recipients,
    resolve_recipients,
    task_created_recipients,
    task_update_recipients,
)

Event = Notification.Type


def _user(user_id: int, role: str, team_id: int | None = None) -> User:
    return User(id=user_id, username=f"u{user_id}", role=role, team_id=team_id)


@pytest.fixture()
def people() -> list[User]:
    return [
        _user(1, User.Role.SUPERADMIN),
        _user(2, User.Role.SALES),
        _user(4, User.Role.SUPERADMIN),
        _user(7, User.Role.WRITER, team_id=3),
        _user(8, User.Role.PROOFREADER),
        _user(9, User.Role.TEAM_LEAD, team_id=3),
        _user(11, User.Role.WRITER, team_id=5),
    ]


def _ids(users) -> list[int]:
    return [u.id for u in users]


def test_status_change_scenario_excludes_actor(people) -> None:
    people = [u for u in people if u.id in {1, 2, 7, 9}]
    task = Task(id=1, title="Blog Post #1", assigned_to_id=7, assigned_by_id=2)

    recipients = task_update_recipients(task, people, {3: 9}, actor_id=2)

    assert _ids(recipients) == [1, 7, 9]


def test_update_recipients_include_every_superadmin_and_team_lead(people) -> None:
    task = Task(id=5, title="Newsletter", assigned_to_id=7, assigned_by_id=2)

    recipients = task_update_recipients(task, people, {3: 9, 5: None}, actor_id=8)

    assert _ids(recipients) == [1, 2, 4, 7, 9]


def test_update_recipients_deduplicate_overlapping_relations(people) -> None:
    # The lead assigned the task to themselves.
    task = Task(id=6, title="Case study", assigned_to_id=9, assigned_by_id=9)

    recipients = task_update_recipients(task, people, {3: 9}, actor_id=1)

    assert _ids(recipients) == [4, 9]
    assert len(set(_ids(recipients))) == len(recipients)


def test_update_recipients_without_assignee(people) -> None:
    task = Task(id=7, title="Unassigned", assigned_to_id=None, assigned_by_id=2)

    assert _ids(task_update_recipients(task, people, {3: 9}, actor_id=None)) == [1, 2, 4]


def test_task_created_recipients_by_role(people) -> None:
    recipients = task_created_recipients(people, actor_id=1)

    # Sales and proofreaders do not hear about new tasks; the creator is excluded.
    assert _ids(recipients) == [4, 7, 9, 11]


def test_deadline_reminder_recipients(people) -> None:
    task = Task(id=8, title="Whitepaper", assigned_to_id=11, assigned_by_id=2)

    assert _ids(deadline_reminder_recipients(task, people)) == [1, 4, 11]


@pytest.mark.parametrize(
    "event",
    [Event.TASK_CREATED, Event.TASK_ASSIGNED, Event.TASK_STATUS_CHANGED, Event.COMMENT_ADDED, Event.FILE_UPLOADED],
)
@pytest.mark.parametrize("actor_id", [1, 2, 7, 9, 11])
def test_actor_never_receives_own_event(people, event, actor_id) -> None:
    task = Task(id=1, title="Blog Post #1", assigned_to_id=7, assigned_by_id=2)

    recipients = resolve_recipients(event, task=task, actor_id=actor_id, users=people, team_leads={3: 9})

    assert actor_id not in _ids(recipients)


def test_resolve_requires_task_for_update_events(people) -> None:
    with pytest.raises(ValueError):
        resolve_recipients(Event.COMMENT_ADDED, actor_id=1, users=people, team_leads={})


@pytest.mark.django_db
def test_resolve_loads_active_users_and_team_leads(superadmin, sales, lead, writer, task) -> None:
    inactive = User.objects.create_user(username="gone", password="x", role=User.Role.SUPERADMIN, is_active=False)

    recipients = resolve_recipients(Event.TASK_STATUS_CHANGED, task=task, actor_id=sales.id)

    assert _ids(recipients) == sorted([superadmin.id, writer.id, lead.id])
    assert inactive.id not in _ids(recipients)
