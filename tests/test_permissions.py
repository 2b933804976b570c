# tests/test_permissions.py

from __future__ import annotations

import pytest

from api import permissions
from api.models import Task, Team, User

Role = User.Role


def _user(user_id: int, role: str) -> User:
    return User(id=user_id, username=f"u{user_id}", role=role)


@pytest.mark.parametrize(
    "table",
    [
        permissions.CAN_CREATE_TASK,
        permissions.CAN_VIEW_DIRECTORY,
        permissions.CAN_CREATE_TEAM,
        permissions.IS_ASSIGNABLE,
        permissions.HEARS_TASK_CREATED,
        permissions.TASK_VISIBILITY,
        permissions.TASK_UPDATE_SCOPE,
        permissions.TASK_LIST_SCOPE,
        permissions.MANAGEABLE_ROLES,
        permissions.CAN_DEACTIVATE_USER,
        permissions.CAN_UPDATE_TEAM,
        permissions.CAN_DELETE_TEAM,
    ],
)
def test_every_policy_covers_every_role(table) -> None:
    assert set(table) == set(Role.values)


@pytest.mark.parametrize(
    "role, expected",
    [
        (Role.SUPERADMIN, True),
        (Role.TEAM_LEAD, True),
        (Role.SALES, True),
        (Role.WRITER, False),
        (Role.PROOFREADER, False),
    ],
)
def test_can_create_task(role, expected) -> None:
    assert permissions.can_create_task(_user(1, role)) is expected


def test_anonymous_user_has_no_permissions() -> None:
    from django.contrib.auth.models import AnonymousUser

    anonymous = AnonymousUser()
    assert not permissions.can_create_task(anonymous)
    assert not permissions.can_view_directory(anonymous)
    assert not permissions.task_update_scope(anonymous, Task(id=1)).allowed


def test_writer_sees_and_updates_only_assigned_tasks() -> None:
    writer = _user(7, Role.WRITER)
    mine = Task(id=1, assigned_to_id=7)
    theirs = Task(id=2, assigned_to_id=8)

    assert permissions.can_view_task(writer, mine)
    assert not permissions.can_view_task(writer, theirs)
    assert permissions.task_update_scope(writer, mine).permits({"status": "SUBMITTED"}) == (True, "")
    allowed, reason = permissions.task_update_scope(writer, mine).permits({"status": "SUBMITTED", "budget": 10})
    assert not allowed and "budget" in reason
    assert not permissions.task_update_scope(writer, theirs).allowed


def test_proofreader_limited_to_completed_or_revision() -> None:
    scope = permissions.task_update_scope(_user(8, Role.PROOFREADER), Task(id=1))

    assert scope.permits({"status": Task.Status.COMPLETED})[0]
    assert scope.permits({"status": Task.Status.REVISION})[0]
    assert not scope.permits({"status": Task.Status.IN_PROGRESS})[0]
    assert not scope.permits({"title": "New"})[0]


def test_sales_updates_only_own_tasks() -> None:
    sales = _user(2, Role.SALES)

    assert permissions.task_update_scope(sales, Task(id=1, assigned_by_id=2)).permits({"title": "x"})[0]
    assert not permissions.task_update_scope(sales, Task(id=2, assigned_by_id=3)).allowed


def test_only_writing_roles_are_assignable() -> None:
    assert [r for r in Role.values if permissions.is_assignable(_user(1, r))] == [
        Role.TEAM_LEAD,
        Role.WRITER,
        Role.PROOFREADER,
    ]


def test_team_lead_manages_only_writers_and_proofreaders() -> None:
    lead = _user(9, Role.TEAM_LEAD)

    assert [r for r in Role.values if permissions.can_manage_role(lead, r)] == [Role.WRITER, Role.PROOFREADER]
    assert all(permissions.can_manage_role(_user(1, Role.SUPERADMIN), r) for r in Role.values)
    assert not permissions.can_manage_users(_user(2, Role.SALES))
    assert not permissions.can_deactivate_user(lead)


def test_team_update_is_limited_to_its_own_lead() -> None:
    team = Team(id=3, name="Blog", team_lead_id=9)

    assert permissions.can_update_team(_user(9, Role.TEAM_LEAD), team)
    assert not permissions.can_update_team(_user(10, Role.TEAM_LEAD), team)
    assert permissions.can_update_team(_user(1, Role.SUPERADMIN), team)
    assert not permissions.can_delete_team(_user(9, Role.TEAM_LEAD))


@pytest.mark.django_db
def test_task_list_scope_per_role(sales, writer, other_writer, lead, task) -> None:
    other = Task.objects.create(title="Other", assigned_to=other_writer)

    def ids(user):
        return set(permissions.visible_tasks(user, Task.objects.all()).values_list("id", flat=True))

    assert ids(writer) == {task.id}
    assert ids(sales) == {task.id}
    assert ids(lead) == {task.id, other.id}
