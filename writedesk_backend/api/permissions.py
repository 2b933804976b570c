"""Role policy.

Every authorization decision in the portal is a lookup on ``User.Role``.
Each table below is keyed by the full role enum and checked for coverage
at import time, so adding a role without deciding its permissions fails
loudly instead of silently denying or granting.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from django.core.exceptions import ImproperlyConfigured
from rest_framework.permissions import BasePermission

from .models import Task, Team, User

Role = User.Role


@dataclass(frozen=True)
class UpdateScope:
    """What a user may change on one task.

    ``fields`` of None means any writable field. ``statuses`` of None means
    any status value.
    """
    allowed: bool
    fields: frozenset[str] | None = None
    statuses: frozenset[str] | None = None
    reason: str = ""

    def permits(self, changes: Mapping[str, object]) -> tuple[bool, str]:
        if not self.allowed:
            return False, self.reason
        if self.fields is not None:
            extra = set(changes) - self.fields
            if extra:
                return False, f"Not allowed to change: {', '.join(sorted(extra))}."
        if self.statuses is not None and "status" in changes and changes["status"] not in self.statuses:
            return False, self.reason or "Not allowed to set this status."
        return True, ""


ANY_FIELD = UpdateScope(allowed=True)
DENIED = UpdateScope(allowed=False, reason="Unauthorized to update this task.")


def _require_all_roles(name: str, table: Mapping[str, object]) -> None:
    missing = set(Role.values) - set(table)
    if missing:
        raise ImproperlyConfigured(f"Role policy {name} does not cover: {', '.join(sorted(missing))}")


CAN_CREATE_TASK: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: True,
    Role.SALES: True,
    Role.WRITER: False,
    Role.PROOFREADER: False,
}

CAN_VIEW_DIRECTORY: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: True,
    Role.SALES: False,
    Role.WRITER: False,
    Role.PROOFREADER: False,
}

CAN_CREATE_TEAM: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: False,
    Role.SALES: False,
    Role.WRITER: False,
    Role.PROOFREADER: False,
}

# Roles a task may be assigned to.
IS_ASSIGNABLE: dict[str, bool] = {
    Role.SUPERADMIN: False,
    Role.TEAM_LEAD: True,
    Role.SALES: False,
    Role.WRITER: True,
    Role.PROOFREADER: True,
}

# Roles that hear about every newly created task.
HEARS_TASK_CREATED: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: True,
    Role.SALES: False,
    Role.WRITER: True,
    Role.PROOFREADER: False,
}


def _writer_sees(user, task: Task) -> bool:
    return task.assigned_to_id == user.id


def _everyone_sees(user, task: Task) -> bool:
    return True


TASK_VISIBILITY: dict[str, Callable[[User, Task], bool]] = {
    Role.SUPERADMIN: _everyone_sees,
    Role.TEAM_LEAD: _everyone_sees,
    Role.SALES: _everyone_sees,
    Role.WRITER: _writer_sees,
    Role.PROOFREADER: _everyone_sees,
}


def _writer_scope(user, task: Task) -> UpdateScope:
    if task.assigned_to_id != user.id:
        return UpdateScope(allowed=False, reason="Writers can only update their assigned tasks.")
    return UpdateScope(allowed=True, fields=frozenset({"status"}))


def _sales_scope(user, task: Task) -> UpdateScope:
    if task.assigned_by_id != user.id:
        return UpdateScope(allowed=False, reason="Sales users can only update tasks they created.")
    return ANY_FIELD


def _proofreader_scope(user, task: Task) -> UpdateScope:
    return UpdateScope(
        allowed=True,
        fields=frozenset({"status"}),
        statuses=frozenset({Task.Status.COMPLETED, Task.Status.REVISION}),
        reason="Proofreaders can only mark tasks as COMPLETED or REVISION.",
    )


def _full_scope(user, task: Task) -> UpdateScope:
    return ANY_FIELD


TASK_UPDATE_SCOPE: dict[str, Callable[[User, Task], UpdateScope]] = {
    Role.SUPERADMIN: _full_scope,
    Role.TEAM_LEAD: _full_scope,
    Role.SALES: _sales_scope,
    Role.WRITER: _writer_scope,
    Role.PROOFREADER: _proofreader_scope,
}


def _assigned_to(user, queryset):
    return queryset.filter(assigned_to=user)


def _created_by(user, queryset):
    return queryset.filter(assigned_by=user)


def _all_tasks(user, queryset):
    return queryset


# What the task list shows each role.
TASK_LIST_SCOPE: dict[str, Callable] = {
    Role.SUPERADMIN: _all_tasks,
    Role.TEAM_LEAD: _all_tasks,
    Role.SALES: _created_by,
    Role.WRITER: _assigned_to,
    Role.PROOFREADER: _all_tasks,
}

# Roles whose accounts each role may create or edit.
MANAGEABLE_ROLES: dict[str, frozenset[str]] = {
    Role.SUPERADMIN: frozenset(Role.values),
    Role.TEAM_LEAD: frozenset({Role.WRITER, Role.PROOFREADER}),
    Role.SALES: frozenset(),
    Role.WRITER: frozenset(),
    Role.PROOFREADER: frozenset(),
}

CAN_DEACTIVATE_USER: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: False,
    Role.SALES: False,
    Role.WRITER: False,
    Role.PROOFREADER: False,
}


def _leads_team(user, team: Team) -> bool:
    return team.team_lead_id == user.id


def _any_team(user, team: Team) -> bool:
    return True


def _no_team(user, team: Team) -> bool:
    return False


CAN_UPDATE_TEAM: dict[str, Callable[[User, Team], bool]] = {
    Role.SUPERADMIN: _any_team,
    Role.TEAM_LEAD: _leads_team,
    Role.SALES: _no_team,
    Role.WRITER: _no_team,
    Role.PROOFREADER: _no_team,
}

CAN_DELETE_TEAM: dict[str, bool] = {
    Role.SUPERADMIN: True,
    Role.TEAM_LEAD: False,
    Role.SALES: False,
    Role.WRITER: False,
    Role.PROOFREADER: False,
}


for _name, _table in {
    "CAN_CREATE_TASK": CAN_CREATE_TASK,
    "CAN_VIEW_DIRECTORY": CAN_VIEW_DIRECTORY,
    "CAN_CREATE_TEAM": CAN_CREATE_TEAM,
    "IS_ASSIGNABLE": IS_ASSIGNABLE,
    "HEARS_TASK_CREATED": HEARS_TASK_CREATED,
    "TASK_VISIBILITY": TASK_VISIBILITY,
    "TASK_UPDATE_SCOPE": TASK_UPDATE_SCOPE,
    "TASK_LIST_SCOPE": TASK_LIST_SCOPE,
    "MANAGEABLE_ROLES": MANAGEABLE_ROLES,
    "CAN_DEACTIVATE_USER": CAN_DEACTIVATE_USER,
    "CAN_UPDATE_TEAM": CAN_UPDATE_TEAM,
    "CAN_DELETE_TEAM": CAN_DELETE_TEAM,
}.items():
    _require_all_roles(_name, _table)


def role_of(user) -> str | None:
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return Role(user.role)


# PUBLIC_INTERFACE
def can_create_task(user) -> bool:
    role = role_of(user)
    return role is not None and CAN_CREATE_TASK[role]


# PUBLIC_INTERFACE
def can_view_directory(user) -> bool:
    role = role_of(user)
    return role is not None and CAN_VIEW_DIRECTORY[role]


# PUBLIC_INTERFACE
def can_create_team(user) -> bool:
    role = role_of(user)
    return role is not None and CAN_CREATE_TEAM[role]


# PUBLIC_INTERFACE
def is_assignable(user) -> bool:
    return IS_ASSIGNABLE[Role(user.role)]


# PUBLIC_INTERFACE
def hears_task_created(role: str) -> bool:
    return HEARS_TASK_CREATED[Role(role)]


# PUBLIC_INTERFACE
def can_view_task(user, task: Task) -> bool:
    role = role_of(user)
    return role is not None and TASK_VISIBILITY[role](user, task)


# PUBLIC_INTERFACE
def task_update_scope(user, task: Task) -> UpdateScope:
    role = role_of(user)
    if role is None:
        return DENIED
    return TASK_UPDATE_SCOPE[role](user, task)


# PUBLIC_INTERFACE
def visible_tasks(user, queryset):
    """Narrow a task queryset to what the user's task list should show."""
    role = role_of(user)
    if role is None:
        return queryset.none()
    return TASK_LIST_SCOPE[role](user, queryset)


# PUBLIC_INTERFACE
def can_manage_role(user, target_role: str) -> bool:
    """Whether ``user`` may create, or edit, an account holding ``target_role``."""
    role = role_of(user)
    return role is not None and Role(target_role) in MANAGEABLE_ROLES[role]


# PUBLIC_INTERFACE
def can_manage_users(user) -> bool:
    role = role_of(user)
    return role is not None and bool(MANAGEABLE_ROLES[role])


# PUBLIC_INTERFACE
def can_deactivate_user(user) -> bool:
    role = role_of(user)
    return role is not None and CAN_DEACTIVATE_USER[role]


# PUBLIC_INTERFACE
def can_update_team(user, team: Team) -> bool:
    role = role_of(user)
    return role is not None and CAN_UPDATE_TEAM[role](user, team)


# PUBLIC_INTERFACE
def can_delete_team(user) -> bool:
    role = role_of(user)
    return role is not None and CAN_DELETE_TEAM[role]


class CanViewTask(BasePermission):
    """Object-level check that the user may read (and comment/upload on) a task."""

    message = "Unauthorized to access this task."

    def has_object_permission(self, request, view, obj) -> bool:
        return can_view_task(request.user, obj)


class CanCreateTask(BasePermission):
    message = "Unauthorized to create tasks."

    def has_permission(self, request, view) -> bool:
        if view.action != "create":
            return True
        return can_create_task(request.user)


class CanViewDirectory(BasePermission):
    """Allows the user and team directories to super-admins and team leads only."""

    message = "Unauthorized to view users or teams."

    def has_permission(self, request, view) -> bool:
        return can_view_directory(request.user)


class CanManageUsers(BasePermission):
    """Directory reads for admins and leads; writes for roles that manage accounts."""

    message = "Unauthorized to manage users."

    def has_permission(self, request, view) -> bool:
        if view.action in ("list", "retrieve"):
            return can_view_directory(request.user)
        if view.action == "destroy":
            return can_deactivate_user(request.user)
        return can_manage_users(request.user)
