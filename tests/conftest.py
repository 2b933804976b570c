# tests/conftest.py

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from api.models import Task, Team, User
from notifications.relay import ConnectionManager
from notifications.services import NotificationService


def make_user(username: str, role: str, **extra) -> User:
    return User.objects.create_user(username=username, password="pass-1234", role=role, **extra)


@pytest.fixture()
def superadmin(db) -> User:
    return make_user("admin", User.Role.SUPERADMIN, full_name="Ada Admin")


@pytest.fixture()
def sales(db) -> User:
    return make_user("sam", User.Role.SALES, full_name="Sam Sales")


@pytest.fixture()
def lead(db) -> User:
    return make_user("lena", User.Role.TEAM_LEAD, full_name="Lena Lead")


@pytest.fixture()
def team(lead) -> Team:
    return Team.objects.create(name="Blog team", team_lead=lead)


@pytest.fixture()
def writer(team) -> User:
    return make_user("wendy", User.Role.WRITER, full_name="Wendy Writer", team=team)


@pytest.fixture()
def other_writer(team) -> User:
    return make_user("walt", User.Role.WRITER, full_name="Walt Writer", team=team)


@pytest.fixture()
def proofreader(db) -> User:
    return make_user("pete", User.Role.PROOFREADER, full_name="Pete Proof")


@pytest.fixture()
def task(sales, writer) -> Task:
    return Task.objects.create(
        title="Blog Post #1",
        description="1500 words on remote work",
        word_count=1500,
        client_name="Acme",
        assigned_by=sales,
        assigned_to=writer,
        deadline=timezone.now() + timedelta(days=5),
    )


@pytest.fixture()
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture()
def client_for(api_client):
    def _client_for(user: User) -> APIClient:
        api_client.force_authenticate(user=user)
        return api_client

    return _client_for


@pytest.fixture()
def connection_manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture()
def service(connection_manager) -> NotificationService:
    return NotificationService(connection_manager=connection_manager)


class FakeConnection:
    """Stands in for a WebSocket consumer; records what it was sent."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, content, close: bool = False) -> None:
        if self.fail:
            raise ConnectionResetError("socket gone")
        self.sent.append(content)


@pytest.fixture()
def fake_connection_cls():
    return FakeConnection
