# tests/test_user_team_api.py

from __future__ import annotations

import pytest

from api.models import Task, Team, User
from notifications.recipients import Event, resolve_recipients

pytestmark = pytest.mark.django_db


def _new_user(role: str, **extra) -> dict:
    return {"username": f"new-{role.lower()}", "password": "s3cret-pass", "role": role, **extra}


@pytest.mark.parametrize("role", [User.Role.WRITER, User.Role.PROOFREADER])
def test_lead_creates_writing_staff(client_for, lead, role) -> None:
    response = client_for(lead).post("/api/users", _new_user(role), format="json")

    assert response.status_code == 201, response.json()
    assert "password" not in response.json()
    created = User.objects.get(username=f"new-{role.lower()}")
    assert created.role == role
    assert created.check_password("s3cret-pass")


@pytest.mark.parametrize("role", [User.Role.SALES, User.Role.SUPERADMIN, User.Role.TEAM_LEAD])
def test_lead_cannot_create_other_roles(client_for, lead, role) -> None:
    response = client_for(lead).post("/api/users", _new_user(role), format="json")

    assert response.status_code == 403
    assert not User.objects.filter(role=role).exclude(id=lead.id).exists()


def test_superadmin_creates_sales(client_for, superadmin) -> None:
    response = client_for(superadmin).post("/api/users", _new_user(User.Role.SALES), format="json")

    assert response.status_code == 201


def test_writers_and_sales_cannot_create_users(client_for, writer, sales) -> None:
    assert client_for(writer).post("/api/users", _new_user(User.Role.WRITER), format="json").status_code == 403
    assert client_for(sales).post("/api/users", _new_user(User.Role.WRITER), format="json").status_code == 403


def test_password_required_on_create(client_for, superadmin) -> None:
    payload = _new_user(User.Role.WRITER)
    del payload["password"]

    response = client_for(superadmin).post("/api/users", payload, format="json")

    assert response.status_code == 400
    assert "password" in response.json()


def test_lead_moves_writer_into_team_and_becomes_a_recipient(client_for, lead, team, sales, superadmin) -> None:
    newcomer = User.objects.create_user(username="nora", password="x", role=User.Role.WRITER)

    task = Task.objects.create(title="Listicle", assigned_by=sales, assigned_to=newcomer)
    assert lead.id not in [u.id for u in resolve_recipients(Event.COMMENT_ADDED, task=task, actor_id=sales.id)]

    response = client_for(lead).patch(f"/api/users/{newcomer.id}", {"team_id": team.id}, format="json")

    assert response.status_code == 200, response.json()
    assert response.json()["team"] == team.id
    recipients = resolve_recipients(Event.COMMENT_ADDED, task=task, actor_id=sales.id)
    assert lead.id in [u.id for u in recipients]


def test_lead_cannot_edit_or_promote_beyond_their_roles(client_for, lead, writer, sales) -> None:
    client = client_for(lead)

    assert client.patch(f"/api/users/{sales.id}", {"full_name": "X"}, format="json").status_code == 403
    assert client.patch(f"/api/users/{writer.id}", {"role": "SUPERADMIN"}, format="json").status_code == 403
    writer.refresh_from_db()
    assert writer.role == User.Role.WRITER


def test_blank_password_keeps_existing(client_for, superadmin, writer) -> None:
    response = client_for(superadmin).patch(f"/api/users/{writer.id}", {"password": "", "full_name": "W. W."}, format="json")

    assert response.status_code == 200
    writer.refresh_from_db()
    assert writer.full_name == "W. W."
    assert writer.check_password("pass-1234")


def test_only_superadmin_deletes_and_never_themselves(client_for, superadmin, lead, writer) -> None:
    assert client_for(lead).delete(f"/api/users/{writer.id}").status_code == 403
    assert client_for(superadmin).delete(f"/api/users/{superadmin.id}").status_code == 400

    response = client_for(superadmin).delete(f"/api/users/{writer.id}")

    assert response.status_code == 204
    writer.refresh_from_db()
    assert writer.is_active is False
    assert client_for(superadmin).get(f"/api/users/{writer.id}").status_code == 404


def test_team_update_by_own_lead_only(client_for, lead, team, superadmin) -> None:
    other_lead = User.objects.create_user(username="olga", password="x", role=User.Role.TEAM_LEAD)

    assert client_for(other_lead).patch(f"/api/teams/{team.id}", {"name": "Hijacked"}, format="json").status_code == 403
    response = client_for(lead).patch(f"/api/teams/{team.id}", {"description": "Long-form blog work"}, format="json")

    assert response.status_code == 200
    team.refresh_from_db()
    assert team.description == "Long-form blog work"
    assert team.name == "Blog team"


def test_team_delete_is_superadmin_only(client_for, lead, team, writer, superadmin) -> None:
    assert client_for(lead).delete(f"/api/teams/{team.id}").status_code == 403

    assert client_for(superadmin).delete(f"/api/teams/{team.id}").status_code == 204

    assert not Team.objects.filter(id=team.id).exists()
    writer.refresh_from_db()
    assert writer.team_id is None
