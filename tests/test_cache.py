# tests/test_cache.py

from __future__ import annotations

import pytest

from notifications.cache import LocalNotificationGateway, NotificationCache
from notifications.models import Notification


class FakeGateway:
    def __init__(self) -> None:
        self.rows = [{"id": 1, "is_read": False}, {"id": 2, "is_read": False}]
        self.fetches = 0
        self.calls: list[tuple] = []

    def fetch_notifications(self):
        self.fetches += 1
        return [dict(r) for r in self.rows]

    def fetch_unread_count(self):
        return sum(1 for r in self.rows if not r["is_read"])

    def mark_read(self, notification_id):
        self.calls.append(("mark_read", notification_id))
        for row in self.rows:
            if row["id"] == notification_id:
                row["is_read"] = True

    def mark_all_read(self):
        self.calls.append(("mark_all_read",))
        for row in self.rows:
            row["is_read"] = True


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(gateway, clock) -> NotificationCache:
    return NotificationCache(gateway, poll_interval=30, clock=clock)


def test_poll_fetches_only_after_interval(cache, gateway, clock) -> None:
    assert cache.poll() is True
    assert cache.unread_count == 2

    clock.now = 29
    assert cache.poll() is False
    clock.now = 30
    assert cache.poll() is True
    assert gateway.fetches == 2


def test_relay_push_forces_refetch(cache, gateway, clock) -> None:
    cache.refresh()
    gateway.rows.append({"id": 3, "is_read": False})
    clock.now = 1

    assert cache.handle_relay_message({"type": "notification", "data": {"type": "comment_added", "taskId": 1}})
    assert cache.unread_count == 3
    assert [n["id"] for n in cache.notifications] == [1, 2, 3]


def test_unknown_relay_messages_are_ignored(cache, gateway) -> None:
    cache.refresh()

    assert cache.handle_relay_message({"type": "presence"}) is False
    assert cache.handle_relay_message("garbage") is False
    assert gateway.fetches == 1


def test_mark_read_goes_through_gateway_then_refetches(cache, gateway) -> None:
    cache.refresh()

    cache.mark_read(1)

    assert gateway.calls == [("mark_read", 1)]
    assert gateway.fetches == 2
    assert cache.unread_count == 1


def test_mark_all_read_twice_is_harmless(cache, gateway) -> None:
    cache.mark_all_read()
    cache.mark_all_read()

    assert cache.unread_count == 0
    assert gateway.calls == [("mark_all_read",), ("mark_all_read",)]


@pytest.mark.django_db
def test_local_gateway_is_scoped_to_one_user(writer, sales, task) -> None:
    mine = Notification.objects.create(recipient=writer, type="comment_added", title="t", message="m", task=task)
    theirs = Notification.objects.create(recipient=sales, type="comment_added", title="t", message="m", task=task)
    cache = NotificationCache(LocalNotificationGateway(writer), poll_interval=30)

    cache.refresh()
    assert [n["id"] for n in cache.notifications] == [mine.id]
    assert cache.unread_count == 1

    with pytest.raises(Notification.DoesNotExist):
        cache.mark_read(theirs.id)
    cache.mark_read(mine.id)
    assert cache.unread_count == 0
