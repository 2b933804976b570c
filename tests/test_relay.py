# tests/test_relay.py

from __future__ import annotations

import pytest
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from rest_framework_simplejwt.tokens import AccessToken

from notifications.consumers import AUTH_FAILED_CLOSE_CODE, NotificationConsumer
from notifications.relay import ConnectionManager
from notifications.services import NotificationService

MESSAGE = {"type": "notification", "data": {"type": "comment_added", "taskId": 1}}


@pytest.mark.asyncio
async def test_push_reaches_every_connection_of_each_user_once(fake_connection_cls) -> None:
    manager = ConnectionManager()
    tab_a, tab_b, other = fake_connection_cls(), fake_connection_cls(), fake_connection_cls()
    manager.register(7, tab_a)
    manager.register(7, tab_b)
    manager.register(8, other)

    sent = await manager.push([7, 7, 9], MESSAGE)

    assert sent == 2
    assert tab_a.sent == [MESSAGE]
    assert tab_b.sent == [MESSAGE]
    assert other.sent == []


@pytest.mark.asyncio
async def test_failed_send_drops_only_that_connection(fake_connection_cls) -> None:
    manager = ConnectionManager()
    broken, healthy = fake_connection_cls(fail=True), fake_connection_cls()
    manager.register(7, broken)
    manager.register(7, healthy)

    assert await manager.push([7], MESSAGE) == 1
    assert manager.connections_for(7) == [healthy]
    assert healthy.sent == [MESSAGE]


def test_unregister_forgets_user_without_connections(fake_connection_cls) -> None:
    manager = ConnectionManager()
    conn = fake_connection_cls()
    manager.register(7, conn)

    manager.unregister(7, conn)
    manager.unregister(7, conn)

    assert manager.connected_user_ids() == []
    assert not manager.has_connections([7])


async def _open(manager: ConnectionManager, user=None, **auth) -> WebsocketCommunicator:
    communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(connection_manager=manager), "/ws")
    connected, _ = await communicator.connect()
    assert connected
    if user is not None:
        auth.setdefault("userId", user.id)
        auth.setdefault("token", str(AccessToken.for_user(user)))
    await communicator.send_json_to({"type": "auth", **auth})
    # Let the consumer finish its auth round trip.
    await communicator.receive_nothing(timeout=0.5)
    return communicator


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_recipient_receives_exactly_one_push_and_others_none(superadmin, sales, lead, writer, proofreader, task) -> None:
    manager = ConnectionManager()
    writer_socket = await _open(manager, writer)
    proofreader_socket = await _open(manager, proofreader)
    assert manager.connected_user_ids() == sorted([writer.id, proofreader.id])

    service = NotificationService(connection_manager=manager)
    result = await database_sync_to_async(service.notify_comment_added)(task, sales)

    assert result.ok and result.pushed == 1
    assert await writer_socket.receive_json_from() == {
        "type": "notification",
        "data": {"type": "comment_added", "taskId": task.id},
    }
    assert await writer_socket.receive_nothing()
    assert await proofreader_socket.receive_nothing()

    await writer_socket.disconnect()
    await proofreader_socket.disconnect()
    assert manager.connected_user_ids() == []


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_claimed_id_must_match_token(sales, writer) -> None:
    manager = ConnectionManager()
    communicator = await _open(manager, userId=writer.id, token=str(AccessToken.for_user(sales)))

    output = await communicator.receive_output()

    assert output["type"] == "websocket.close"
    assert output["code"] == AUTH_FAILED_CLOSE_CODE
    assert manager.connected_user_ids() == []
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_bare_user_id_is_rejected(writer) -> None:
    manager = ConnectionManager()
    communicator = await _open(manager, userId=writer.id)

    output = await communicator.receive_output()

    assert output["code"] == AUTH_FAILED_CLOSE_CODE
    assert not manager.has_connections([writer.id])
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_inactive_user_is_rejected(writer) -> None:
    writer.is_active = False
    await database_sync_to_async(writer.save)()
    manager = ConnectionManager()

    communicator = await _open(manager, writer)

    assert (await communicator.receive_output())["code"] == AUTH_FAILED_CLOSE_CODE
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_non_auth_messages_are_ignored() -> None:
    manager = ConnectionManager()
    communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(connection_manager=manager), "/ws")
    await communicator.connect()

    await communicator.send_json_to({"type": "ping"})

    assert await communicator.receive_nothing()
    assert manager.connected_user_ids() == []
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_relay_runs_without_a_channel_layer(writer) -> None:
    assert get_channel_layer() is None
    manager = ConnectionManager()

    communicator = await _open(manager, writer)

    assert manager.has_connections(writer.id)
    await communicator.disconnect()
