from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, content: Any, close: bool = False) -> None: ...


class ConnectionManager:
    """Maps authenticated user ids to their open relay connections.

    One instance exists per process (owned by the notifications app config)
    and is handed to the WebSocket consumer and to the notification service.
    All methods are called from the event loop thread.
    """

    def __init__(self) -> None:
        self._connections: dict[int, set[Connection]] = defaultdict(set)

    def register(self, user_id: int, connection: Connection) -> None:
        self._connections[int(user_id)].add(connection)
        logger.debug("Relay connection registered user_id=%s open=%s", user_id, len(self._connections[int(user_id)]))

    def unregister(self, user_id: int, connection: Connection) -> None:
        conns = self._connections.get(int(user_id))
        if not conns:
            return
        conns.discard(connection)
        if not conns:
            del self._connections[int(user_id)]
        logger.debug("Relay connection removed user_id=%s", user_id)

    def connections_for(self, user_id: int) -> list[Connection]:
        return list(self._connections.get(int(user_id), ()))

    def has_connections(self, user_ids: Iterable[int]) -> bool:
        return any(self._connections.get(int(uid)) for uid in user_ids)

    def connected_user_ids(self) -> list[int]:
        return sorted(self._connections)

    async def push(self, user_ids: Iterable[int], message: dict[str, Any]) -> int:
        """Send ``message`` once to every open connection of each user.

        A failing send drops that connection and does not stop the others.
        Returns the number of successful sends.
        """
        sent = 0
        for user_id in dict.fromkeys(int(uid) for uid in user_ids):
            for connection in self.connections_for(user_id):
                try:
                    await connection.send_json(message)
                except Exception:
                    logger.exception("Relay push failed user_id=%s; dropping connection", user_id)
                    self.unregister(user_id, connection)
                    continue
                sent += 1
        return sent
