from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import AccessToken

from api.models import User

from .relay import ConnectionManager

logger = logging.getLogger(__name__)

AUTH_FAILED_CLOSE_CODE = 4401


@database_sync_to_async
def _active_user_exists(user_id: int) -> bool:
    return User.objects.filter(id=user_id, is_active=True).exists()


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """One relay channel per browser tab.

    The client opens the socket and sends ``{"type": "auth", "userId": <id>}``.
    The id is only trusted when it matches an identity the server can prove:
    the session user placed in the scope by ``AuthMiddlewareStack`` or a JWT
    access token sent as ``token`` in the auth message. Once authenticated the
    channel receives ``{"type": "notification", "data": {...}}`` pushes.
    """

    def __init__(self, *args, connection_manager: ConnectionManager | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        if connection_manager is None:
            from .services import get_connection_manager

            connection_manager = get_connection_manager()
        self.connection_manager = connection_manager
        self.user_id: int | None = None

    async def connect(self):
        await self.accept()

    async def disconnect(self, code):
        if self.user_id is not None:
            self.connection_manager.unregister(self.user_id, self)
            logger.info("Relay closed user_id=%s code=%s", self.user_id, code)
            self.user_id = None

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict) or content.get("type") != "auth":
            return
        if self.user_id is not None:
            return

        user_id = await self._authenticate(content)
        if user_id is None:
            logger.warning("Relay auth rejected claimed_user_id=%s", content.get("userId"))
            await self.close(code=AUTH_FAILED_CLOSE_CODE)
            return

        self.user_id = user_id
        self.connection_manager.register(user_id, self)
        logger.info("Relay authenticated user_id=%s", user_id)

    async def _authenticate(self, content: dict) -> int | None:
        proven_id = self._scope_user_id()
        if proven_id is None and content.get("token"):
            proven_id = self._token_user_id(str(content["token"]))
        if proven_id is None:
            return None

        claimed = content.get("userId")
        if claimed is not None:
            try:
                claimed_id = int(claimed)
            except (TypeError, ValueError):
                return None
            if claimed_id != proven_id:
                return None

        if not await _active_user_exists(proven_id):
            return None
        return proven_id

    def _scope_user_id(self) -> int | None:
        user = self.scope.get("user")
        if user is not None and getattr(user, "is_authenticated", False):
            return int(user.id)
        return None

    @staticmethod
    def _token_user_id(raw_token: str) -> int | None:
        try:
            token = AccessToken(raw_token)
            return int(token[jwt_settings.USER_ID_CLAIM])
        except (TokenError, KeyError, TypeError, ValueError):
            return None
