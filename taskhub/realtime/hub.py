"""
Realtime hub: authenticated WebSocket connections and room-based delivery.

Rooms:
    user:<id>  joined automatically on connect, used for notifications
    task:<id>  opt-in via task:subscribe, used for typing indicators

Task events go to every connection; notifications only to the
recipient's user room.
"""

import logging
import uuid
from collections import defaultdict
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Set

from pydantic import ValidationError as PydanticValidationError
from starlette import status
from starlette.websockets import WebSocket, WebSocketDisconnect

from taskhub.core.jwt import TokenUser, verify_token
from taskhub.errors import AuthenticationError
from taskhub.models.notification import Notification
from taskhub.realtime.registry import ConnectionRegistry
from taskhub.schemas.base import CamelModel
from taskhub.schemas.events import (
    NotificationNewEvent,
    NotificationPayload,
    PresencePayload,
    TaskSubscribeEvent,
    TaskTypingEvent,
    TaskUnsubscribeEvent,
    UserJoinedEvent,
    UserLeftEvent,
    UserTypingEvent,
    UserTypingPayload,
    client_event_adapter,
)

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def task_room(task_id: str) -> str:
    return f"task:{task_id}"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    JOINED = "joined"
    DISCONNECTED = "disconnected"


class RealtimeConnection:
    """One client socket and the rooms it belongs to."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.id = connection_id or uuid.uuid4().hex
        self.user: Optional[TokenUser] = None
        self.rooms: Set[str] = set()
        self.state = ConnectionState.CONNECTING

    def __repr__(self) -> str:
        user_id = self.user.id if self.user else None
        return f"<RealtimeConnection {self.id} user={user_id} state={self.state.value}>"


def extract_token(websocket: WebSocket) -> Optional[str]:
    """Token from the ?token= handshake parameter or an Authorization header."""
    token = websocket.query_params.get("token")
    if not token:
        header = websocket.headers.get("authorization", "")
        if header.lower().startswith("bearer "):
            token = header[7:].strip()
    return token or None


class RealtimeHub:
    """Tracks live connections and routes server events to them."""

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        verify: Callable[[str], Optional[TokenUser]] = verify_token,
    ):
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._verify = verify
        self._connections: Dict[str, RealtimeConnection] = {}
        self._rooms: Dict[str, Set[str]] = defaultdict(set)

    # Connection lifecycle

    def authenticate(self, connection: RealtimeConnection) -> TokenUser:
        """
        Verify the handshake token.

        Raises:
            AuthenticationError: token missing or not valid
        """
        token = extract_token(connection.websocket)
        if not token:
            raise AuthenticationError("Authentication required")

        user = self._verify(token)
        if user is None:
            raise AuthenticationError("Invalid token")

        connection.user = user
        connection.state = ConnectionState.AUTHENTICATED
        return user

    async def connect(self, websocket: WebSocket) -> RealtimeConnection:
        """
        Authenticate and accept a socket, then join the user's personal room.

        A rejected handshake is closed with 1008 before accept and the
        AuthenticationError is re-raised to the caller.
        """
        connection = RealtimeConnection(websocket)
        try:
            user = self.authenticate(connection)
        except AuthenticationError as exc:
            logger.warning("Rejected realtime handshake: %s", exc.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
            raise

        await websocket.accept()
        self._connections[connection.id] = connection
        self.registry.add(user.id, connection.id)
        self.join(connection, user_room(user.id))
        connection.state = ConnectionState.JOINED
        logger.info("User connected: %s (connection %s)", user.id, connection.id)

        await self.broadcast(
            UserJoinedEvent(data=PresencePayload(user_id=user.id)),
            exclude=connection.id,
        )
        return connection

    async def disconnect(self, connection: RealtimeConnection) -> None:
        """Remove a connection from every room and from the presence registry."""
        if connection.state == ConnectionState.DISCONNECTED:
            return
        connection.state = ConnectionState.DISCONNECTED

        for room in list(connection.rooms):
            self.leave(connection, room)
        self._connections.pop(connection.id, None)

        if connection.user is None:
            return

        went_offline = self.registry.remove(connection.user.id, connection.id)
        logger.info(
            "User disconnected: %s (connection %s, offline=%s)",
            connection.user.id, connection.id, went_offline,
        )
        await self.broadcast(UserLeftEvent(data=PresencePayload(user_id=connection.user.id)))

    # Rooms

    def join(self, connection: RealtimeConnection, room: str) -> None:
        self._rooms[room].add(connection.id)
        connection.rooms.add(room)

    def leave(self, connection: RealtimeConnection, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(connection.id)
            if not members:
                del self._rooms[room]
        connection.rooms.discard(room)

    def room_members(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, ()))

    # Client events

    async def handle_message(self, connection: RealtimeConnection, raw: str) -> None:
        """Dispatch one client frame. Malformed frames are logged and dropped."""
        try:
            event = client_event_adapter.validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning(
                "Ignoring malformed realtime frame from %s: %d error(s)",
                connection.id, exc.error_count(),
            )
            return

        user = connection.user
        if isinstance(event, TaskSubscribeEvent):
            self.join(connection, task_room(event.data))
            logger.info("User %s subscribed to task %s", user.id, event.data)
        elif isinstance(event, TaskUnsubscribeEvent):
            self.leave(connection, task_room(event.data))
            logger.info("User %s unsubscribed from task %s", user.id, event.data)
        elif isinstance(event, TaskTypingEvent):
            await self.emit_to_room(
                task_room(event.data.task_id),
                UserTypingEvent(
                    data=UserTypingPayload(
                        user_id=user.id,
                        user_name=user.name,
                        is_typing=event.data.is_typing,
                    )
                ),
                exclude=connection.id,
            )

    # Server events

    async def broadcast(self, event: CamelModel, exclude: Optional[str] = None) -> None:
        """Send to every open connection."""
        targets = [c for c in list(self._connections.values()) if c.id != exclude]
        await self._deliver(targets, event)

    async def emit_to_room(self, room: str, event: CamelModel, exclude: Optional[str] = None) -> None:
        targets = [
            self._connections[connection_id]
            for connection_id in self.room_members(room)
            if connection_id != exclude and connection_id in self._connections
        ]
        await self._deliver(targets, event)

    async def emit_to_user(self, user_id: str, event: CamelModel) -> None:
        """Send only to the user's personal room."""
        await self.emit_to_room(user_room(user_id), event)

    async def notify(self, notification: Notification) -> None:
        """Push a stored notification to its recipient as notification:new."""
        await self.emit_to_user(
            notification.user_id,
            NotificationNewEvent(
                data=NotificationPayload(
                    type=notification.type,
                    message=notification.message,
                    task_id=notification.task_id,
                )
            ),
        )

    async def _deliver(self, connections: Iterable[RealtimeConnection], event: CamelModel) -> None:
        payload = event.to_wire()
        failed = []
        for connection in connections:
            try:
                await connection.websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.warning("Dropping connection %s after failed send: %s", connection.id, exc)
                failed.append(connection)

        for connection in failed:
            await self.disconnect(connection)

    # Presence

    def is_user_online(self, user_id: str) -> bool:
        return self.registry.is_online(user_id)

    def online_user_count(self) -> int:
        return self.registry.online_user_count()

    @property
    def connection_count(self) -> int:
        return len(self._connections)
