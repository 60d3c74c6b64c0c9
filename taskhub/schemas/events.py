"""
Realtime wire events.

Every frame on the WebSocket is a JSON object {"event": <name>, "data": ...}.
Server and client events are closed unions discriminated on the event name,
so an unknown or malformed frame fails validation instead of being passed on.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from taskhub.schemas.base import CamelModel
from taskhub.schemas.task import TaskChange, TaskRead
from taskhub.utils.time import utc_now


# Server -> client

class TaskCreatedEvent(CamelModel):
    event: Literal["task:created"] = "task:created"
    data: TaskRead


class TaskUpdatedPayload(CamelModel):
    task: TaskRead
    changes: List[TaskChange]


class TaskUpdatedEvent(CamelModel):
    event: Literal["task:updated"] = "task:updated"
    data: TaskUpdatedPayload


class TaskDeletedPayload(CamelModel):
    task_id: str


class TaskDeletedEvent(CamelModel):
    event: Literal["task:deleted"] = "task:deleted"
    data: TaskDeletedPayload


class NotificationPayload(CamelModel):
    type: str
    message: str
    task_id: Optional[str] = None


class NotificationNewEvent(CamelModel):
    event: Literal["notification:new"] = "notification:new"
    data: NotificationPayload


class UserTypingPayload(CamelModel):
    user_id: str
    user_name: str
    is_typing: bool


class UserTypingEvent(CamelModel):
    event: Literal["task:userTyping"] = "task:userTyping"
    data: UserTypingPayload


class PresencePayload(CamelModel):
    user_id: str
    timestamp: datetime = Field(default_factory=utc_now)


class UserJoinedEvent(CamelModel):
    event: Literal["user:joined"] = "user:joined"
    data: PresencePayload


class UserLeftEvent(CamelModel):
    event: Literal["user:left"] = "user:left"
    data: PresencePayload


ServerEvent = Annotated[
    Union[
        TaskCreatedEvent,
        TaskUpdatedEvent,
        TaskDeletedEvent,
        NotificationNewEvent,
        UserTypingEvent,
        UserJoinedEvent,
        UserLeftEvent,
    ],
    Field(discriminator="event"),
]


# Client -> server

class TaskSubscribeEvent(CamelModel):
    event: Literal["task:subscribe"] = "task:subscribe"
    data: str = Field(min_length=1)


class TaskUnsubscribeEvent(CamelModel):
    event: Literal["task:unsubscribe"] = "task:unsubscribe"
    data: str = Field(min_length=1)


class TaskTypingPayload(CamelModel):
    task_id: str = Field(min_length=1)
    is_typing: bool


class TaskTypingEvent(CamelModel):
    event: Literal["task:typing"] = "task:typing"
    data: TaskTypingPayload


ClientEvent = Annotated[
    Union[TaskSubscribeEvent, TaskUnsubscribeEvent, TaskTypingEvent],
    Field(discriminator="event"),
]

client_event_adapter = TypeAdapter(ClientEvent)
server_event_adapter = TypeAdapter(ServerEvent)
