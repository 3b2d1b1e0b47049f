"""WebSocket event envelopes.

Every frame is ``{"event": <name>, "data": <payload>}``. Inbound frames form a
closed union discriminated on ``event``; payload field names are camelCase on
the wire.
"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from sehra_realtime.domain.value_objects.enums import MessageType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Client -> Server payloads


class AuthenticatePayload(CamelModel):
    email: str = ""
    token: str | None = None


class SendMessagePayload(CamelModel):
    to_user_id: int = Field(gt=0)
    message: str = Field(
        min_length=1,
        validation_alias=AliasChoices("message", "content"),
    )
    type: MessageType = Field(
        default=MessageType.TEXT,
        validation_alias=AliasChoices("type", "messageType"),
    )


class MarkMessagesReadPayload(CamelModel):
    from_user_id: int = Field(gt=0)


class SupervisorAllocatedPayload(CamelModel):
    client_id: int = Field(gt=0)
    supervisor_id: int = Field(gt=0)


class AuthenticateEvent(BaseModel):
    event: Literal["authenticate"]
    # a bare string is a signed token
    data: AuthenticatePayload | str


class SendMessageEvent(BaseModel):
    event: Literal["send_message"]
    data: SendMessagePayload


class MarkMessagesReadEvent(BaseModel):
    event: Literal["mark_messages_read"]
    data: MarkMessagesReadPayload


class SupervisorAllocatedEvent(BaseModel):
    event: Literal["supervisor_allocated"]
    data: SupervisorAllocatedPayload


WsInbound = Annotated[
    Union[
        AuthenticateEvent,
        SendMessageEvent,
        MarkMessagesReadEvent,
        SupervisorAllocatedEvent,
    ],
    Field(discriminator="event"),
]

_inbound_adapter: TypeAdapter[WsInbound] = TypeAdapter(WsInbound)


def parse_inbound(raw: str | bytes) -> WsInbound:
    """Validate a client frame. Raises pydantic.ValidationError."""
    return _inbound_adapter.validate_json(raw)


# Server -> Client


class OutboundEvent(StrEnum):
    AUTHENTICATED = "authenticated"
    AUTHENTICATION_ERROR = "authentication_error"
    UNREAD_COUNT = "unread_count"
    RECEIVE_MESSAGE = "receive_message"
    MESSAGE_SENT = "message_sent"
    MESSAGE_STATUS_UPDATE = "message_status_update"
    MESSAGES_MARKED_READ = "messages_marked_read"
    SUPERVISOR_ASSIGNED = "supervisor_assigned"
    CLIENT_ASSIGNED = "client_assigned"
    VENDOR_ASSIGNED = "vendor_assigned"
    ALLOCATION_SUCCESS = "allocation_success"
    ERROR = "error"
    NOT_AUTHENTICATED = "not_authenticated"


class AuthenticatedPayload(CamelModel):
    success: bool
    user_id: int | None = None
    role: str | None = None


class UnreadCountPayload(CamelModel):
    count: int


class MessageRecord(CamelModel):
    id: int
    from_user_id: int
    to_user_id: int
    content: str
    type: str
    read: bool
    created_at: datetime
    read_at: datetime | None = None


class ReceivedMessagePayload(MessageRecord):
    sender_name: str | None = None


class MessageSentPayload(CamelModel):
    success: bool
    message_id: int


class MessageStatusUpdatePayload(CamelModel):
    to_user_id: int
    read: bool


class SuccessPayload(CamelModel):
    success: bool = True


class SupervisorAssignedPayload(CamelModel):
    supervisor_id: int
    supervisor_name: str
    supervisor_email: str


class ClientAssignedPayload(CamelModel):
    client_id: int
    client_name: str
    client_email: str
    package: str | None = None


class VendorAssignedPayload(CamelModel):
    vendor_id: int
    vendor_name: str
    vendor_email: str
    client_id: int | None = None


class WsOutbound(BaseModel):
    """Server -> Client."""

    event: str
    data: Any = None


def dump_data(data: Any) -> Any:
    """JSON-ready form of an outbound payload."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    return data


def encode_outbound(event: str, data: Any) -> str:
    return WsOutbound(event=str(event), data=dump_data(data)).model_dump_json()
