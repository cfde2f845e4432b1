# webchat/nucleus/protocol.py
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ServerConnectionState(str, Enum):
    """Same naming as the host's play-connection lifecycle events."""
    INIT = "init"
    JOIN = "join"
    DISCONNECT = "disconnect"


class ServerInfo(BaseModel):
    """The play context a message belongs to. `identifier` partitions history."""
    model_config = ConfigDict(frozen=True)

    name: str
    identifier: str


DISCONNECTED = ServerInfo(name="Disconnected", identifier="disconnected")


class ChatPayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_history: bool = Field(..., alias="history", description="True when replayed from the history store.")
    uuid: str = Field(..., description="Deterministic dedup key for the message.")
    component: Dict[str, Any] = Field(..., description="Opaque rich-text tree, passed through unchanged.")


class BaseWireMessage(BaseModel):
    """
    The envelope sent to web clients.
    The shape of `payload` is fixed by `type`; see the concrete subclasses.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: int = Field(..., description="Milliseconds since the UTC epoch, assigned once at construction.")
    server: ServerInfo
    minecraft_version: str = Field(..., alias="minecraftVersion")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ChatMessage(BaseWireMessage):
    type: Literal["chatMessage"] = "chatMessage"
    payload: ChatPayload


class ConnectionStateMessage(BaseWireMessage):
    type: Literal["serverConnectionState"] = "serverConnectionState"
    payload: ServerConnectionState


WireMessage = Annotated[Union[ChatMessage, ConnectionStateMessage], Field(discriminator="type")]

_wire_adapter: TypeAdapter = TypeAdapter(WireMessage)


def parse_wire_message(raw: str | bytes) -> ChatMessage | ConnectionStateMessage:
    """Parses a serialized envelope back into the matching message model."""
    return _wire_adapter.validate_json(raw)
