# webchat/nucleus/builder.py
import json
import time
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from webchat.nucleus.identity import ClientContext, resolve_server_info
from webchat.nucleus.protocol import (
    ChatMessage,
    ChatPayload,
    ConnectionStateMessage,
    ServerConnectionState,
    ServerInfo,
)
from webchat.utils.uuids import name_uuid

if TYPE_CHECKING:
    from webchat.storage.repository import HistoryRecord


class MessageBuildError(Exception):
    """Raised when a live event arrives without the context needed to describe it."""


class RawTextEvent(BaseModel):
    """A chat message from a player or a system/game message, as handed over by the host."""
    model_config = ConfigDict(frozen=True)

    component: Dict[str, Any] = Field(..., description="The host's rich-text tree in its JSON form.")
    source: Literal["chat", "game"] = "chat"
    overlay: bool = False


def now_millis() -> int:
    """Current UTC time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def serialize_component(component: Dict[str, Any]) -> str:
    """Compact JSON form of a component, as stored and hashed."""
    return json.dumps(component, separators=(",", ":"), ensure_ascii=False)


def message_uuid(timestamp: int, component_json: str) -> str:
    """The dedup key of a live message: a name-based UUID of timestamp + component."""
    return name_uuid(f"{timestamp}{component_json}")


def build_live(
    event: RawTextEvent,
    context: ClientContext,
    *,
    timestamp: Optional[int] = None,
) -> ChatMessage:
    """
    Converts a live chat or game message into a wire message.

    Raises MessageBuildError when the client has no world attached, rather
    than attributing the message to a made-up context.
    """
    if not context.has_world:
        raise MessageBuildError("Cannot create chat message: client world is null")

    component_json = serialize_component(event.component)
    if timestamp is None:
        timestamp = now_millis()

    return ChatMessage(
        timestamp=timestamp,
        server=resolve_server_info(context),
        minecraft_version=context.minecraft_version,
        payload=ChatPayload(
            is_history=False,
            uuid=message_uuid(timestamp, component_json),
            component=json.loads(component_json),
        ),
    )


def build_historic(record: "HistoryRecord") -> ChatMessage:
    """Maps a stored row back to a wire message, reusing its original key and timestamp."""
    return ChatMessage(
        timestamp=record.timestamp,
        server=ServerInfo(name=record.server_name, identifier=record.server_id),
        minecraft_version=record.minecraft_version or "",
        payload=ChatPayload(
            is_history=True,
            uuid=record.message_id,
            component=json.loads(record.message_json),
        ),
    )


def build_connection_state(
    state: ServerConnectionState,
    context: ClientContext,
    *,
    timestamp: Optional[int] = None,
) -> ConnectionStateMessage:
    return ConnectionStateMessage(
        timestamp=now_millis() if timestamp is None else timestamp,
        server=resolve_server_info(context),
        minecraft_version=context.minecraft_version,
        payload=ServerConnectionState(state),
    )


def web_chat_link(url: str) -> Dict[str, Any]:
    """The clickable "Web chat: <url>" component shown to the player after joining."""
    return {
        "text": "Web chat: ",
        "extra": [
            {
                "text": url,
                "color": "blue",
                "underlined": True,
                "clickEvent": {"action": "open_url", "value": url},
            }
        ],
    }
