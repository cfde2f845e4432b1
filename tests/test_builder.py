import json

import pytest

from webchat.nucleus.builder import (
    MessageBuildError,
    RawTextEvent,
    build_connection_state,
    build_historic,
    build_live,
    message_uuid,
    serialize_component,
    web_chat_link,
)
from webchat.nucleus.identity import ClientContext, resolve_server_info
from webchat.nucleus.protocol import DISCONNECTED, ServerConnectionState
from webchat.storage.repository import HistoryRecord

COMPONENT = {
    "translate": "chat.type.text",
    "with": [{"text": "Steve"}, {"text": "hi all"}],
}


def test_build_live_sets_live_fields(remote_context):
    message = build_live(RawTextEvent(component=COMPONENT), remote_context, timestamp=1234)

    assert message.type == "chatMessage"
    assert message.timestamp == 1234
    assert message.payload.is_history is False
    assert message.payload.component == COMPONENT
    assert message.server == resolve_server_info(remote_context)
    assert message.minecraft_version == "1.21.4"


def test_build_live_uuid_is_deterministic(remote_context):
    event = RawTextEvent(component=COMPONENT)
    first = build_live(event, remote_context, timestamp=1234)
    second = build_live(event, remote_context, timestamp=1234)

    assert first.payload.uuid == second.payload.uuid
    assert first.payload.uuid == message_uuid(1234, serialize_component(COMPONENT))


def test_build_live_uuid_changes_with_time_or_content(remote_context):
    base = build_live(RawTextEvent(component=COMPONENT), remote_context, timestamp=1234)
    later = build_live(RawTextEvent(component=COMPONENT), remote_context, timestamp=1235)
    other = build_live(RawTextEvent(component={"text": "bye"}), remote_context, timestamp=1234)

    assert base.payload.uuid != later.payload.uuid
    assert base.payload.uuid != other.payload.uuid


def test_build_live_stamps_current_time(remote_context):
    message = build_live(RawTextEvent(component=COMPONENT), remote_context)
    assert message.timestamp > 1_600_000_000_000


def test_build_live_without_world_raises():
    with pytest.raises(MessageBuildError):
        build_live(RawTextEvent(component=COMPONENT), ClientContext(has_world=False))


def test_serialize_component_is_compact():
    assert serialize_component({"text": "a", "bold": True}) == '{"text":"a","bold":true}'


def test_build_historic_reuses_stored_key_and_timestamp():
    record = HistoryRecord(
        id=7,
        timestamp=42,
        server_id="abc",
        server_name="Friends SMP",
        message_id="11111111-2222-3333-8444-555555555555",
        message_json=json.dumps(COMPONENT),
        minecraft_version="1.20.1",
    )
    message = build_historic(record)

    assert message.timestamp == 42
    assert message.payload.uuid == record.message_id
    assert message.payload.is_history is True
    assert message.payload.component == COMPONENT
    assert message.server.identifier == "abc"
    assert message.server.name == "Friends SMP"
    assert message.minecraft_version == "1.20.1"


def test_build_historic_without_version():
    record = HistoryRecord(
        id=1, timestamp=1, server_id="abc", server_name="x",
        message_id="m", message_json='{"text":"x"}',
    )
    assert build_historic(record).minecraft_version == ""


def test_build_connection_state(remote_context):
    message = build_connection_state(ServerConnectionState.JOIN, remote_context, timestamp=99)

    assert message.type == "serverConnectionState"
    assert message.payload is ServerConnectionState.JOIN
    assert message.timestamp == 99
    assert message.server.name == "Friends SMP"


def test_build_connection_state_accepts_plain_value():
    message = build_connection_state("disconnect", ClientContext())
    assert message.payload is ServerConnectionState.DISCONNECT
    assert message.server == DISCONNECTED


def test_web_chat_link_is_clickable():
    component = web_chat_link("http://localhost:8080")
    link = component["extra"][0]

    assert component["text"] == "Web chat: "
    assert link["text"] == "http://localhost:8080"
    assert link["clickEvent"] == {"action": "open_url", "value": "http://localhost:8080"}
    assert link["underlined"] is True
