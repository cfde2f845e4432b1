"""Shared fixtures for the web chat bridge tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from webchat.nucleus.builder import RawTextEvent, build_live
from webchat.nucleus.identity import ClientContext, ServerEntry
from webchat.storage.repository import ChatMessageRepository


@pytest.fixture
def remote_context() -> ClientContext:
    return ClientContext(
        has_world=True,
        singleplayer=False,
        server_entry=ServerEntry(name="Friends SMP", address="play.example.net:25565"),
        minecraft_version="1.21.4",
    )


@pytest.fixture
def singleplayer_context(tmp_path: Path) -> ClientContext:
    game_dir = tmp_path / "minecraft"
    return ClientContext(
        has_world=True,
        singleplayer=True,
        run_directory=game_dir,
        save_path=game_dir / "saves" / "New World",
        minecraft_version="1.21.4",
    )


@pytest.fixture
def repository(tmp_path: Path):
    repo = ChatMessageRepository.open(tmp_path / "web-chat" / "chat_messages.db")
    yield repo
    repo.close()


@pytest.fixture
def make_chat(remote_context: ClientContext):
    """Factory for live chat messages with a fixed timestamp."""
    def _make(text: str = "hello", timestamp: int = 1_700_000_000_000, context: ClientContext | None = None):
        event = RawTextEvent(component={"text": text})
        return build_live(event, context or remote_context, timestamp=timestamp)
    return _make
