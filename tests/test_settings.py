from pathlib import Path

from webchat.main import open_repository
from webchat.settings import Settings


def test_defaults_point_at_game_dir_data_folder(monkeypatch):
    for var in ("GAME_DIR", "DATA_DIR", "DB_NAME", "SERVER_PORT"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings(_env_file=None)

    assert settings.database_path == Path(".") / "web-chat" / "chat_messages.db"
    assert settings.web_chat_url == "http://localhost:8080"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("GAME_DIR", str(tmp_path))
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.setenv("HISTORY_LIMIT", "25")
    settings = Settings(_env_file=None)

    assert settings.database_path == tmp_path / "web-chat" / "chat_messages.db"
    assert settings.SERVER_PORT == 9100
    assert settings.HISTORY_LIMIT == 25


def test_open_repository_degrades_to_none(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    assert open_repository(Settings(_env_file=None, GAME_DIR=blocker)) is None


def test_open_repository_creates_store(tmp_path):
    repo = open_repository(Settings(_env_file=None, GAME_DIR=tmp_path))
    try:
        assert repo is not None
        assert repo.path == tmp_path / "web-chat" / "chat_messages.db"
    finally:
        repo.close()
