# webchat/settings.py
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Manages the application's settings, loading from environment variables
    and .env files.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    # Application settings
    LOG_LEVEL: str = "INFO"

    # Web client server settings
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 8080

    # History storage settings
    GAME_DIR: Path = Path(".")
    DATA_DIR: str = "web-chat"
    DB_NAME: str = "chat_messages.db"
    HISTORY_LIMIT: int = 100

    @property
    def database_path(self) -> Path:
        return self.GAME_DIR / self.DATA_DIR / self.DB_NAME

    @property
    def web_chat_url(self) -> str:
        return f"http://localhost:{self.SERVER_PORT}"
