from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    API_URL: str = "http://localhost:8000/api/v1"
    WS_URL: str = "ws://localhost:8000/ws"
    CACHE_DIR: Path = Path.home() / ".direct_chat"

    REQUEST_TIMEOUT_SECONDS: float = 10.0
    TYPING_DEBOUNCE_SECONDS: float = 1.0
    SEARCH_DEBOUNCE_SECONDS: float = 1.0
    IDLE_DISCONNECT_SECONDS: float = 300.0

    model_config = SettingsConfigDict(
        env_prefix="CHAT_CLIENT_",
        env_file=".env",
        extra="ignore",
    )
