from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DB_URL: str = "sqlite+aiosqlite:///./matchcore.db"
    DB_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # attempts before a stale-version conflict is surfaced to the caller
    MATCH_STALE_RETRIES: int = Field(default=3, ge=1)
    DEFAULT_SOURCE_MODULE: str = "MATCH_SERVICE"

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1].parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
