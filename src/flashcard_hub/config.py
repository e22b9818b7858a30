"""Application configuration loaded from environment variables."""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from flashcard_hub.db import DEFAULT_DB_PATH


class Settings(BaseSettings):
    """Settings read from FLASHCARD_HUB_* variables or a local .env file."""

    model_config = SettingsConfigDict(env_prefix="FLASHCARD_HUB_", env_file=".env", extra="ignore")

    db_path: str = DEFAULT_DB_PATH

    # Supabase project (remote sync, auth and card generation)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    generate_function: str = "generate-flashcards"

    sync_settle_seconds: float = 1.0
    request_timeout: float = 10.0

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
