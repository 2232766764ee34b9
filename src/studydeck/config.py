"""Application settings, read from STUDYDECK_* environment variables or .env."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".studydeck" / "studydeck.db")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STUDYDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = DEFAULT_DB_PATH
    user_id: str = "local"
    user_name: str = "Local User"

    # One hour and one second, matching the exam countdown
    exam_duration_seconds: int = 3601
    exam_question_count: int = 30
    review_count: int = 5

    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    return Settings()
