"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/screening.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    MAX_DURATION_MS: int = Field(default=1_800_000, ge=1)
    MAX_FOLLOW_UPS: int = Field(default=1, ge=0)
    QUALITY_MIN_CHARS: int = Field(default=50, ge=0)
    PASS_THRESHOLD: int = Field(default=70, ge=0, le=100)
    SESSION_IDLE_HOURS: float = Field(default=24.0, gt=0)
    CAPABILITY_TIMEOUT_S: float = Field(default=8.0, gt=0)

    INTERVIEWER_NAME: str = "Sarah"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
