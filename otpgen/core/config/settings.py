from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[3]

DEFAULT_HOME_DIR = Path.home() / ".otpgen"
DEFAULT_SECRETS_FILE = DEFAULT_HOME_DIR / "secrets.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OTPGEN_",
        env_file=(BASE_DIR / ".env", BASE_DIR / ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secrets_file: Path = DEFAULT_SECRETS_FILE
    step_seconds: int = Field(default=30, gt=0)
    digits: int = Field(default=6, ge=6, le=8)
    verify_window: int = Field(default=1, ge=0)
    log_level: str = "WARNING"
    startup_log_config: bool = False

    @field_validator("secrets_file", mode="before")
    @classmethod
    def _expand_secrets_file(cls, value: str | Path) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("secrets_file must be a path")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
