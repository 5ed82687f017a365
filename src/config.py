import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    log_level: str = "WARNING"
    # Treat an arithmetic overflow as corrupt input and abort the whole run.
    fail_on_overflow: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENTS_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return EngineSettings()
