from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    # ---- app/runtime ----
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    verify_ssl: bool = True

    # ---- transport ----
    http_timeout_seconds: float = 10.0
    retry_budget: int = 0  # retries after the first attempt
    retry_delay_seconds: float = 0.5
    deadline_seconds: Optional[float] = None  # cumulative cap across attempts

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_prefix="PENCILS_",      # PENCILS_RETRY_BUDGET, PENCILS_LOG_LEVEL, etc.
        extra = "ignore"
    )


def get_settings() -> Settings:
    """Read settings from the environment / .env."""
    return Settings()
