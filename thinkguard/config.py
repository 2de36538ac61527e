"""Application settings for the thinking-block guard.

Values come from the environment (or a local .env file). Names are upper-case
so they read the same in code and in the deployment environment.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Log the repair count at INFO instead of DEBUG
    DEBUG_THINKING_VALIDATOR: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Used when no earlier assistant turn has reasoning to reuse
    DEFAULT_THINKING_CONTENT: str = "[Continuing from previous reasoning]"


settings = Settings()
