"""
Configuration settings for the completion invocation core.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "completion-core"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === OpenAI Provider ===
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_ORGANIZATION: Optional[str] = None
    OPENAI_TIMEOUT: float = 60.0  # seconds, per HTTP request

    # === Invocation Defaults ===
    LLM_MODEL_NAME: str = "gpt-3.5-turbo-instruct"
    LLM_BATCH_SIZE: int = 20  # Prompts per provider request
    LLM_STREAMING: bool = False
    LLM_CONCURRENCY: Optional[int] = None  # None = unbounded
    LLM_TIMEOUT: Optional[float] = None  # Per sub-batch, enforced by the limiter

    # === Retry ===
    MAX_RETRIES: int = 6  # Total attempts per network call
    RETRY_STARTING_DELAY: float = 4.0  # seconds
    RETRY_MAX_DELAY: float = 10.0  # seconds
    RETRY_BACKOFF_BASE: float = 2.0  # Exponential backoff multiplier

    # === Cache ===
    CACHE_BACKEND: Literal["none", "memory", "redis"] = "memory"
    CACHE_TTL_SECONDS: Optional[int] = None  # None = keep until cleared
    CACHE_KEY_PREFIX: str = "llm:cache:"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50  # Connection pool size

    # === Request Tracking ===
    PROMPTLAYER_API_KEY: Optional[str] = None
    PROMPTLAYER_URL: str = "https://api.promptlayer.com/track-request"
    PROMPTLAYER_TAGS: list[str] = []


# Global settings instance
settings = Settings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return settings
