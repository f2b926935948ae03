import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./recipe_manager.db", alias="DATABASE_URL")
    redis_url: str | None = Field(None, alias="REDIS_URL")
    ai_settings_secret_key: str = Field("change-me", alias="AI_SETTINGS_SECRET_KEY")
    openai_base_url: str = Field("https://api.openai.com", alias="OPENAI_BASE_URL")
    anthropic_base_url: str = Field("https://api.anthropic.com", alias="ANTHROPIC_BASE_URL")
    anthropic_version: str = Field("2023-06-01", alias="ANTHROPIC_VERSION")
    anthropic_max_tokens: int = Field(900, alias="ANTHROPIC_MAX_TOKENS")
    ai_request_timeout_seconds: float = Field(30.0, alias="AI_REQUEST_TIMEOUT_SECONDS")
    meal_assistant_candidate_limit: int = Field(20, alias="MEAL_ASSISTANT_CANDIDATE_LIMIT")
    recommendation_cache_ttl_seconds: int = Field(300, alias="RECOMMENDATION_CACHE_TTL_SECONDS")
    ai_debug_log_retention_days: int = Field(30, alias="AI_DEBUG_LOG_RETENTION_DAYS")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
