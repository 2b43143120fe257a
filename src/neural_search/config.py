"""Configuration management for Neural Search."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM Provider (Anthropic Messages API)
    llm_api_key: str = ""  # API key or auth token
    llm_base_url: str = "https://api.anthropic.com"
    llm_model: str = "claude-sonnet-4-5"
    llm_max_tokens: int = 2048
    llm_timeout: float = 300.0  # seconds
    llm_temperature: float = 0.9
    llm_max_continuations: int = 3  # follow-up requests after a pause_turn stop

    # Web search tool
    web_search_max_uses: int = 5  # searches the model may run per turn

    # Sessions
    session_id_length: int = 8

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
