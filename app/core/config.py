from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = "sqlite+aiosqlite:///./snip.db"
    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "meta-llama/llama-4-maverick:free"
    app_referer: str = "https://snip.vercel.app"
    app_title: str = "Snip - YouTube Video Summarizer"
    cors_proxy_url: str = "https://corsproxy.io/?"
    transcript_backend_url: str | None = None
    noembed_url: str = "https://noembed.com/embed"
    http_timeout_seconds: float = 15.0
    youtube_min_interval_ms: int = 250
    timedtext_min_length: int = 100
    preferred_caption_language: str = "en"
    summary_cache_ttl_days: int = 7
    summary_max_attempts: int = 2
    summary_length_tolerance: int = 45
    summary_min_growth_ratio: float = 1.3
    summary_temperature: float = 0.85
    summary_retry_temperature: float = 0.6
    summary_top_p: float = 0.9
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", env_file_encoding="utf-8")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

@lru_cache

def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
