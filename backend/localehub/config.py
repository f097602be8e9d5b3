from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Optional

# Get the project root (localehub/)
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):

    # Application
    app_env: str = "development"
    app_debug: bool = False
    log_level: str = "INFO"

    # PostgreSQL Configuration
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "localehub_db"
    postgres_user: str = "localehub_user"
    postgres_password: str = ""

    # SQLite (local development and tests)
    use_sqlite: bool = False
    sqlite_url: str = "sqlite+aiosqlite:///./data/localehub.db"

    @computed_field
    @property
    def database_url(self) -> str:
        """Return the appropriate database URL based on configuration."""
        if self.use_sqlite:
            return self.sqlite_url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Database pooling (PostgreSQL)
    db_pool_size: int = 10
    db_max_overflow: int = 10
    db_pool_recycle: int = 1800

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    # AI translation provider: "openai" or "gemini"
    ai_provider: str = "openai"

    # OpenAI API
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Gemini API
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Generation parameters
    ai_temperature: float = 0.3  # Lower temperature for consistent translations
    ai_max_tokens: int = 1000
    ai_request_timeout: float = 30.0

    # Retry / pacing. When unset, each provider uses its own defaults
    # (OpenAI: 1s backoff base, 0.1s pacing; Gemini: 10s backoff base, 4s pacing).
    ai_max_retries: int = 3
    ai_retry_base_delay: Optional[float] = None
    ai_retry_max_delay: float = 120.0
    ai_request_interval_seconds: Optional[float] = None

    @field_validator("ai_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        value = (v or "openai").strip().lower()
        if value not in {"openai", "gemini"}:
            raise ValueError("ai_provider must be 'openai' or 'gemini'")
        return value

    @field_validator("ai_retry_base_delay", "ai_request_interval_seconds", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        if v == "" or v is None:
            return None
        return v

    # Redis Cache (statistics responses)
    redis_url: str = ""
    enable_response_cache: bool = True
    response_cache_ttl: int = 30

    # Prometheus
    prometheus_enabled: bool = False

    # Scheduled fill of missing translations
    scheduler_enabled: bool = True
    auto_translate_enabled: bool = False
    auto_translate_interval_minutes: int = 60

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# Singleton instance for easy import
settings = get_settings()
