from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    telegram_bot_token: str = Field(alias="TELEGRAM_BOT_TOKEN")
    telegram_webhook_secret: str = Field(default="", alias="TELEGRAM_WEBHOOK_SECRET")

    whatsapp_api_url: str = Field(
        default="https://graph.facebook.com/v18.0",
        alias="WHATSAPP_API_URL",
    )
    whatsapp_access_token: str = Field(default="", alias="WHATSAPP_ACCESS_TOKEN")
    whatsapp_phone_number_id: str = Field(default="", alias="WHATSAPP_PHONE_NUMBER_ID")
    whatsapp_verify_token: str = Field(default="", alias="WHATSAPP_VERIFY_TOKEN")

    database_url: str = Field(alias="DATABASE_URL")
    redis_url: str = Field(alias="REDIS_URL")

    celery_broker_url: str = Field(alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(alias="CELERY_RESULT_BACKEND")

    game_question_timeout_seconds: float = Field(default=15, alias="GAME_QUESTION_TIMEOUT_SECONDS")
    game_timeout_marker_buffer_seconds: float = Field(
        default=3,
        alias="GAME_TIMEOUT_MARKER_BUFFER_SECONDS",
    )
    game_next_question_delay_seconds: float = Field(
        default=3,
        alias="GAME_NEXT_QUESTION_DELAY_SECONDS",
    )
    game_ready_delay_seconds: float = Field(default=2, alias="GAME_READY_DELAY_SECONDS")
    game_ready_ttl_seconds: int = Field(default=300, alias="GAME_READY_TTL_SECONDS")
    game_session_cache_ttl_seconds: int = Field(default=3600, alias="GAME_SESSION_CACHE_TTL_SECONDS")

    payments_enabled: bool = Field(default=True, alias="PAYMENTS_ENABLED")

    zombie_session_max_age_minutes: int = Field(default=60, alias="ZOMBIE_SESSION_MAX_AGE_MINUTES")
    zombie_sweep_interval_seconds: int = Field(default=600, alias="ZOMBIE_SWEEP_INTERVAL_SECONDS")
    timer_sweep_interval_seconds: int = Field(default=300, alias="TIMER_SWEEP_INTERVAL_SECONDS")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
