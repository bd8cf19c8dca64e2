from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Card Intake API"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False

    database_url: str = "sqlite:///./cards.db"
    auto_create_tables: bool = True
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 400
    openai_timeout_seconds: float | None = None

    storage_dir: str = "data/cards-images"
    public_base_url: str = "http://localhost:8000"
    signing_secret: str = "change-me"
    signing_algorithm: str = "HS256"
    signed_url_ttl_seconds: int = 3600
    max_upload_size_mb: int = 10
    max_batch_size: int = 200

    job_batch_limit: int = 10
    review_confidence_threshold: float = 0.70
    auto_extract_after_pairing: bool = False

    celery_broker_url: str = ""
    celery_result_backend: str = ""
    celery_task_always_eager: bool = False
    job_poll_interval_seconds: int = 30

    def get_celery_broker_url(self) -> str:
        return self.celery_broker_url or "redis://localhost:6379/0"

    def get_celery_result_backend(self) -> str:
        return self.celery_result_backend or self.get_celery_broker_url()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
