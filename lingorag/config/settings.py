"""Configuration for the lingorag content cache, read from env and ``.env``."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings; every field maps to an upper-case env var."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # RAG backend
    rag_backend_url: str = "https://trm2-autrag-backend.speedofmastry.workers.dev"
    rag_api_key: str = ""
    request_timeout: float = 30.0

    @field_validator("rag_api_key", "rag_backend_url", mode="after")
    @classmethod
    def strip_pasted_noise(cls, value: str) -> str:
        # Values pasted from dashboards can carry a BOM, which breaks headers
        return value.lstrip("\ufeff").strip()

    @field_validator("rag_backend_url", mode="after")
    @classmethod
    def drop_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    # Document defaults
    default_language: str = "ar"

    # Search settings
    similarity_threshold: float = 0.7
    search_max_results: int = 5

    # Generation settings
    llm_model: str = "@cf/meta/llama-3-8b-instruct"
    max_tokens: int = 1000
    temperature: float = 0.7
    max_context_length: int = 1000
    fallback_generation_cost: float = 0.001

    # Retry policy
    retry_max_attempts: int = 2
    retry_delay_seconds: float = 2.0

    # Retention
    cleanup_max_age_days: int = 30

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


# Process-wide settings
settings = Settings()
