from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # OpenAI
    openai_api_key: str = ""
    openai_timeout_seconds: float = 120.0
    openai_max_retries: int = 2
    embedding_model: str = "text-embedding-3-small"

    enrichment_model: str = "gpt-5-nano"
    enrichment_model_reasoning: str = "medium"
    auto_suggest_tags: bool = True  # Tag new and edited notes in the background

    summary_model: str = "gpt-5-mini"
    summary_model_advanced: str = "gpt-5"
    summary_model_reasoning: str = "low"
    items_model: str = "gpt-5-nano"

    # Clustering
    cluster_min_notes: int = 2  # Tags/clusters below this note count are pruned
    note_link_path: str = "/note"
    gather_max_concurrency: int = 8


settings = Settings()
