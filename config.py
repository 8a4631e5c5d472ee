"""URL summariser configuration — loaded from environment / .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    # --- LLM provider --------------------------------------------------
    llm_provider: str = "openai"  # "openai" | "azure" | "local"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"

    # Azure OpenAI
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = ""

    # Local / Ollama
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_model: str = "llama3"

    llm_temperature: float | None = None
    llm_timeout_seconds: float | None = None  # None → wait as long as the provider takes

    # --- Server ---------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    allowed_origins: str = "*"  # comma-separated origins

    # --- Summarizer -----------------------------------------------------
    summary_words: int = 100
    split_threshold_words: int = 3000  # ≈ 4k-token context of gpt-3.5-turbo
    hard_cap_words: int = 10_000
    hard_cap_keep_words: int = 1000
    rate_limit_wait_seconds: float = 5.0
    max_attempts: int = 0  # 0 → retry forever
    retry_backoff_multiplier: float = 0.0  # 0 → retry immediately
    retry_backoff_max: float = 30.0
    max_concurrent_completions: int = 0  # 0 → unbounded

    # --- Sources --------------------------------------------------------
    fetch_timeout_seconds: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    transcript_language: str = "en"


settings = Settings()
