from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Generation provider
    llm_provider: str = "openai"  # "openai", "anthropic" or "local"
    llm_model: str = "gpt-4o-mini"
    llm_base_url: str = ""  # OpenAI-compatible endpoint for local servers

    # API Keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Prompt budget overrides (provider defaults apply when unset)
    max_prompt_tokens: int | None = None
    max_chunk_tokens: int | None = None
    chunk_summary_max_tokens: int | None = None

    # Enrolled speaker profile
    speaker_name: str = ""
    speaker_email: str = ""

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("max_prompt_tokens", "max_chunk_tokens", "chunk_summary_max_tokens")
    @classmethod
    def _positive(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("token budgets must be positive integers")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except OSError:
        # If .env is unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
