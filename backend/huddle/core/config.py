"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance for dependency injection.
"""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Huddle Live API"
    database_url: str = "sqlite+aiosqlite:///./data/huddle.db"
    openai_api_key: SecretStr | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_summary_model: str = "gpt-4o-mini"
    summary_temperature: float = 0.2
    fallback_embedding_dim: int = 64
    graph_similarity_threshold: float = 0.65
    graph_top_k: int = 3
    stream_heartbeat_seconds: float = 20.0
    stream_retry_ms: int = 3000
    stream_queue_size: int = 256
    recent_lines_limit: int = 10


@lru_cache()
def get_settings() -> Settings:
    return Settings()
