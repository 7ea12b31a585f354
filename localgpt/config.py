"""Application configuration using pydantic-settings.

All configuration values are loaded from environment variables (prefixed with
``LOCALGPT_``) with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOCALGPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Ollama settings
    ollama_base_url: str = "http://localhost:11434"
    generation_model: str = "qwen2.5:7b-instruct-q4_0"
    embedding_model: str = "bge-m3"
    vision_model: str | None = None  # Used instead of generation_model when images are attached
    ollama_num_ctx: int = 4096
    default_temperature: float = 0.7

    # Vault settings
    vault_dir: Path = Path(".")
    exclude_folders: list[str] = []

    # Chunking settings
    chunk_size: int = 1000
    chunk_overlap_ratio: float = 0.1
    heading_split: bool = True

    # Retrieval settings
    embedding_batch_size: int = 16
    embedding_concurrency: int = 2
    retrieval_top_k: int = 10
    max_context_chars: int = 4000
    include_backlinks: bool = True

    # Global display defaults (lowest priority scope)
    show_model_info: bool = False
    show_performance: bool = False

    # Tag settings
    tag_cache_enabled: bool = True
    tag_summary_limit: int = 100

    # Time marker rendering; local time when unset
    timezone: str | None = None

    # API settings
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "text"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
