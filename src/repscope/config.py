"""Application configuration via pydantic-settings."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from repscope.core.constants import SUPPORTED_ENGINES


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="REPSCOPE_ENV"
    )
    debug: bool = Field(default=False, alias="REPSCOPE_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="REPSCOPE_LOG_LEVEL"
    )

    # Storage
    data_dir: Path = Field(default=Path("data"))
    persistence_timeout: float = Field(
        default=10.0,
        description="Seconds allowed for one graph read or write",
    )

    # XMLStock (search results provider)
    xmlstock_user: str | None = Field(default=None)
    xmlstock_key: SecretStr | None = Field(default=None)
    xmlstock_google_url: str = Field(default="https://xmlstock.com/google/xml/")
    xmlstock_yandex_url: str = Field(default="https://xmlstock.com/yandex/xml/")
    xmlstock_api_url: str = Field(default="https://xmlstock.com/api/")
    search_timeout: float = Field(default=30.0, description="Per-request timeout in seconds")
    search_page_size: int = Field(default=10)
    search_page_delay: float = Field(
        default=0.3,
        description="Pause between result pages in seconds",
    )

    # LLM sentiment backend
    llm_provider: Literal["anthropic", "openai"] = Field(default="anthropic")
    anthropic_api_key: SecretStr | None = Field(default=None)
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    llm_model: str = Field(default="claude-3-haiku-20240307")
    use_llm_classifier: bool = Field(
        default=False,
        description="Classify results with the LLM backend instead of the lexicon",
    )
    llm_timeout: float = Field(default=30.0)
    classifier_item_delay: float = Field(
        default=0.1,
        description="Pause between LLM classification calls in seconds",
    )

    # Scoring tables
    sentiment_threshold: float = Field(
        default=0.3,
        description="Normalized score difference needed for a non-neutral verdict",
    )
    lexicon_path: Path | None = Field(default=None)
    position_weights_path: Path | None = Field(default=None)

    # Jobs
    job_retention_seconds: float = Field(
        default=300.0,
        description="How long finished jobs stay visible in the registry",
    )
    job_shutdown_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for running jobs when the app stops",
    )

    # Bulk position tracking
    bulk_query_delay: float = Field(
        default=1.0,
        description="Pause between bulk search queries in seconds",
    )
    bulk_default_depth: int = Field(default=100)
    bulk_history_limit: int = Field(default=20, description="Bulk search reports kept")

    # Entity defaults
    default_region: str = Field(default="ru")
    default_engines: list[str] = Field(default_factory=lambda: ["google", "yandex"])
    default_depth: int = Field(default=20)

    @field_validator("default_engines", mode="before")
    @classmethod
    def parse_default_engines(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = [e.strip() for e in v.split(",") if e.strip()]
        engines = [e.lower() for e in v]
        unknown = [e for e in engines if e not in SUPPORTED_ENGINES]
        if unknown:
            raise ValueError(f"Unsupported engines: {', '.join(unknown)}")
        return engines

    @field_validator("sentiment_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError("sentiment_threshold must be in [0.0, 1.0)")
        return v

    @property
    def xmlstock_configured(self) -> bool:
        return bool(self.xmlstock_user and self.xmlstock_key)

    @property
    def projects_file(self) -> Path:
        return self.data_dir / "projects.json"

    @property
    def runtime_config_file(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def bulk_history_file(self) -> Path:
        return self.data_dir / "bulk-search-history.json"

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
