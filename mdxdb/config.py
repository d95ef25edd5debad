"""Configuration loading utilities."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdxdb.errors import ConfigurationError
from mdxdb.models.enums import BackendType, EmbeddingProviderType
from mdxdb.models.search import DEFAULT_DIMENSIONS, VectorIndexConfig


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="MDXDB_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    backend: BackendType = BackendType.FS
    base_path: str = "content"
    log_level: str = "WARNING"

    # Embedding settings
    embedding_provider: EmbeddingProviderType = EmbeddingProviderType.OPENAI
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("MDXDB_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: int = DEFAULT_DIMENSIONS
    embedding_timeout: float = 30.0
    ollama_url: str = "http://localhost:11434"

    # ClickHouse settings
    clickhouse_url: str = ""
    clickhouse_username: str = "default"
    clickhouse_password: str = ""
    clickhouse_database: str = "default"
    clickhouse_oplog_table: str = "oplog"
    clickhouse_data_table: str = "data"

    # Fetch settings
    fetch_base_url: str = ""
    fetch_namespace: str = ""

    # Remote calls
    request_timeout: float = 30.0
    retries: int = 3


class ClickHouseConfig(BaseModel):
    """Connection and schema settings for the ClickHouse backend."""

    url: str = "http://localhost:8123"
    username: str = "default"
    password: str = ""
    database: str = "default"
    oplog_table: str = "oplog"
    data_table: str = "data"
    timeout: float = 30.0
    retries: int = 3
    vector_index: VectorIndexConfig = Field(default_factory=VectorIndexConfig)
    clickhouse_settings: dict[str, int] = Field(
        default_factory=lambda: {
            "allow_experimental_json_type": 1,
            "allow_experimental_full_text_index": 1,
            "allow_experimental_vector_similarity_index": 1,
        }
    )

    @property
    def dimensions(self) -> int:
        return self.vector_index.dimensions


class FetchProviderOptions(BaseModel):
    """Options for the HTTP delegate backend."""

    namespace: str
    base_url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = 30.0
    retries: int = 3
    retry_delay: float = 1.0
    dimensions: int | None = None


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_clickhouse_config(path: Path) -> ClickHouseConfig:
    """Load ClickHouse config from YAML file."""
    data = load_yaml(path)
    return ClickHouseConfig(**data)


def clickhouse_config_from_settings(settings: Settings) -> ClickHouseConfig:
    """Build the ClickHouse config from environment settings."""
    if not settings.clickhouse_url:
        raise ConfigurationError(
            "ClickHouse URL is required",
            details={"env": "MDXDB_CLICKHOUSE_URL"},
        )
    return ClickHouseConfig(
        url=settings.clickhouse_url,
        username=settings.clickhouse_username,
        password=settings.clickhouse_password,
        database=settings.clickhouse_database,
        oplog_table=settings.clickhouse_oplog_table,
        data_table=settings.clickhouse_data_table,
        timeout=settings.request_timeout,
        retries=settings.retries,
        vector_index=VectorIndexConfig(dimensions=settings.embedding_dimensions),
    )


def fetch_options_from_settings(settings: Settings) -> FetchProviderOptions:
    """Build fetch provider options from environment settings."""
    if not settings.fetch_base_url:
        raise ConfigurationError(
            "Fetch base URL is required",
            details={"env": "MDXDB_FETCH_BASE_URL"},
        )
    return FetchProviderOptions(
        namespace=settings.fetch_namespace or settings.fetch_base_url,
        base_url=settings.fetch_base_url,
        timeout=settings.request_timeout,
        retries=settings.retries,
        dimensions=settings.embedding_dimensions,
    )


def get_settings(**overrides: Any) -> Settings:
    """Get application settings."""
    return Settings(**overrides)
