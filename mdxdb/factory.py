"""Build database providers from settings."""

import logging

from mdxdb.config import (
    Settings,
    clickhouse_config_from_settings,
    fetch_options_from_settings,
)
from mdxdb.embeddings import (
    DEFAULT_EMBEDDING_MODEL,
    EmbeddingProvider,
    OllamaEmbeddingProvider,
    OpenAIEmbeddingProvider,
)
from mdxdb.errors import ConfigurationError
from mdxdb.models.enums import BackendType, EmbeddingProviderType
from mdxdb.providers.base import DatabaseProvider
from mdxdb.providers.clickhouse import ClickHouseDatabase
from mdxdb.providers.fetch import FetchProvider
from mdxdb.providers.fs import FSDatabase


logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_MODEL = "nomic-embed-text"


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Embedding provider selected by ``settings.embedding_provider``."""
    if settings.embedding_provider == EmbeddingProviderType.OLLAMA:
        model = settings.embedding_model
        if model == DEFAULT_EMBEDDING_MODEL:
            model = OLLAMA_DEFAULT_MODEL
        return OllamaEmbeddingProvider(
            model=model,
            base_url=settings.ollama_url,
            dimensions=settings.embedding_dimensions,
            timeout=settings.embedding_timeout,
        )
    return OpenAIEmbeddingProvider(
        model=settings.embedding_model,
        api_key=settings.openai_api_key or None,
        dimensions=settings.embedding_dimensions,
        timeout=settings.embedding_timeout,
    )


def create_database(
    settings: Settings,
    embedding_provider: EmbeddingProvider | None = None,
) -> DatabaseProvider:
    """
    Create an unconnected database provider for the configured backend.

    The OpenAI client is only built on first use, so a missing API key
    surfaces when something is embedded rather than here.
    """
    if embedding_provider is None:
        embedding_provider = create_embedding_provider(settings)

    logger.debug("Creating %s backend", settings.backend.value)

    if settings.backend == BackendType.FS:
        return FSDatabase(
            settings.base_path,
            embedding_provider=embedding_provider,
            dimensions=settings.embedding_dimensions,
        )
    if settings.backend == BackendType.CLICKHOUSE:
        return ClickHouseDatabase(
            clickhouse_config_from_settings(settings),
            embedding_provider=embedding_provider,
        )
    if settings.backend == BackendType.FETCH:
        return FetchProvider(fetch_options_from_settings(settings))

    raise ConfigurationError(f"Unsupported backend: {settings.backend}")
