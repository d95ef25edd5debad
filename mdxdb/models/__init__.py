"""mdxdb data models."""

from mdxdb.models.enums import (
    BackendType,
    EmbeddingProviderType,
    VectorIndexType,
    VectorMetric,
)
from mdxdb.models.document import Document, DocumentMetadata, now_ms
from mdxdb.models.search import (
    DEFAULT_DIMENSIONS,
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    EmbeddingsStorage,
    SearchOptions,
    SearchResult,
    StoredEmbedding,
    VectorIndexConfig,
    VectorSearchOptions,
)

__all__ = [
    "BackendType",
    "EmbeddingProviderType",
    "VectorIndexType",
    "VectorMetric",
    "Document",
    "DocumentMetadata",
    "now_ms",
    "DEFAULT_DIMENSIONS",
    "DEFAULT_LIMIT",
    "DEFAULT_THRESHOLD",
    "EmbeddingsStorage",
    "SearchOptions",
    "SearchResult",
    "StoredEmbedding",
    "VectorIndexConfig",
    "VectorSearchOptions",
]
