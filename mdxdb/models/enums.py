"""Enumeration types for mdxdb."""

from enum import Enum


class BackendType(str, Enum):
    """Storage backend selected at construction time."""
    FS = "fs"
    CLICKHOUSE = "clickhouse"
    FETCH = "fetch"


class EmbeddingProviderType(str, Enum):
    """Embedding model host."""
    OPENAI = "openai"
    OLLAMA = "ollama"


class VectorIndexType(str, Enum):
    """Approximate nearest neighbour index kinds."""
    HNSW = "hnsw"


class VectorMetric(str, Enum):
    """Distance functions understood by the columnar engine."""
    COSINE_DISTANCE = "cosineDistance"
    L2_DISTANCE = "L2Distance"
