"""Search, embedding and result models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mdxdb.models.document import Document
from mdxdb.models.enums import VectorIndexType, VectorMetric


DEFAULT_DIMENSIONS = 256
DEFAULT_THRESHOLD = 0.7
DEFAULT_LIMIT = 10


class StoredEmbedding(BaseModel):
    """Embedding persisted for one document."""
    
    id: str
    content: str
    embedding: list[float]
    timestamp: int


class EmbeddingsStorage(BaseModel):
    """Versioned container serialized to the sidecar file."""
    
    version: Literal["1"] = "1"
    embeddings: dict[str, StoredEmbedding] = Field(default_factory=dict)


class VectorIndexConfig(BaseModel):
    """Vector index declaration for a collection."""
    
    type: VectorIndexType = VectorIndexType.HNSW
    metric: VectorMetric = VectorMetric.COSINE_DISTANCE
    dimensions: int = Field(default=DEFAULT_DIMENSIONS, gt=0)


class SearchOptions(BaseModel):
    """Options shared by find, search and vector search."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    filter: dict[str, Any] | None = None
    threshold: float | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    include_vectors: bool = Field(default=False, alias="includeVectors")
    collection: str | None = None


class VectorSearchOptions(SearchOptions):
    """Vector search request; ``k`` is accepted as a synonym for ``limit``."""
    
    vector: list[float] | None = None
    query: str | None = None
    k: int | None = Field(default=None, ge=0)
    
    def effective_limit(self) -> int:
        if self.limit is not None:
            return self.limit
        if self.k is not None:
            return self.k
        return DEFAULT_LIMIT
    
    def effective_threshold(self) -> float:
        return DEFAULT_THRESHOLD if self.threshold is None else self.threshold


class SearchResult(BaseModel):
    """A matched document and its similarity score."""
    
    document: Document
    score: float
    vector: list[float] | None = None
