"""Embedding provider interface and cosine similarity."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np

from mdxdb.errors import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingGenerationError,
    MDXDBError,
    RemoteTimeoutError,
)
from mdxdb.models.search import DEFAULT_DIMENSIONS


logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-large"


def calculate_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.
    
    Returns:
        Similarity score from -1.0 to 1.0, or 0.0 when either vector has
        zero magnitude.
        
    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatchError(
            len(vec1),
            len(vec2),
            message="Vectors must have the same dimensions",
        )
    
    v1 = np.asarray(vec1, dtype=np.float64)
    v2 = np.asarray(vec2, dtype=np.float64)
    
    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    
    if norm1 == 0 or norm2 == 0:
        return 0.0
    
    return float(np.dot(v1, v2) / (norm1 * norm2))


class EmbeddingProvider(ABC):
    """Abstract base for embedding providers."""
    
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = 30.0,
    ):
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout
    
    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for a list of texts.
        
        Args:
            texts: List of text strings to embed.
            
        Returns:
            List of embedding vectors.
        """
        ...
    
    async def generate_embedding(self, text: str) -> list[float]:
        """
        Generate the embedding for a single text.
        
        Raises:
            EmbeddingGenerationError: If the model call fails or returns nothing.
            RemoteTimeoutError: If the model does not answer within ``timeout``.
        """
        try:
            embeddings = await asyncio.wait_for(self.embed([text]), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteTimeoutError(
                f"Embedding request timed out after {self.timeout}s",
                details={"model": self.model},
            ) from e
        except (ConfigurationError, RemoteTimeoutError, EmbeddingGenerationError):
            raise
        except Exception as e:
            cause = e.message if isinstance(e, MDXDBError) else str(e)
            raise EmbeddingGenerationError(
                f"Failed to generate embedding: {cause}",
                details={"model": self.model},
            ) from e
        
        if not embeddings or not embeddings[0]:
            raise EmbeddingGenerationError(
                "Failed to generate embedding: No embedding generated",
                details={"model": self.model},
            )
        
        logger.debug("Generated %d-dim embedding with %s", len(embeddings[0]), self.model)
        return [float(v) for v in embeddings[0]]
    
    def calculate_similarity(self, vec1: Sequence[float], vec2: Sequence[float]) -> float:
        """Compute cosine similarity between two vectors."""
        return calculate_similarity(vec1, vec2)
