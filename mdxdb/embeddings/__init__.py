"""Embedding providers."""

from mdxdb.embeddings.base import (
    DEFAULT_EMBEDDING_MODEL,
    EmbeddingProvider,
    calculate_similarity,
)
from mdxdb.embeddings.openai import OpenAIEmbeddingProvider
from mdxdb.embeddings.ollama import OllamaEmbeddingProvider

__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "EmbeddingProvider",
    "calculate_similarity",
    "OpenAIEmbeddingProvider",
    "OllamaEmbeddingProvider",
]
