"""OpenAI embedding provider."""

import os
from typing import Any

from mdxdb.embeddings.base import DEFAULT_EMBEDDING_MODEL, EmbeddingProvider
from mdxdb.errors import ConfigurationError
from mdxdb.models.search import DEFAULT_DIMENSIONS


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embedding provider using OpenAI's API.
    
    Requires an API key, passed explicitly or via OPENAI_API_KEY.
    """
    
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        api_key: str | None = None,
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = 30.0,
        client: Any = None,
    ):
        super().__init__(model=model, dimensions=dimensions, timeout=timeout)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client: Any = client
    
    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(
                    "OpenAI API key is required for embedding generation",
                    details={"env": "OPENAI_API_KEY"},
                )
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client
    
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings using OpenAI API."""
        if not texts:
            return []
        
        client = self._get_client()
        
        response = await client.embeddings.create(
            model=self.model,
            input=texts,
            dimensions=self.dimensions,
        )
        
        return [item.embedding for item in response.data]
