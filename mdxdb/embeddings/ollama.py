"""Ollama embedding provider for locally hosted models."""

import httpx

from mdxdb.embeddings.base import EmbeddingProvider
from mdxdb.errors import DimensionMismatchError, RemoteRequestError, RemoteTimeoutError
from mdxdb.models.search import DEFAULT_DIMENSIONS


class OllamaEmbeddingProvider(EmbeddingProvider):
    """
    Embedding provider using a local Ollama server.
    
    Ollama models have a fixed output width, so ``dimensions`` must match the
    model (e.g. 768 for nomic-embed-text) or every call fails.
    """
    
    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model=model, dimensions=dimensions, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
    
    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client
    
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings using Ollama's local API.
        
        Args:
            texts: List of texts to embed.
            
        Returns:
            List of embedding vectors.
        """
        if not texts:
            return []
        
        client = await self._get_client()
        embeddings = []
        
        for text in texts:
            try:
                response = await client.post(
                    f"{self.base_url}/api/embeddings",
                    json={"model": self.model, "prompt": text},
                )
            except httpx.TimeoutException as e:
                raise RemoteTimeoutError(
                    f"Timeout calling Ollama at {self.base_url}",
                    details={"error": str(e)},
                ) from e
            
            if response.status_code >= 400:
                raise RemoteRequestError(
                    f"Ollama returned HTTP {response.status_code}",
                    status=response.status_code,
                )
            
            embedding = response.json().get("embedding") or []
            if embedding and len(embedding) != self.dimensions:
                raise DimensionMismatchError(self.dimensions, len(embedding))
            embeddings.append(embedding)
        
        return embeddings
    
    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
