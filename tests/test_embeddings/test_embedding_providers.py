"""Tests for embedding providers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from mdxdb.embeddings import EmbeddingProvider, OllamaEmbeddingProvider, OpenAIEmbeddingProvider
from mdxdb.errors import (
    ConfigurationError,
    EmbeddingGenerationError,
    RemoteTimeoutError,
)


def openai_client(vectors):
    """Create a mock AsyncOpenAI client returning the given vectors."""
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=response)
    return client


class SlowProvider(EmbeddingProvider):
    async def embed(self, texts):
        await asyncio.sleep(1)
        return [[1.0]]


class TestOpenAIEmbeddingProvider:
    """Tests for OpenAIEmbeddingProvider."""
    
    @pytest.mark.asyncio
    async def test_generate_embedding(self):
        """Test the model, input and dimensions are passed through."""
        client = openai_client([[0.1, 0.2, 0.3]])
        provider = OpenAIEmbeddingProvider(api_key="sk-test", dimensions=3, client=client)
        
        vector = await provider.generate_embedding("hello")
        
        assert vector == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_awaited_once_with(
            model="text-embedding-3-large",
            input=["hello"],
            dimensions=3,
        )
    
    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        """Test a missing key is a configuration error, not a generation error."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        provider = OpenAIEmbeddingProvider()
        
        with pytest.raises(ConfigurationError):
            await provider.generate_embedding("hello")
    
    @pytest.mark.asyncio
    async def test_upstream_error_is_wrapped(self):
        """Test upstream failures keep the cause message."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=RuntimeError("rate limited"))
        provider = OpenAIEmbeddingProvider(api_key="sk-test", client=client)
        
        with pytest.raises(EmbeddingGenerationError) as exc_info:
            await provider.generate_embedding("hello")
        
        assert str(exc_info.value) == "Failed to generate embedding: rate limited"
    
    @pytest.mark.asyncio
    async def test_empty_result(self):
        """Test an empty answer is an error."""
        provider = OpenAIEmbeddingProvider(api_key="sk-test", client=openai_client([]))
        
        with pytest.raises(EmbeddingGenerationError, match="No embedding generated"):
            await provider.generate_embedding("hello")
    
    @pytest.mark.asyncio
    async def test_embed_empty_list(self):
        """Test embedding nothing makes no call."""
        client = openai_client([])
        provider = OpenAIEmbeddingProvider(api_key="sk-test", client=client)
        
        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_called()


class TestGenerateEmbeddingTimeout:
    """Tests for the embedding timeout."""
    
    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test a slow model surfaces a timeout error."""
        provider = SlowProvider(timeout=0.01)
        
        with pytest.raises(RemoteTimeoutError):
            await provider.generate_embedding("hello")


class TestOllamaEmbeddingProvider:
    """Tests for OllamaEmbeddingProvider."""
    
    @pytest.mark.asyncio
    async def test_generate_embedding(self):
        """Test the Ollama embeddings endpoint is called per text."""
        requests = []
        
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"embedding": [0.5, 0.5]})
        
        provider = OllamaEmbeddingProvider(
            base_url="http://ollama.test",
            dimensions=2,
            transport=httpx.MockTransport(handler),
        )
        
        vector = await provider.generate_embedding("hello")
        await provider.aclose()
        
        assert vector == [0.5, 0.5]
        assert requests[0].url.path == "/api/embeddings"
        assert b'"prompt":"hello"' in requests[0].content.replace(b" ", b"")
    
    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self):
        """Test an error status becomes an embedding error."""
        provider = OllamaEmbeddingProvider(
            base_url="http://ollama.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        
        with pytest.raises(EmbeddingGenerationError, match="HTTP 500"):
            await provider.generate_embedding("hello")
    
    @pytest.mark.asyncio
    async def test_wrong_width_is_rejected(self):
        """Test a model answering with the wrong width fails."""
        provider = OllamaEmbeddingProvider(
            base_url="http://ollama.test",
            dimensions=256,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"embedding": [0.1] * 768})),
        )
        
        with pytest.raises(EmbeddingGenerationError, match="expected 256, got 768"):
            await provider.generate_embedding("hello")
    
    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test a transport timeout surfaces as a timeout error."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)
        
        provider = OllamaEmbeddingProvider(
            base_url="http://ollama.test",
            transport=httpx.MockTransport(handler),
        )
        
        with pytest.raises(RemoteTimeoutError):
            await provider.generate_embedding("hello")
