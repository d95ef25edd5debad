"""Tests for backend construction."""

import pytest

from mdxdb.config import get_settings
from mdxdb.embeddings import OllamaEmbeddingProvider, OpenAIEmbeddingProvider
from mdxdb.errors import ConfigurationError
from mdxdb.factory import create_database, create_embedding_provider
from mdxdb.models.enums import BackendType, EmbeddingProviderType
from mdxdb.providers import ClickHouseDatabase, FetchProvider, FSDatabase


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


class TestCreateDatabase:
    """Tests for create_database."""
    
    def test_fs(self, tmp_path):
        """Test the fs backend is the default."""
        db = create_database(get_settings(base_path=str(tmp_path), embedding_dimensions=8))
        
        assert isinstance(db, FSDatabase)
        assert db.base_path == tmp_path
        assert db.dimensions == 8
        assert isinstance(db.embedding_provider, OpenAIEmbeddingProvider)
    
    def test_clickhouse(self):
        """Test the clickhouse backend picks up its URL."""
        db = create_database(get_settings(backend=BackendType.CLICKHOUSE, clickhouse_url="http://ch:8123"))
        
        assert isinstance(db, ClickHouseDatabase)
        assert db.config.url == "http://ch:8123"
    
    def test_clickhouse_requires_url(self):
        with pytest.raises(ConfigurationError):
            create_database(get_settings(backend=BackendType.CLICKHOUSE))
    
    def test_fetch(self):
        """Test the fetch backend picks up its base URL."""
        db = create_database(get_settings(backend=BackendType.FETCH, fetch_base_url="https://db.test"))
        
        assert isinstance(db, FetchProvider)
        assert db.namespace == "https://db.test"
    
    def test_explicit_embedding_provider(self, tmp_path):
        """Test a supplied embedding provider is used as is."""
        provider = OllamaEmbeddingProvider()
        
        db = create_database(get_settings(base_path=str(tmp_path)), embedding_provider=provider)
        
        assert db.embedding_provider is provider


class TestCreateEmbeddingProvider:
    """Tests for create_embedding_provider."""
    
    def test_openai(self):
        provider = create_embedding_provider(get_settings(openai_api_key="sk-test", embedding_dimensions=64))
        
        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.api_key == "sk-test"
        assert provider.dimensions == 64
    
    def test_ollama_default_model(self):
        """Test Ollama does not inherit the OpenAI model name."""
        provider = create_embedding_provider(
            get_settings(embedding_provider=EmbeddingProviderType.OLLAMA, ollama_url="http://gpu:11434")
        )
        
        assert isinstance(provider, OllamaEmbeddingProvider)
        assert provider.model == "nomic-embed-text"
        assert provider.base_url == "http://gpu:11434"
