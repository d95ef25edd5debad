"""Tests for the sidecar embeddings store."""

import json

import pytest

from mdxdb.errors import CorruptStorageError, StorageIOError
from mdxdb.storage import EmbeddingsStorageService


@pytest.fixture
def storage(tmp_path):
    """Create a storage service rooted in a temp directory."""
    return EmbeddingsStorageService(tmp_path)


class TestEmbeddingsStorageService:
    """Tests for EmbeddingsStorageService."""
    
    @pytest.mark.asyncio
    async def test_store_then_get(self, storage):
        """Test a stored embedding reads back with a timestamp."""
        await storage.store_embedding("posts/a", "hello", [0.1, 0.2])
        
        stored = await storage.get_embedding("posts/a")
        
        assert stored.id == "posts/a"
        assert stored.content == "hello"
        assert stored.embedding == [0.1, 0.2]
        assert stored.timestamp > 0
    
    @pytest.mark.asyncio
    async def test_delete_then_get(self, storage):
        """Test a deleted embedding is gone."""
        await storage.store_embedding("posts/a", "hello", [0.1, 0.2])
        await storage.delete_embedding("posts/a")
        
        assert await storage.get_embedding("posts/a") is None
    
    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, storage):
        """Test deleting an absent entry does not raise."""
        await storage.delete_embedding("nope")
        
        assert await storage.get_all_embeddings() == []
    
    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, storage):
        """Test a missing file reads as empty storage."""
        assert await storage.get_embedding("posts/a") is None
        assert await storage.get_all_embeddings() == []
        assert not storage.storage_file.exists()
    
    @pytest.mark.asyncio
    async def test_overwrite_replaces_whole_entry(self, storage):
        """Test storing again replaces the record."""
        await storage.store_embedding("posts/a", "old", [0.1])
        await storage.store_embedding("posts/a", "new", [0.9])
        
        all_embeddings = await storage.get_all_embeddings()
        
        assert len(all_embeddings) == 1
        assert all_embeddings[0].content == "new"
        assert all_embeddings[0].embedding == [0.9]
    
    @pytest.mark.asyncio
    async def test_file_format(self, storage, tmp_path):
        """Test the file is a versioned container under .db."""
        await storage.store_embedding("posts/a", "hello", [1.0])
        
        payload = json.loads((tmp_path / ".db" / "embeddings.json").read_text())
        
        assert payload["version"] == "1"
        assert payload["embeddings"]["posts/a"]["embedding"] == [1.0]
        assert not list((tmp_path / ".db").glob("*.tmp"))
    
    @pytest.mark.asyncio
    async def test_corrupt_file(self, storage):
        """Test an unparseable file raises CorruptStorageError."""
        storage.db_path.mkdir()
        storage.storage_file.write_text("{not json")
        
        with pytest.raises(CorruptStorageError):
            await storage.get_all_embeddings()
    
    @pytest.mark.asyncio
    async def test_wrong_shape_is_corrupt(self, storage):
        """Test valid JSON with the wrong layout is corrupt."""
        storage.db_path.mkdir()
        storage.storage_file.write_text(json.dumps({"version": "2", "embeddings": []}))
        
        with pytest.raises(CorruptStorageError):
            await storage.get_embedding("posts/a")
    
    @pytest.mark.asyncio
    async def test_directory_creation_failure(self, tmp_path):
        """Test a blocked .db directory raises StorageIOError."""
        (tmp_path / ".db").write_text("a file, not a directory")
        storage = EmbeddingsStorageService(tmp_path)
        
        with pytest.raises(StorageIOError):
            await storage.store_embedding("posts/a", "hello", [1.0])
