"""Tests for document and search models."""

from mdxdb.errors import (
    CorruptStorageError,
    DimensionMismatchError,
    MDXDBError,
    MDXDBNotImplementedError,
    NotFoundError,
    StorageIOError,
)
from mdxdb.models import Document, SearchOptions, VectorSearchOptions


class TestDocument:
    """Tests for Document."""
    
    def test_identity_is_mirrored(self):
        """Test id is copied into data and metadata."""
        doc = Document(id="a", content="x", data={"$id": "stale"})
        
        assert doc.data["$id"] == "a"
        assert doc.metadata.id == "a"
        assert doc.data["$type"] == "document"
        assert doc.metadata.ts is not None
    
    def test_type_from_data(self):
        """Test the type falls back to data $type."""
        doc = Document(id="a", data={"$type": "BlogPost"})
        
        assert doc.get_type() == "BlogPost"
        assert doc.metadata.type == "BlogPost"
    
    def test_explicit_metadata_type_wins(self):
        """Test an explicit metadata type overrides data $type."""
        doc = Document(id="a", data={"$type": "BlogPost"}, metadata={"type": "Article"})
        
        assert doc.data["$type"] == "Article"
        assert doc.get_type() == "Article"
    
    def test_with_id(self):
        """Test re-keying keeps content and type."""
        doc = Document(id="a", content="body", data={"$type": "Post", "title": "T"})
        renamed = doc.with_id("b")
        
        assert renamed.id == "b"
        assert renamed.data == {"$id": "b", "$type": "Post", "title": "T"}
        assert renamed.metadata.id == "b"
        assert renamed.content == "body"
        assert doc.id == "a"
    
    def test_collections(self):
        """Test collection membership helpers."""
        doc = Document(id="a", collections=["posts"])
        
        assert doc.belongs_to_collection("posts")
        assert not doc.belongs_to_collection("pages")
        assert doc.get_collections() == ["posts"]
    
    def test_metadata_extra_fields(self):
        """Test unknown metadata fields are kept."""
        doc = Document(id="a", metadata={"source": "import"})
        
        assert doc.to_record()["metadata"]["source"] == "import"


class TestSearchOptions:
    """Tests for search option models."""
    
    def test_include_vectors_alias(self):
        """Test includeVectors is accepted and emitted by alias."""
        options = SearchOptions(includeVectors=True)
        
        assert options.include_vectors
        assert options.model_dump(by_alias=True)["includeVectors"] is True
        assert SearchOptions(include_vectors=True).include_vectors
    
    def test_vector_search_defaults(self):
        """Test default limit and threshold."""
        options = VectorSearchOptions(vector=[1.0])
        
        assert options.effective_limit() == 10
        assert options.effective_threshold() == 0.7
    
    def test_k_is_limit_synonym(self):
        """Test k applies when limit is unset."""
        assert VectorSearchOptions(k=3).effective_limit() == 3
        assert VectorSearchOptions(k=3, limit=5).effective_limit() == 5
        assert VectorSearchOptions(threshold=0).effective_threshold() == 0


class TestErrors:
    """Tests for the error hierarchy."""
    
    def test_kind(self):
        """Test kind names the error class."""
        assert NotFoundError("gone").kind == "NotFoundError"
        assert DimensionMismatchError(256, 128).kind == "DimensionMismatchError"
    
    def test_dimension_message(self):
        """Test the default dimension message."""
        error = DimensionMismatchError(256, 128)
        
        assert str(error) == "Vector dimension mismatch: expected 256, got 128"
        assert error.details == {"expected": 256, "actual": 128}
    
    def test_not_implemented(self):
        """Test staged operations raise a NotImplementedError naming the collection."""
        error = MDXDBNotImplementedError("find", "posts")
        
        assert isinstance(error, NotImplementedError)
        assert isinstance(error, MDXDBError)
        assert str(error) == "Method find not implemented for collection: posts"
    
    def test_corrupt_is_storage_error(self):
        """Test corrupt storage is a storage I/O error."""
        assert issubclass(CorruptStorageError, StorageIOError)
