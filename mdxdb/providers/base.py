"""Database and collection provider contracts."""

from abc import ABC, abstractmethod
from typing import Any

from mdxdb.models.document import Document
from mdxdb.models.search import SearchOptions, SearchResult, VectorSearchOptions


class CollectionProvider(ABC):
    """
    CRUD and query surface over the documents of a collection.
    
    ``path`` names the collection that ``find``, ``search`` and
    ``vector_search`` run against unless ``options.collection`` overrides it.
    Every backend implements the whole contract; an operation a backend
    does not support raises ``MDXDBNotImplementedError`` rather than
    returning an empty result.
    """
    
    path: str
    
    @abstractmethod
    async def create(self, collection: str):
        """Create a collection if it does not exist."""
        ...
    
    @abstractmethod
    async def get(self, collection: str) -> list[Document]:
        """List every document in a collection."""
        ...
    
    @abstractmethod
    async def read(self, collection: str, id: str) -> Document:
        """
        Get one document.
        
        Raises:
            NotFoundError: If the document does not exist.
        """
        ...
    
    @abstractmethod
    async def add(self, collection: str, document: Document) -> Document:
        """
        Add a new document and its embedding.
        
        Returns:
            The stored document, with a generated id if it had none.
            
        Raises:
            DuplicateDocumentError: If the id is already taken.
        """
        ...
    
    async def insert(self, collection: str, document: Document) -> Document:
        """Alias of ``add``."""
        return await self.add(collection, document)
    
    @abstractmethod
    async def update(self, collection: str, id: str, document: Document) -> Document:
        """
        Replace an existing document and recompute its embedding.
        
        Raises:
            NotFoundError: If the document does not exist.
        """
        ...
    
    @abstractmethod
    async def delete(self, collection: str, id: str):
        """Delete a document; deleting a missing document is not an error."""
        ...
    
    @abstractmethod
    async def find(
        self,
        filter: dict[str, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Return documents matching a filter, each with score 1.0."""
        ...
    
    async def find_one(self, collection: str, filter: dict[str, Any] | None = None) -> Document | None:
        """Return the first document matching a filter, or None."""
        results = await self.find(filter, SearchOptions(collection=collection, limit=1))
        return results[0].document if results else None
    
    @abstractmethod
    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Search documents by text."""
        ...
    
    @abstractmethod
    async def vector_search(self, options: VectorSearchOptions) -> list[SearchResult]:
        """Rank documents by similarity to ``options.vector``."""
        ...
    
    def _collection(self, options: SearchOptions | None) -> str:
        if options is not None and options.collection:
            return options.collection
        return self.path


class DatabaseProvider(ABC):
    """Namespace-level registry of collections."""
    
    namespace: str
    
    @abstractmethod
    async def connect(self):
        ...
    
    @abstractmethod
    async def disconnect(self):
        ...
    
    @abstractmethod
    async def list(self) -> list[str]:
        """Names of the known collections."""
        ...
    
    @abstractmethod
    def collection(self, name: str) -> CollectionProvider:
        """Get the provider for a named collection."""
        ...
    
    async def __aenter__(self):
        await self.connect()
        return self
    
    async def __aexit__(self, *args):
        await self.disconnect()
