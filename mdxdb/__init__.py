"""mdxdb - MDX document database with pluggable storage and vector search."""

__version__ = "0.1.0"

from mdxdb.errors import MDXDBError
from mdxdb.factory import create_database, create_embedding_provider
from mdxdb.models import Document, DocumentMetadata, SearchOptions, SearchResult, VectorSearchOptions
from mdxdb.providers import CollectionProvider, DatabaseProvider

__all__ = [
    "MDXDBError",
    "create_database",
    "create_embedding_provider",
    "Document",
    "DocumentMetadata",
    "SearchOptions",
    "SearchResult",
    "VectorSearchOptions",
    "CollectionProvider",
    "DatabaseProvider",
]
