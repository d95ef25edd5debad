"""Storage module."""

from mdxdb.storage.sidecar import EmbeddingsStorageService
from mdxdb.storage.versioned import Versioned, VersionedLog, collapse

__all__ = [
    "EmbeddingsStorageService",
    "Versioned",
    "VersionedLog",
    "collapse",
]
