"""Filesystem database provider."""

import asyncio
import logging
from pathlib import Path

from mdxdb.embeddings.base import EmbeddingProvider
from mdxdb.errors import StorageIOError
from mdxdb.models.search import DEFAULT_DIMENSIONS
from mdxdb.providers.base import DatabaseProvider
from mdxdb.providers.fs.collection import FSCollection
from mdxdb.storage.sidecar import DB_DIRNAME, EmbeddingsStorageService


logger = logging.getLogger(__name__)


class FSDatabase(DatabaseProvider):
    """
    Database rooted at a directory; each subdirectory is a collection.

    All collections share one sidecar embeddings store.
    """

    def __init__(
        self,
        base_path: str | Path,
        embedding_provider: EmbeddingProvider | None = None,
        dimensions: int = DEFAULT_DIMENSIONS,
    ):
        self.base_path = Path(base_path)
        self.namespace = f"file://{self.base_path.resolve()}"
        self.embedding_provider = embedding_provider
        self.dimensions = dimensions
        self.storage = EmbeddingsStorageService(self.base_path)
        self._names: set[str] = set()
        self._collections: dict[str, FSCollection] = {}

    def _scan(self) -> list[str]:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            return [
                entry.name
                for entry in self.base_path.iterdir()
                if entry.is_dir() and entry.name != DB_DIRNAME and not entry.name.startswith(".")
            ]
        except OSError as e:
            raise StorageIOError(
                f"Failed to open database directory {self.base_path}: {e}",
                details={"path": str(self.base_path)},
            ) from e

    async def connect(self):
        """Create the base directory and pick up existing collections."""
        names = await asyncio.to_thread(self._scan)
        self._names.update(names)
        logger.info("Connected to %s (%d collections)", self.namespace, len(self._names))

    async def disconnect(self):
        self._collections.clear()

    async def list(self) -> list[str]:
        return sorted(self._names)

    def collection(self, name: str) -> FSCollection:
        self._names.add(name)
        if name not in self._collections:
            self._collections[name] = FSCollection(
                self.base_path,
                name,
                embedding_provider=self.embedding_provider,
                storage=self.storage,
                dimensions=self.dimensions,
            )
        return self._collections[name]

