"""Sidecar JSON file holding the embeddings of a filesystem namespace."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from mdxdb.errors import CorruptStorageError, StorageIOError
from mdxdb.models.document import now_ms
from mdxdb.models.search import EmbeddingsStorage, StoredEmbedding


logger = logging.getLogger(__name__)

DB_DIRNAME = ".db"
STORAGE_FILENAME = "embeddings.json"


class EmbeddingsStorageService:
    """
    Embedding store backed by ``<base_path>/.db/embeddings.json``.

    Every mutation loads the whole map, changes it and rewrites the file.
    There is no lock: two writers sharing a root race and the last write
    wins. Callers needing strict consistency serialize their own writes.
    """

    def __init__(self, base_path: str | Path):
        self.db_path = Path(base_path) / DB_DIRNAME
        self.storage_file = self.db_path / STORAGE_FILENAME

    def _ensure_db_directory(self):
        try:
            self.db_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"Failed to create {DB_DIRNAME} directory: {e}",
                details={"path": str(self.db_path)},
            ) from e

    def _read_storage(self) -> EmbeddingsStorage:
        try:
            raw = self.storage_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return EmbeddingsStorage()
        except OSError as e:
            raise StorageIOError(
                f"Failed to read embeddings storage: {e}",
                details={"path": str(self.storage_file)},
            ) from e

        try:
            return EmbeddingsStorage.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise CorruptStorageError(
                f"Embeddings storage is corrupt: {self.storage_file}",
                details={"path": str(self.storage_file), "error": str(e)},
            ) from e

    def _write_storage(self, storage: EmbeddingsStorage):
        self._ensure_db_directory()
        payload = json.dumps(storage.model_dump(), indent=2)

        # Replace the file in one step so readers never see a partial write
        fd, tmp_name = tempfile.mkstemp(dir=self.db_path, prefix=".embeddings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.storage_file)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageIOError(
                f"Failed to write embeddings storage: {e}",
                details={"path": str(self.storage_file)},
            ) from e

    def _store(self, id: str, content: str, embedding: list[float]):
        storage = self._read_storage()
        storage.embeddings[id] = StoredEmbedding(
            id=id,
            content=content,
            embedding=embedding,
            timestamp=now_ms(),
        )
        self._write_storage(storage)

    def _delete(self, id: str):
        storage = self._read_storage()
        if storage.embeddings.pop(id, None) is None:
            logger.debug("No embedding stored for %s", id)
        self._write_storage(storage)

    async def store_embedding(self, id: str, content: str, embedding: list[float]):
        """Insert or replace the embedding for a document."""
        await asyncio.to_thread(self._store, id, content, list(embedding))

    async def get_embedding(self, id: str) -> StoredEmbedding | None:
        """Get the stored embedding for a document, or None."""
        storage = await asyncio.to_thread(self._read_storage)
        return storage.embeddings.get(id)

    async def get_all_embeddings(self) -> list[StoredEmbedding]:
        """Get every stored embedding."""
        storage = await asyncio.to_thread(self._read_storage)
        return list(storage.embeddings.values())

    async def delete_embedding(self, id: str):
        """Remove a document's embedding; absent entries are ignored."""
        await asyncio.to_thread(self._delete, id)
