"""Filesystem collection: MDX files plus sidecar embeddings."""

import logging
import uuid
from pathlib import Path
from typing import Any

from mdxdb.embeddings.base import EmbeddingProvider, calculate_similarity
from mdxdb.errors import (
    CorruptStorageError,
    ConfigurationError,
    DimensionMismatchError,
    DuplicateDocumentError,
    MissingVectorError,
    NotFoundError,
)
from mdxdb.filters import parse_filter
from mdxdb.models.document import Document
from mdxdb.models.search import (
    DEFAULT_DIMENSIONS,
    DEFAULT_THRESHOLD,
    SearchOptions,
    SearchResult,
    VectorSearchOptions,
)
from mdxdb.providers.base import CollectionProvider
from mdxdb.providers.fs.document import (
    artifact_name,
    delete_artifact,
    id_from_artifact,
    is_document_artifact,
    list_artifacts,
    parse_document,
    read_artifact,
    serialize_document,
    write_artifact,
)
from mdxdb.storage.sidecar import EmbeddingsStorageService


logger = logging.getLogger(__name__)

# Scores closer than this are treated as equal when ranking
SCORE_TOLERANCE_DIGITS = 9


def embedding_key(collection: str, id: str) -> str:
    return f"{collection}/{id}"


class FSCollection(CollectionProvider):
    """
    Collection stored as ``<base_path>/<collection>/<id>.mdx`` files.

    Embeddings live in the namespace-wide sidecar file keyed by
    ``<collection>/<id>``. The embedding is computed before anything is
    written; persisting is then two steps (file, then sidecar entry) with
    no rollback, so a document may exist without an embedding. Vector
    search scores such documents 0 instead of dropping them.
    """

    def __init__(
        self,
        base_path: str | Path,
        path: str,
        embedding_provider: EmbeddingProvider | None = None,
        storage: EmbeddingsStorageService | None = None,
        dimensions: int = DEFAULT_DIMENSIONS,
    ):
        self.base_path = Path(base_path)
        self.path = path
        self.embedding_provider = embedding_provider
        self.storage = storage or EmbeddingsStorageService(self.base_path)
        self.dimensions = dimensions

    def _dir(self, collection: str) -> Path:
        return self.base_path / collection

    def _file(self, collection: str, id: str) -> Path:
        return self._dir(collection) / artifact_name(id)

    async def _embed(self, document: Document) -> list[float]:
        if document.embeddings:
            vector = list(document.embeddings)
        else:
            if self.embedding_provider is None:
                raise ConfigurationError(
                    "An embedding provider is required to index documents without embeddings",
                    details={"collection": self.path, "id": document.id},
                )
            vector = await self.embedding_provider.generate_embedding(document.content)

        if len(vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(vector))
        return vector

    async def _write(
        self,
        collection: str,
        document: Document,
        exclusive: bool,
        vector: list[float] | None = None,
    ):
        if vector is None:
            vector = await self._embed(document)
        stored = document.model_copy(update={"embeddings": None})
        await write_artifact(
            self._file(collection, document.id),
            serialize_document(stored),
            exclusive=exclusive,
        )
        await self.storage.store_embedding(
            embedding_key(collection, document.id),
            document.content,
            vector,
        )

    async def create(self, collection: str):
        await list_artifacts(self._dir(collection))

    async def get(self, collection: str) -> list[Document]:
        """
        Load every document in a collection.

        Unparseable files are skipped with a warning so one bad file does
        not hide the rest of the collection.
        """
        documents = []
        for name in await list_artifacts(self._dir(collection)):
            if not is_document_artifact(name):
                continue
            id = id_from_artifact(name)
            text = await read_artifact(self._dir(collection) / name)
            if text is None:
                continue
            try:
                documents.append(parse_document(id, text))
            except CorruptStorageError as e:
                logger.warning("Skipping %s/%s: %s", collection, id, e)
        return documents

    async def read(self, collection: str, id: str) -> Document:
        text = await read_artifact(self._file(collection, id))
        if text is None:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        return parse_document(id, text)

    async def add(self, collection: str, document: Document) -> Document:
        if not document.id:
            document = document.with_id(uuid.uuid4().hex)

        # Check before embedding so a duplicate costs no model call;
        # the exclusive write below still guards against a racing writer.
        if await read_artifact(self._file(collection, document.id)) is not None:
            raise DuplicateDocumentError(
                f"Document {document.id} already exists in collection {collection}",
                details={"collection": collection, "id": document.id},
            )

        await self._write(collection, document, exclusive=True)
        logger.debug("Added %s/%s", collection, document.id)
        return document

    async def update(self, collection: str, id: str, document: Document) -> Document:
        if await read_artifact(self._file(collection, id)) is None:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        if document.id != id:
            document = document.with_id(id)

        # Embed first so a failed model call leaves the old document in place
        vector = await self._embed(document)
        await self.delete(collection, id)
        await self._write(collection, document, exclusive=False, vector=vector)
        return document

    async def delete(self, collection: str, id: str):
        if not await delete_artifact(self._file(collection, id)):
            logger.debug("Delete of missing document %s/%s", collection, id)
        await self.storage.delete_embedding(embedding_key(collection, id))

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Full scan of the collection, evaluating the filter per document."""
        options = options or SearchOptions()
        expr = parse_filter(filter if filter is not None else options.filter)

        results = [
            SearchResult(document=doc, score=1.0)
            for doc in await self.get(self._collection(options))
            if expr.evaluate(doc.to_record())
        ]
        return _page(results, options.offset, options.limit)

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Embed the query text and run a vector search with it."""
        if self.embedding_provider is None:
            raise ConfigurationError(
                "An embedding provider is required for text search",
                details={"collection": self.path},
            )
        options = options or SearchOptions()
        vector = await self.embedding_provider.generate_embedding(query)

        return await self.vector_search(
            VectorSearchOptions(
                **options.model_dump(exclude={"threshold", "vector", "query"}),
                vector=vector,
                query=query,
                threshold=DEFAULT_THRESHOLD if options.threshold is None else options.threshold,
            )
        )

    async def vector_search(self, options: VectorSearchOptions) -> list[SearchResult]:
        """
        Rank the collection's documents by cosine similarity to a vector.

        Raises:
            MissingVectorError: If ``options.vector`` is not set.
            DimensionMismatchError: If the vector width differs from the
                collection's dimensions.
        """
        if not options.vector:
            raise MissingVectorError(
                "Vector is required for vector search",
                details={"collection": self._collection(options)},
            )
        if len(options.vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(options.vector))

        collection = self._collection(options)
        threshold = options.effective_threshold()
        expr = parse_filter(options.filter)

        # Sidecar order is write order; it breaks ties between equal scores
        all_embeddings = await self.storage.get_all_embeddings()
        stored = {e.id: e for e in all_embeddings}
        position = {e.id: i for i, e in enumerate(all_embeddings)}

        ranked = []
        for doc in await self.get(collection):
            if not expr.evaluate(doc.to_record()):
                continue

            key = embedding_key(collection, doc.id)
            entry = stored.get(key)
            if entry is None:
                logger.debug("No embedding for %s/%s, scoring 0", collection, doc.id)
                score = 0.0
            else:
                try:
                    score = calculate_similarity(options.vector, entry.embedding)
                except DimensionMismatchError as e:
                    logger.warning("Stored embedding for %s/%s: %s, scoring 0", collection, doc.id, e)
                    score = 0.0

            if score < threshold:
                continue

            ranked.append((
                -round(score, SCORE_TOLERANCE_DIGITS),
                position.get(key, len(position)),
                SearchResult(
                    document=doc,
                    score=score,
                    vector=entry.embedding if options.include_vectors and entry else None,
                ),
            ))

        ranked.sort(key=lambda item: item[:2])
        results = [result for _, _, result in ranked]
        return _page(results, options.offset, options.effective_limit())


def _page(results: list[SearchResult], offset: int | None, limit: int | None) -> list[SearchResult]:
    start = offset or 0
    if limit is None:
        return results[start:]
    return results[start:start + limit]
