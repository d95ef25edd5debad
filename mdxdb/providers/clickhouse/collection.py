"""ClickHouse collection backed by append-only signed rows."""

import logging
import uuid
from typing import Any

from mdxdb.config import ClickHouseConfig
from mdxdb.embeddings.base import EmbeddingProvider
from mdxdb.errors import (
    ConfigurationError,
    DimensionMismatchError,
    DuplicateDocumentError,
    MissingVectorError,
    NotFoundError,
)
from mdxdb.filters import parse_filter
from mdxdb.models.document import Document, now_ms
from mdxdb.models.search import SearchOptions, SearchResult, VectorSearchOptions
from mdxdb.providers.base import CollectionProvider
from mdxdb.providers.clickhouse.client import ClickHouseClient
from mdxdb.providers.clickhouse.schema import table
from mdxdb.providers.clickhouse.utils import normalize_rows
from mdxdb.storage.versioned import LIVE, Versioned, collapse


logger = logging.getLogger(__name__)

DOCUMENT_COLUMNS = (
    "id, metadata, type, ns, host, path, collections, data, content, "
    "embedding, ts, hash, version"
)


def document_to_row(document: Document, vector: list[float], version: int) -> dict[str, Any]:
    """Row written to the oplog for one document version."""
    metadata = document.metadata
    return {
        "id": document.id,
        "metadata": metadata.model_dump(exclude_none=True),
        "type": metadata.type,
        "ns": metadata.ns or "",
        "host": metadata.host or "",
        "path": list(metadata.path or []),
        "collections": list(document.collections),
        "data": dict(document.data),
        "content": document.content,
        "embedding": list(vector),
        "ts": int((metadata.ts or now_ms()) // 1000),
        "hash": metadata.hash or {},
        "version": version,
        "sign": LIVE,
    }


def row_to_document(row: dict[str, Any]) -> Document:
    metadata = dict(row.get("metadata") or {})
    metadata.setdefault("type", row.get("type") or "document")
    return Document(
        id=row["id"],
        content=row.get("content") or "",
        data=row.get("data") or {},
        metadata=metadata,
        embeddings=row.get("embedding") or None,
        collections=row.get("collections") or [],
    )


class ClickHouseCollection(CollectionProvider):
    """
    Collection stored as rows of a VersionedCollapsingMergeTree.

    Writes never modify rows in place. A new version is appended to the
    oplog with ``sign = 1`` (a materialized view copies it into the data
    table); update and delete append a ``sign = -1`` row cancelling the
    version they replace. Collection membership is the ``collections``
    array column.
    """

    def __init__(
        self,
        path: str,
        client: ClickHouseClient,
        config: ClickHouseConfig,
        embedding_provider: EmbeddingProvider | None = None,
    ):
        self.path = path
        self.client = client
        self.config = config
        self.embedding_provider = embedding_provider

    @property
    def dimensions(self) -> int:
        return self.config.dimensions

    @property
    def data_table(self) -> str:
        return table(self.config, self.config.data_table)

    @property
    def oplog_table(self) -> str:
        return table(self.config, self.config.oplog_table)

    async def _rows(self, collection: str, id: str | None = None) -> list[Versioned[dict]]:
        """Raw (uncollapsed) rows of a collection, optionally for one id."""
        sql = (
            f"SELECT {DOCUMENT_COLUMNS}, sign FROM {self.data_table} "
            "WHERE has(collections, {collection:String})"
        )
        params: dict[str, Any] = {"collection": collection}
        if id is not None:
            sql += " AND id = {id:String}"
            params["id"] = id

        rows = normalize_rows(
            await self.client.query(sql, params),
            required=("id", "version", "sign"),
        )
        return [Versioned(row["id"], row, int(row["version"]), int(row["sign"])) for row in rows]

    async def _current(self, collection: str, id: str) -> Versioned[dict] | None:
        return collapse(await self._rows(collection, id)).get(id)

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

    async def _cancel(self, current: Versioned[dict]):
        row = {**current.value, "sign": current.cancel().sign}
        await self.client.insert(self.oplog_table, [row])
        await self.client.insert(self.data_table, [row])

    async def create(self, collection: str):
        """Collections are row labels; creating one only ensures the schema."""
        await self.client.ensure_schema()

    async def get(self, collection: str) -> list[Document]:
        live = collapse(await self._rows(collection))
        return [row_to_document(live[key].value) for key in sorted(live)]

    async def read(self, collection: str, id: str) -> Document:
        current = await self._current(collection, id)
        if current is None:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        return row_to_document(current.value)

    async def add(self, collection: str, document: Document) -> Document:
        if not document.id:
            document = document.with_id(uuid.uuid4().hex)
        if collection not in document.collections:
            document = document.model_copy(update={"collections": [*document.collections, collection]})

        if await self._current(collection, document.id) is not None:
            raise DuplicateDocumentError(
                f"Document {document.id} already exists in collection {collection}",
                details={"collection": collection, "id": document.id},
            )

        vector = await self._embed(document)
        await self.client.insert(self.oplog_table, [document_to_row(document, vector, now_ms())])
        return document

    async def update(self, collection: str, id: str, document: Document) -> Document:
        current = await self._current(collection, id)
        if current is None:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        if document.id != id:
            document = document.with_id(id)
        if collection not in document.collections:
            document = document.model_copy(update={"collections": [*document.collections, collection]})

        vector = await self._embed(document)
        version = max(now_ms(), current.version + 1)
        await self._cancel(current)
        await self.client.insert(self.oplog_table, [document_to_row(document, vector, version)])
        return document

    async def delete(self, collection: str, id: str):
        current = await self._current(collection, id)
        if current is None:
            logger.debug("Delete of missing document %s/%s", collection, id)
            return
        await self._cancel(current)

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Filter the collection's live rows; filters are evaluated client side."""
        options = options or SearchOptions()
        expr = parse_filter(filter if filter is not None else options.filter)

        results = [
            SearchResult(document=doc, score=1.0)
            for doc in await self.get(self._collection(options))
            if expr.evaluate(doc.to_record())
        ]
        start = options.offset or 0
        end = None if options.limit is None else start + options.limit
        return results[start:end]

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Case-insensitive substring match over document content."""
        options = options or SearchOptions()
        sql = (
            f"SELECT {DOCUMENT_COLUMNS} FROM {self.data_table} FINAL "
            "WHERE sign = 1 AND has(collections, {collection:String}) "
            "AND positionCaseInsensitive(content, {query:String}) > 0"
        )
        params: dict[str, Any] = {"collection": self._collection(options), "query": query}
        if options.filter is None and options.limit is not None:
            sql += " LIMIT {limit:UInt32} OFFSET {offset:UInt32}"
            params.update(limit=options.limit, offset=options.offset or 0)

        rows = normalize_rows(await self.client.query(sql, params), required=("id",))
        results = [SearchResult(document=row_to_document(row), score=1.0) for row in rows]

        if options.filter is not None:
            expr = parse_filter(options.filter)
            results = [r for r in results if expr.evaluate(r.document.to_record())]
            start = options.offset or 0
            end = None if options.limit is None else start + options.limit
            results = results[start:end]
        return results

    async def vector_search(self, options: VectorSearchOptions) -> list[SearchResult]:
        """
        Nearest neighbours by cosine distance, computed in ClickHouse.

        The threshold is a similarity; rows are kept when
        ``distance <= 1 - threshold`` and scored ``1 - distance``.

        Raises:
            MissingVectorError: If ``options.vector`` is not set.
            DimensionMismatchError: If the vector width differs from the
                configured index dimensions. Checked before any query.
        """
        if not options.vector:
            raise MissingVectorError(
                "Vector is required for vector search",
                details={"collection": self._collection(options)},
            )
        if len(options.vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(options.vector))

        limit = options.effective_limit()
        offset = options.offset or 0
        sql = (
            f"SELECT {DOCUMENT_COLUMNS}, "
            "cosineDistance(embedding, {vector:Array(Float32)}) AS distance "
            f"FROM {self.data_table} FINAL "
            "WHERE sign = 1 AND has(collections, {collection:String}) "
            "AND distance <= {max_distance:Float64} "
            "ORDER BY distance ASC"
        )
        params: dict[str, Any] = {
            "vector": [float(v) for v in options.vector],
            "collection": self._collection(options),
            "max_distance": 1 - options.effective_threshold(),
        }
        if options.filter is None:
            sql += " LIMIT {limit:UInt32} OFFSET {offset:UInt32}"
            params.update(limit=limit, offset=offset)

        rows = normalize_rows(
            await self.client.query(sql, params),
            required=("id", "distance"),
        )

        results = []
        for row in rows:
            document = row_to_document(row)
            results.append(
                SearchResult(
                    document=document,
                    score=1 - float(row["distance"]),
                    vector=row.get("embedding") if options.include_vectors else None,
                )
            )

        if options.filter is not None:
            expr = parse_filter(options.filter)
            results = [r for r in results if expr.evaluate(r.document.to_record())]
            results = results[offset:offset + limit]
        return results
