"""HTTP delegate backend: every operation is forwarded to a remote mdxdb server."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from mdxdb.config import FetchProviderOptions
from mdxdb.errors import (
    DimensionMismatchError,
    DuplicateDocumentError,
    MDXDBNotImplementedError,
    MissingVectorError,
    NotFoundError,
    UnexpectedResponseFormatError,
)
from mdxdb.http.client import HTTPClient
from mdxdb.models.document import Document
from mdxdb.models.search import SearchOptions, SearchResult, VectorSearchOptions
from mdxdb.providers.base import CollectionProvider, DatabaseProvider


logger = logging.getLogger(__name__)

UNSUPPORTED_STATUSES = (404, 405, 501)


def _options_payload(options: SearchOptions | None) -> dict[str, Any]:
    if options is None:
        return {}
    return options.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)


def _parse_results(payload: Any) -> list[SearchResult]:
    if not isinstance(payload, list):
        raise UnexpectedResponseFormatError(
            f"Expected a list of results, got {type(payload).__name__}",
        )
    try:
        return [SearchResult.model_validate(item) for item in payload]
    except ValidationError as e:
        raise UnexpectedResponseFormatError(
            "Search results have an unexpected shape",
            details={"error": str(e)},
        ) from e


def _parse_document(payload: Any) -> Document:
    try:
        return Document.model_validate(payload)
    except ValidationError as e:
        raise UnexpectedResponseFormatError(
            "Document has an unexpected shape",
            details={"error": str(e)},
        ) from e


class FetchCollection(CollectionProvider):
    """Collection whose operations are served by a remote endpoint."""

    def __init__(self, path: str, http: HTTPClient, dimensions: int | None = None):
        self.path = path
        self.http = http
        self.dimensions = dimensions

    def _url(self, collection: str, *parts: str) -> str:
        segments = ["collections", quote(collection, safe="")]
        segments.extend(quote(p, safe="") for p in parts)
        return "/".join(segments)

    async def _call(
        self,
        operation: str,
        collection: str,
        method: str,
        path: str,
        payload: Any = None,
        allow_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        response = await self.http.request(
            method,
            path,
            json=payload,
            allow_statuses=UNSUPPORTED_STATUSES + allow_statuses,
        )
        if response.status_code in (405, 501):
            raise MDXDBNotImplementedError(operation, collection)
        return response

    async def create(self, collection: str):
        await self._call("create", collection, "PUT", self._url(collection))

    async def get(self, collection: str) -> list[Document]:
        response = await self._call("get", collection, "GET", self._url(collection))
        if response.status_code == 404:
            return []
        payload = response.json()
        if not isinstance(payload, list):
            raise UnexpectedResponseFormatError("Expected a list of documents")
        return [_parse_document(item) for item in payload]

    async def read(self, collection: str, id: str) -> Document:
        response = await self._call("read", collection, "GET", self._url(collection, "documents", id))
        if response.status_code == 404:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        return _parse_document(response.json())

    async def add(self, collection: str, document: Document) -> Document:
        response = await self._call(
            "add",
            collection,
            "POST",
            self._url(collection, "documents"),
            payload=document.model_dump(exclude_none=True),
            allow_statuses=(409,),
        )
        if response.status_code == 409:
            raise DuplicateDocumentError(
                f"Document {document.id} already exists in collection {collection}",
                details={"collection": collection, "id": document.id},
            )
        if response.status_code == 404:
            raise MDXDBNotImplementedError("add", collection)
        return _parse_document(response.json()) if response.content else document

    async def update(self, collection: str, id: str, document: Document) -> Document:
        response = await self._call(
            "update",
            collection,
            "PUT",
            self._url(collection, "documents", id),
            payload=document.model_dump(exclude_none=True),
        )
        if response.status_code == 404:
            raise NotFoundError(
                f"Document {id} not found in collection {collection}",
                details={"collection": collection, "id": id},
            )
        return _parse_document(response.json()) if response.content else document.with_id(id)

    async def delete(self, collection: str, id: str):
        response = await self._call("delete", collection, "DELETE", self._url(collection, "documents", id))
        if response.status_code == 404:
            logger.debug("Delete of missing document %s/%s", collection, id)

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        collection = self._collection(options)
        payload = {"filter": filter, **_options_payload(options)}
        response = await self._call("find", collection, "POST", self._url(collection, "find"), payload)
        if response.status_code == 404:
            raise MDXDBNotImplementedError("find", collection)
        return _parse_results(response.json())

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        collection = self._collection(options)
        payload = {"query": query, **_options_payload(options)}
        response = await self._call("search", collection, "POST", self._url(collection, "search"), payload)
        if response.status_code == 404:
            raise MDXDBNotImplementedError("search", collection)
        return _parse_results(response.json())

    async def vector_search(self, options: VectorSearchOptions) -> list[SearchResult]:
        collection = self._collection(options)
        if not options.vector:
            raise MissingVectorError(
                "Vector is required for vector search",
                details={"collection": collection},
            )
        if self.dimensions is not None and len(options.vector) != self.dimensions:
            raise DimensionMismatchError(self.dimensions, len(options.vector))

        response = await self._call(
            "vector_search",
            collection,
            "POST",
            self._url(collection, "vector-search"),
            _options_payload(options),
        )
        if response.status_code == 404:
            raise MDXDBNotImplementedError("vector_search", collection)
        return _parse_results(response.json())


class FetchProvider(DatabaseProvider):
    """Database provider that talks to a remote mdxdb HTTP endpoint."""

    def __init__(
        self,
        options: FetchProviderOptions,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.namespace = options.namespace
        self.options = options
        self.http = HTTPClient(
            options.base_url,
            headers={"Content-Type": "application/json", **options.headers},
            timeout=options.timeout,
            retries=options.retries,
            retry_delay=options.retry_delay,
            transport=transport,
        )
        self._collections: dict[str, FetchCollection] = {}

    async def connect(self):
        await self.http.open()

    async def disconnect(self):
        self._collections.clear()
        await self.http.aclose()

    async def list(self) -> list[str]:
        payload = await self.http.get_json("collections")
        if not isinstance(payload, list):
            raise UnexpectedResponseFormatError("Expected a list of collection names")
        return [str(name) for name in payload]

    def collection(self, name: str) -> FetchCollection:
        if name not in self._collections:
            self._collections[name] = FetchCollection(name, self.http, dimensions=self.options.dimensions)
        return self._collections[name]
