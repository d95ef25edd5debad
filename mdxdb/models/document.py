"""Document data models."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class DocumentMetadata(BaseModel):
    """Tracking record attached to every document."""
    
    model_config = ConfigDict(extra="allow")
    
    id: str = ""
    type: str = "document"
    ts: int | None = None
    ns: str | None = None
    host: str | None = None
    path: list[str] | None = None
    content: str | None = None
    data: dict[str, Any] | None = None
    version: int | None = None
    hash: dict[str, Any] | None = None


class Document(BaseModel):
    """
    MDX document with JSON-LD style data.
    
    The identifier is mirrored into ``data["$id"]`` and ``metadata.id``, and
    the type into ``data["$type"]`` and ``metadata.type``, so the three
    views of a document can never disagree.
    """
    
    id: str = ""
    content: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    embeddings: list[float] | None = None
    collections: list[str] = Field(default_factory=list)
    
    @model_validator(mode="after")
    def _sync_identity(self) -> "Document":
        if "type" in self.metadata.model_fields_set:
            doc_type = self.metadata.type or "document"
        else:
            doc_type = self.data.get("$type") or self.metadata.type or "document"
        
        self.data = {**self.data, "$id": self.id, "$type": doc_type}
        self.metadata.id = self.id
        self.metadata.type = doc_type
        if self.metadata.ts is None:
            self.metadata.ts = now_ms()
        return self
    
    def get_type(self) -> str:
        return self.metadata.type
    
    def get_collections(self) -> list[str]:
        return list(self.collections)
    
    def belongs_to_collection(self, collection: str) -> bool:
        return collection in self.collections
    
    def get_embeddings(self) -> list[float] | None:
        return self.embeddings
    
    def with_id(self, new_id: str) -> "Document":
        """Return a copy of this document under a different identifier."""
        return Document.model_validate({**self.to_record(), "id": new_id})
    
    def to_record(self) -> dict[str, Any]:
        """Plain dict view used for filtering and serialization."""
        return self.model_dump(exclude_none=True)
