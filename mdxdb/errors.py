"""Exception types raised by mdxdb."""

import builtins


class MDXDBError(Exception):
    """Base exception for mdxdb errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def kind(self) -> str:
        """Short error kind shown to CLI and server callers."""
        return type(self).__name__


class ConfigurationError(MDXDBError):
    """A required credential or endpoint is missing."""


class DimensionMismatchError(MDXDBError):
    """Vector length does not match the expected dimensions."""

    def __init__(self, expected: int, actual: int, message: str | None = None):
        super().__init__(
            message or f"Vector dimension mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class DuplicateDocumentError(MDXDBError):
    """A document already exists at the target location."""


class NotFoundError(MDXDBError):
    """The requested document does not exist."""


class MissingVectorError(MDXDBError):
    """A vector search was requested without a query vector."""


class EmbeddingGenerationError(MDXDBError):
    """The embedding model failed or returned nothing."""


class UnsupportedEngineVersionError(MDXDBError):
    """The storage engine is older than the supported minimum."""


class UnexpectedResponseFormatError(MDXDBError):
    """A backend returned rows in a shape we cannot interpret."""


class StorageIOError(MDXDBError):
    """Reading or writing local storage failed."""


class CorruptStorageError(StorageIOError):
    """A storage file exists but cannot be parsed."""


class InvalidFilterError(MDXDBError, ValueError):
    """A filter query is malformed."""


class RemoteRequestError(MDXDBError):
    """A remote call failed or returned an error status."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details=details)
        self.status = status


class RemoteTimeoutError(RemoteRequestError):
    """A remote call did not complete within its timeout."""


class MDXDBNotImplementedError(MDXDBError, builtins.NotImplementedError):
    """An operation that a backend explicitly does not support."""

    def __init__(self, operation: str, collection: str | None = None, details: dict | None = None):
        target = f" for collection: {collection}" if collection is not None else ""
        super().__init__(f"Method {operation} not implemented{target}", details=details)
        self.operation = operation
        self.collection = collection


__all__ = [
    "MDXDBError",
    "ConfigurationError",
    "DimensionMismatchError",
    "DuplicateDocumentError",
    "NotFoundError",
    "MissingVectorError",
    "EmbeddingGenerationError",
    "UnsupportedEngineVersionError",
    "UnexpectedResponseFormatError",
    "StorageIOError",
    "CorruptStorageError",
    "InvalidFilterError",
    "RemoteRequestError",
    "RemoteTimeoutError",
    "MDXDBNotImplementedError",
]
