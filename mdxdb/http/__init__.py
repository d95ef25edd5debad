"""HTTP transport."""

from mdxdb.http.client import HTTPClient

__all__ = ["HTTPClient"]
