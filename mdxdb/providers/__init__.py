"""Storage backends."""

from mdxdb.providers.base import CollectionProvider, DatabaseProvider
from mdxdb.providers.clickhouse import ClickHouseCollection, ClickHouseDatabase
from mdxdb.providers.fetch import FetchCollection, FetchProvider
from mdxdb.providers.fs import FSCollection, FSDatabase

__all__ = [
    "CollectionProvider",
    "DatabaseProvider",
    "ClickHouseCollection",
    "ClickHouseDatabase",
    "FetchCollection",
    "FetchProvider",
    "FSCollection",
    "FSDatabase",
]
