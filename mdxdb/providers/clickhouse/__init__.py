"""ClickHouse backend."""

from mdxdb.providers.clickhouse.client import ClickHouseClient
from mdxdb.providers.clickhouse.collection import ClickHouseCollection
from mdxdb.providers.clickhouse.database import ClickHouseDatabase, create_clickhouse_database

__all__ = [
    "ClickHouseClient",
    "ClickHouseCollection",
    "ClickHouseDatabase",
    "create_clickhouse_database",
]
