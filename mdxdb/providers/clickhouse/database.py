"""ClickHouse database provider."""

import logging
from urllib.parse import urlparse

import httpx

from mdxdb.config import ClickHouseConfig
from mdxdb.embeddings.base import EmbeddingProvider
from mdxdb.errors import ConfigurationError
from mdxdb.providers.base import DatabaseProvider
from mdxdb.providers.clickhouse.client import ClickHouseClient
from mdxdb.providers.clickhouse.collection import ClickHouseCollection
from mdxdb.providers.clickhouse.schema import table
from mdxdb.providers.clickhouse.utils import normalize_rows


logger = logging.getLogger(__name__)


class ClickHouseDatabase(DatabaseProvider):
    """Database provider for a ClickHouse server."""

    def __init__(
        self,
        config: ClickHouseConfig,
        embedding_provider: EmbeddingProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay: float = 1.0,
    ):
        if not config.url:
            raise ConfigurationError("ClickHouse URL is required")
        self.config = config
        self.embedding_provider = embedding_provider
        self.client = ClickHouseClient(config, transport=transport, retry_delay=retry_delay)
        host = urlparse(config.url).netloc or config.url
        self.namespace = f"clickhouse://{host}/{config.database}"
        self._names: set[str] = set()
        self._collections: dict[str, ClickHouseCollection] = {}

    async def connect(self):
        """Check the server version, then bootstrap the schema."""
        await self.client.check_version()
        await self.client.ensure_schema()
        logger.info("Connected to %s", self.namespace)

    async def disconnect(self):
        self._collections.clear()
        await self.client.aclose()

    async def list(self) -> list[str]:
        rows = normalize_rows(
            await self.client.query(
                "SELECT DISTINCT arrayJoin(collections) AS name "
                f"FROM {table(self.config, self.config.data_table)} FINAL "
                "WHERE sign = 1 ORDER BY name"
            ),
            required=("name",),
        )
        return sorted(self._names | {row["name"] for row in rows})

    def collection(self, name: str) -> ClickHouseCollection:
        self._names.add(name)
        if name not in self._collections:
            self._collections[name] = ClickHouseCollection(
                name,
                self.client,
                self.config,
                embedding_provider=self.embedding_provider,
            )
        return self._collections[name]


async def create_clickhouse_database(
    config: ClickHouseConfig,
    embedding_provider: EmbeddingProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClickHouseDatabase:
    """Create a provider and connect it."""
    database = ClickHouseDatabase(config, embedding_provider=embedding_provider, transport=transport)
    try:
        await database.connect()
    except BaseException:
        await database.client.aclose()
        raise
    return database
