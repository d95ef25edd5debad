"""ClickHouse HTTP interface client."""

import json
import logging
from typing import Any

import httpx

from mdxdb.config import ClickHouseConfig
from mdxdb.errors import UnexpectedResponseFormatError
from mdxdb.http.client import HTTPClient
from mdxdb.providers.clickhouse.schema import get_schema_statements
from mdxdb.providers.clickhouse.utils import check_version, normalize_rows


logger = logging.getLogger(__name__)

# Keep UInt64 columns (version) as JSON numbers
OUTPUT_SETTINGS = {"output_format_json_quote_64bit_integers": 0}


def format_param(value: Any) -> str:
    """Render a bound parameter in the text form ClickHouse expects."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    if isinstance(value, str):
        return value.replace("\\", "\\\\").replace("\t", "\\t").replace("\n", "\\n")
    return str(value)


class ClickHouseClient:
    """
    Query execution over ClickHouse's HTTP interface.

    Parameters are bound server side: ``{name:Type}`` placeholders in the
    SQL are filled from ``param_<name>`` URL parameters.
    """

    def __init__(
        self,
        config: ClickHouseConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay: float = 1.0,
    ):
        self.config = config
        self.http = HTTPClient(
            config.url,
            headers={
                "X-ClickHouse-User": config.username,
                "X-ClickHouse-Key": config.password,
            },
            timeout=config.timeout,
            retries=config.retries,
            retry_delay=retry_delay,
            transport=transport,
        )

    def _params(self, params: dict[str, Any] | None = None, **extra: Any) -> dict[str, Any]:
        url_params: dict[str, Any] = {**self.config.clickhouse_settings, **OUTPUT_SETTINGS, **extra}
        for name, value in (params or {}).items():
            url_params[f"param_{name}"] = format_param(value)
        return url_params

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        """Run a SELECT and return the decoded rows payload."""
        logger.debug("ClickHouse query: %s", " ".join(sql.split()))
        response = await self.http.request(
            "POST",
            params=self._params(params),
            content=f"{sql.strip()} FORMAT JSON",
        )
        payload = response.json()
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    async def command(self, sql: str, params: dict[str, Any] | None = None):
        """Run a statement that returns no rows (DDL)."""
        logger.debug("ClickHouse command: %s", " ".join(sql.split()))
        await self.http.request("POST", params=self._params(params), content=sql)

    async def insert(self, table: str, rows: list[dict[str, Any]]):
        """Insert rows as JSONEachRow."""
        if not rows:
            return
        await self.http.request(
            "POST",
            params=self._params(query=f"INSERT INTO {table} FORMAT JSONEachRow"),
            content="\n".join(json.dumps(row) for row in rows),
        )

    async def version(self) -> str:
        rows = normalize_rows(await self.query("SELECT version() AS version"), required=("version",))
        if not rows:
            raise UnexpectedResponseFormatError("ClickHouse returned no version row")
        return str(rows[0]["version"])

    async def check_version(self):
        """Fail unless the server supports native JSON columns."""
        check_version(await self.version())

    async def ensure_schema(self):
        """Create the database, tables and view if they are missing."""
        for statement in get_schema_statements(self.config):
            await self.command(statement)
        logger.info("ClickHouse schema ready in %s", self.config.database)

    async def aclose(self):
        await self.http.aclose()
