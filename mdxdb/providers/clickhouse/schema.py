"""Schema bootstrap statements for the ClickHouse backend."""

import re

from mdxdb.config import ClickHouseConfig
from mdxdb.errors import ConfigurationError


IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def identifier(name: str) -> str:
    """Validate a database or table name before it is put into SQL."""
    if not IDENTIFIER_RE.match(name):
        raise ConfigurationError(f"Invalid ClickHouse identifier: {name!r}")
    return name


def table(config: ClickHouseConfig, name: str) -> str:
    return f"{identifier(config.database)}.{identifier(name)}"


def _columns(config: ClickHouseConfig) -> str:
    index = config.vector_index
    return f"""
  id String,
  metadata JSON,
  type String,
  ns String,
  host String,
  path Array(String),
  collections Array(String),
  data JSON,
  content String,
  embedding Array(Float32),
  ts UInt32,
  hash JSON,
  version UInt64,
  sign Int8,
  INDEX idx_content content TYPE full_text GRANULARITY 1,
  INDEX idx_embedding embedding TYPE vector_similarity('{index.type.value}', '{index.metric.value}'),
  CONSTRAINT embedding_dimensions CHECK length(embedding) = {int(index.dimensions)}
"""


def get_database_schema(config: ClickHouseConfig) -> str:
    return f"CREATE DATABASE IF NOT EXISTS {identifier(config.database)}"


def get_tables_schema(config: ClickHouseConfig) -> list[str]:
    """Append-only oplog and the collapsing data table."""
    return [
        f"""CREATE TABLE IF NOT EXISTS {table(config, name)} ({_columns(config)})
ENGINE = VersionedCollapsingMergeTree(sign, version)
PRIMARY KEY (id)
ORDER BY (id, version)"""
        for name in (config.oplog_table, config.data_table)
    ]


def get_materialized_view_schema(config: ClickHouseConfig) -> str:
    """View copying live oplog rows into the data table."""
    return f"""CREATE MATERIALIZED VIEW IF NOT EXISTS {table(config, config.data_table + '_mv')}
TO {table(config, config.data_table)}
AS SELECT
  id, metadata, type, ns, host, path, collections, data, content,
  embedding, ts, hash, version,
  CAST(1 AS Int8) AS sign
FROM {table(config, config.oplog_table)}
WHERE sign = 1"""


def get_schema_statements(config: ClickHouseConfig) -> list[str]:
    """Every bootstrap statement, in execution order; all are idempotent."""
    return [
        get_database_schema(config),
        *get_tables_schema(config),
        get_materialized_view_schema(config),
    ]
