"""Version checks and response normalization for ClickHouse."""

from typing import Any

from mdxdb.errors import UnexpectedResponseFormatError, UnsupportedEngineVersionError


MIN_VERSION = (24, 10)
MIN_VERSION_MESSAGE = "ClickHouse v24.10+ is required for JSON field support"


def parse_version(version: str) -> tuple[int, int]:
    """Major and minor components of a ClickHouse version string."""
    parts = version.strip().split(".")
    try:
        return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
    except ValueError as e:
        raise UnexpectedResponseFormatError(
            f"Cannot parse ClickHouse version {version!r}",
            details={"version": version},
        ) from e


def check_version(version: str):
    """
    Raises:
        UnsupportedEngineVersionError: If the server is older than 24.10.
    """
    if parse_version(version) < MIN_VERSION:
        raise UnsupportedEngineVersionError(MIN_VERSION_MESSAGE, details={"version": version})


def normalize_rows(payload: Any, required: tuple[str, ...] = ()) -> list[dict[str, Any]]:
    """
    Flatten a query answer into a list of row dicts.

    Accepts the ``FORMAT JSON`` envelope, a flat list of rows, or a list
    nested one level deep (what a one-row, one-column answer can come back
    as). Anything else raises ``UnexpectedResponseFormatError``.
    """
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
    if not isinstance(payload, list):
        raise UnexpectedResponseFormatError(
            f"Expected a list of rows, got {type(payload).__name__}",
        )

    if payload and all(isinstance(item, list) for item in payload):
        payload = [row for group in payload for row in group]

    for row in payload:
        if not isinstance(row, dict):
            raise UnexpectedResponseFormatError(
                f"Expected row objects, got {type(row).__name__}",
            )
        missing = [key for key in required if key not in row]
        if missing:
            raise UnexpectedResponseFormatError(
                f"Row is missing fields: {', '.join(missing)}",
                details={"missing": missing},
            )
    return payload
