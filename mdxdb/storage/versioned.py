"""Append-only versioned rows with a merge-on-read fold."""

from collections import defaultdict
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar


T = TypeVar("T")

LIVE = 1
TOMBSTONE = -1


@dataclass(frozen=True)
class Versioned(Generic[T]):
    """
    One row of an append-only log.

    A write appends ``sign=+1`` at a new version. An update or delete appends
    a compensating ``sign=-1`` row for the version it retires, so a version
    whose signs sum to zero has been cancelled.
    """

    key: Hashable
    value: T
    version: int
    sign: int = LIVE

    @property
    def tombstone(self) -> bool:
        return self.sign < 0

    def cancel(self) -> "Versioned[T]":
        """Compensating row that retires this version."""
        return Versioned(self.key, self.value, self.version, TOMBSTONE)


def collapse(rows: Iterable[Versioned[T]]) -> dict[Hashable, Versioned[T]]:
    """
    Fold a log down to the latest live row per key.

    Signs are summed per (key, version); the highest version with a positive
    net sign wins. Keys whose every version has been cancelled are dropped.
    """
    net: dict[tuple[Hashable, int], int] = defaultdict(int)
    latest_value: dict[tuple[Hashable, int], Versioned[T]] = {}

    for row in rows:
        slot = (row.key, row.version)
        net[slot] += row.sign
        if row.sign > 0:
            latest_value[slot] = row

    live: dict[Hashable, Versioned[T]] = {}
    for (key, version), total in net.items():
        if total <= 0 or (key, version) not in latest_value:
            continue
        current = live.get(key)
        if current is None or version > current.version:
            live[key] = latest_value[(key, version)]
    return live


class VersionedLog(Generic[T]):
    """In-memory append-only log with the same semantics as the columnar table."""

    def __init__(self):
        self._rows: list[Versioned[T]] = []

    @property
    def rows(self) -> list[Versioned[T]]:
        return list(self._rows)

    def latest(self, key: Hashable) -> Versioned[T] | None:
        return collapse(r for r in self._rows if r.key == key).get(key)

    def put(self, key: Hashable, value: T, version: int | None = None) -> Versioned[T]:
        """Write a new live version, retiring the current one if present."""
        current = self.latest(key)
        if version is None:
            version = current.version + 1 if current else 1
        if current is not None:
            if version <= current.version:
                raise ValueError(
                    f"Version {version} for {key!r} is not newer than {current.version}"
                )
            self._rows.append(current.cancel())
        row = Versioned(key, value, version)
        self._rows.append(row)
        return row

    def delete(self, key: Hashable) -> bool:
        current = self.latest(key)
        if current is None:
            return False
        self._rows.append(current.cancel())
        return True

    def live(self) -> dict[Hashable, Versioned[T]]:
        return collapse(self._rows)
