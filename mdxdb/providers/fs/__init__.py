"""Filesystem backend."""

from mdxdb.providers.fs.collection import FSCollection
from mdxdb.providers.fs.database import FSDatabase

__all__ = ["FSCollection", "FSDatabase"]
