"""MDX file artifacts: path layout, YAML frontmatter and async file I/O."""

import asyncio
import re
from pathlib import Path
from urllib.parse import quote, unquote

import yaml

from mdxdb.errors import CorruptStorageError, DuplicateDocumentError, StorageIOError
from mdxdb.models.document import Document


MDX_EXTENSION = ".mdx"
METADATA_KEY = "$metadata"
COLLECTIONS_KEY = "$collections"

FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---(?:\r?\n|\Z)(.*)\Z", re.DOTALL)


def artifact_name(id: str) -> str:
    """File name for a document id; ids may contain any character."""
    return quote(id, safe="") + MDX_EXTENSION


def id_from_artifact(name: str) -> str:
    return unquote(name[: -len(MDX_EXTENSION)])


def is_document_artifact(name: str) -> bool:
    return name.endswith(MDX_EXTENSION) and not name.startswith(".")


def serialize_document(document: Document) -> str:
    """Render a document as MDX with its data in YAML frontmatter."""
    frontmatter = dict(document.data)
    frontmatter[METADATA_KEY] = document.metadata.model_dump(exclude_none=True)
    if document.collections:
        frontmatter[COLLECTIONS_KEY] = list(document.collections)

    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n{document.content}"


def parse_document(id: str, text: str) -> Document:
    """
    Parse MDX text into a document.

    Text without frontmatter becomes the content of a plain document.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return Document(id=id, content=text)

    try:
        frontmatter = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise CorruptStorageError(
            f"Invalid frontmatter in document {id}",
            details={"id": id, "error": str(e)},
        ) from e
    if not isinstance(frontmatter, dict):
        raise CorruptStorageError(
            f"Frontmatter of document {id} is not a mapping",
            details={"id": id},
        )

    metadata = frontmatter.pop(METADATA_KEY, None) or {}
    collections = frontmatter.pop(COLLECTIONS_KEY, None) or []
    return Document(
        id=id,
        content=match.group(2),
        data=frontmatter,
        metadata=metadata,
        collections=collections,
    )


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageIOError(f"Failed to read {path}: {e}", details={"path": str(path)}) from e


def _write(path: Path, text: str, exclusive: bool):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "x" if exclusive else "w", encoding="utf-8") as f:
            f.write(text)
    except FileExistsError as e:
        raise DuplicateDocumentError(
            f"Document already exists: {path.name}",
            details={"path": str(path)},
        ) from e
    except OSError as e:
        raise StorageIOError(f"Failed to write {path}: {e}", details={"path": str(path)}) from e


def _delete(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageIOError(f"Failed to delete {path}: {e}", details={"path": str(path)}) from e


def _list(directory: Path) -> list[str]:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        return sorted(p.name for p in directory.iterdir() if p.is_file())
    except OSError as e:
        raise StorageIOError(
            f"Failed to list {directory}: {e}",
            details={"path": str(directory)},
        ) from e


async def read_artifact(path: Path) -> str | None:
    """Read a file, returning None if it does not exist."""
    return await asyncio.to_thread(_read, path)


async def write_artifact(path: Path, text: str, exclusive: bool = False):
    """Write a file; with ``exclusive`` an existing file is an error."""
    await asyncio.to_thread(_write, path, text, exclusive)


async def delete_artifact(path: Path) -> bool:
    """Delete a file, returning False if it was already gone."""
    return await asyncio.to_thread(_delete, path)


async def list_artifacts(directory: Path) -> list[str]:
    """List file names in a directory, creating it if missing."""
    return await asyncio.to_thread(_list, directory)
