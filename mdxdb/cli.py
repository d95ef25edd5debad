"""mdxdb CLI."""

import asyncio
import json
import sys
from pathlib import Path

# Load .env file
from dotenv import load_dotenv
load_dotenv()

import click
from rich.console import Console
from rich.table import Table

from mdxdb.config import Settings, get_settings
from mdxdb.errors import DuplicateDocumentError, MDXDBError
from mdxdb.factory import create_database
from mdxdb.log import configure_logging
from mdxdb.models.enums import BackendType
from mdxdb.models.search import SearchOptions, SearchResult
from mdxdb.namespace import derive_namespace
from mdxdb.providers.fs.document import parse_document


console = Console()
err_console = Console(stderr=True)


def _run(coro):
    """Run a coroutine, turning mdxdb errors into a one-line message and exit code 1."""
    try:
        return asyncio.run(coro)
    except MDXDBError as e:
        err_console.print(f"[red]{e.kind}: {e.message}[/red]", highlight=False)
        sys.exit(1)


def _print_results(results: list[SearchResult], json_output: bool):
    if json_output:
        click.echo(json.dumps([r.model_dump(mode="json", exclude_none=True) for r in results], indent=2))
        return

    if not results:
        console.print("[yellow]No documents found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right", width=7)
    table.add_column("Id", width=30)
    table.add_column("Type", width=15)
    table.add_column("Content", width=50)
    for result in results:
        doc = result.document
        table.add_row(
            f"{result.score:.3f}",
            doc.id[:30],
            doc.get_type()[:15],
            doc.content.strip().replace("\n", " ")[:50],
        )
    console.print(table)


@click.group()
@click.option("--base-path", default=None, help="Content directory for the fs backend")
@click.option(
    "--backend",
    type=click.Choice([b.value for b in BackendType]),
    default=None,
    help="Storage backend",
)
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def cli(ctx, base_path: str | None, backend: str | None, log_level: str | None):
    """mdxdb - MDX document database with vector search."""
    overrides = {}
    if base_path is not None:
        overrides["base_path"] = base_path
    if backend is not None:
        overrides["backend"] = BackendType(backend)
    if log_level is not None:
        overrides["log_level"] = log_level

    settings = get_settings(**overrides)
    configure_logging(settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def collections(ctx):
    """List collections."""
    _run(_collections_async(ctx.obj["settings"]))


async def _collections_async(settings: Settings):
    async with create_database(settings) as db:
        names = await db.list()

    if not names:
        console.print("[yellow]No collections[/yellow]")
        return
    for name in names:
        console.print(name)


@cli.command()
@click.argument("collection")
@click.argument("id", required=False)
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def get(ctx, collection: str, id: str | None, json_output: bool):
    """Show one document, or every document in a collection."""
    _run(_get_async(ctx.obj["settings"], collection, id, json_output))


async def _get_async(settings: Settings, collection: str, id: str | None, json_output: bool):
    async with create_database(settings) as db:
        provider = db.collection(collection)
        if id is None:
            documents = await provider.get(collection)
            _print_results([SearchResult(document=d, score=1.0) for d in documents], json_output)
            return
        document = await provider.read(collection, id)

    if json_output:
        click.echo(document.model_dump_json(indent=2, exclude_none=True))
    else:
        console.print(f"[bold]{document.id}[/bold] [dim]({document.get_type()})[/dim]")
        for key, value in document.data.items():
            if not key.startswith("$"):
                console.print(f"  {key}: {value}")
        console.print()
        console.print(document.content)


@cli.command()
@click.argument("collection")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--id", "doc_id", default=None, help="Document id (defaults to the file name)")
@click.option("--replace", is_flag=True, help="Update the document if it already exists")
@click.pass_context
def add(ctx, collection: str, file: Path, doc_id: str | None, replace: bool):
    """Add a document from an MDX file."""
    _run(_add_async(ctx.obj["settings"], collection, file, doc_id or file.stem, replace))


async def _add_async(settings: Settings, collection: str, file: Path, doc_id: str, replace: bool):
    document = parse_document(doc_id, file.read_text(encoding="utf-8"))

    async with create_database(settings) as db:
        provider = db.collection(collection)
        try:
            stored = await provider.add(collection, document)
        except DuplicateDocumentError:
            if not replace:
                raise
            stored = await provider.update(collection, doc_id, document)
            console.print(f"[green]✓ Updated {collection}/{stored.id}[/green]")
            return

    console.print(f"[green]✓ Added {collection}/{stored.id}[/green]")


@cli.command()
@click.argument("collection")
@click.argument("id")
@click.pass_context
def delete(ctx, collection: str, id: str):
    """Delete a document."""
    _run(_delete_async(ctx.obj["settings"], collection, id))


async def _delete_async(settings: Settings, collection: str, id: str):
    async with create_database(settings) as db:
        await db.collection(collection).delete(collection, id)
    console.print(f"[green]✓ Deleted {collection}/{id}[/green]")


@cli.command()
@click.argument("collection")
@click.option("--filter", "filter_json", default=None, help='Filter as JSON, e.g. {"status": "draft"}')
@click.option("--limit", default=None, type=int, help="Maximum results to return")
@click.option("--offset", default=None, type=int, help="Results to skip")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def find(ctx, collection: str, filter_json: str | None, limit: int | None, offset: int | None, json_output: bool):
    """Find documents matching a filter."""
    try:
        query = json.loads(filter_json) if filter_json else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--filter")

    options = SearchOptions(collection=collection, limit=limit, offset=offset)
    _run(_find_async(ctx.obj["settings"], collection, query, options, json_output))


async def _find_async(settings: Settings, collection: str, query: dict | None, options: SearchOptions, json_output: bool):
    async with create_database(settings) as db:
        results = await db.collection(collection).find(query, options)
    _print_results(results, json_output)


@cli.command()
@click.argument("collection")
@click.argument("query")
@click.option("--threshold", default=None, type=float, help="Minimum similarity (default 0.7)")
@click.option("--limit", default=None, type=int, help="Maximum results to return")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def search(ctx, collection: str, query: str, threshold: float | None, limit: int | None, json_output: bool):
    """Semantic search over a collection."""
    options = SearchOptions(collection=collection, threshold=threshold, limit=limit)
    _run(_search_async(ctx.obj["settings"], collection, query, options, json_output))


async def _search_async(settings: Settings, collection: str, query: str, options: SearchOptions, json_output: bool):
    async with create_database(settings) as db:
        results = await db.collection(collection).search(query, options)
    _print_results(results, json_output)


@cli.command()
@click.argument("identifier")
def namespace(identifier: str):
    """Print the namespace of a document identifier."""
    try:
        click.echo(derive_namespace(identifier))
    except ValueError as e:
        err_console.print(f"[red]ValueError: {e}[/red]", highlight=False)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
