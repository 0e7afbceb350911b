"""
omit-archived CLI.

Commands:
- inspect: Show which collection fields gain ``includeArchived`` and their defaults
- sdl:     Print the generated GraphQL schema
- serve:   Serve the GraphQL API over HTTP
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from omit_archived.config import OmitArchivedConfig
from omit_archived.graphql.archived_filter import INCLUDE_ARCHIVED_ARGUMENT
from omit_archived.graphql.integration import build_schema_definition, create_graphql_app
from omit_archived.graphql.resolver_generator import create_schema
from omit_archived.graphql.schema_builder import SchemaDefinition
from omit_archived.logging import setup_logging
from omit_archived.runtime import DatabaseManager, introspect_catalog

app = typer.Typer(
    help="Archived-row filtering for catalog-driven GraphQL APIs",
    no_args_is_help=True,
)

console = Console()


def _load_config(db_path: Path, column: str | None) -> OmitArchivedConfig:
    if not db_path.exists():
        console.print(f"[red]Database not found: {db_path}[/red]")
        raise typer.Exit(1)

    try:
        return OmitArchivedConfig.from_env(archived_column_name=column or "")
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(1)


def _load_definition(db_path: Path, column: str | None, verbose: bool) -> SchemaDefinition:
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    config = _load_config(db_path, column)

    db = DatabaseManager(db_path)
    try:
        catalog = introspect_catalog(db)
    finally:
        db.close()
    return build_schema_definition(catalog, config)


@app.command(name="inspect")
def inspect_command(
    db_path: Path = typer.Argument(..., help="SQLite database file"),
    column: str | None = typer.Option(
        None,
        "--column",
        "-c",
        help="Archival marker column name (default: is_archived)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show build logging"),
) -> None:
    """List collection fields that filter archived rows."""
    definition = _load_definition(db_path, column, verbose)

    table = Table(title="includeArchived fields")
    table.add_column("Field", style="cyan")
    table.add_column("Table")
    table.add_column("Default", style="green")

    count = 0
    for object_type in definition.object_types.values():
        for field_def in object_type.fields.values():
            argument = field_def.arguments.get(INCLUDE_ARCHIVED_ARGUMENT)
            if argument is None:
                continue
            table.add_row(
                f"{object_type.name}.{field_def.name}",
                field_def.table.name if field_def.table else "-",
                argument.default.name if argument.default is not None else "-",
            )
            count += 1

    if count == 0:
        console.print("[yellow]No archivable collection fields found.[/yellow]")
        return
    console.print(table)


@app.command(name="sdl")
def sdl_command(
    db_path: Path = typer.Argument(..., help="SQLite database file"),
    column: str | None = typer.Option(
        None,
        "--column",
        "-c",
        help="Archival marker column name (default: is_archived)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the schema to a file instead of stdout",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show build logging"),
) -> None:
    """Print the generated GraphQL schema."""
    definition = _load_definition(db_path, column, verbose)
    sdl = create_schema(definition).as_str()

    if output is not None:
        output.write_text(sdl + "\n", encoding="utf-8")
        console.print(f"[green]Schema written to {output}[/green]")
        return
    typer.echo(sdl)


@app.command(name="serve")
def serve_command(
    db_path: Path = typer.Argument(..., help="SQLite database file"),
    column: str | None = typer.Option(
        None,
        "--column",
        "-c",
        help="Archival marker column name (default: is_archived)",
    ),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    graphiql: bool = typer.Option(True, "--graphiql/--no-graphiql", help="Serve the GraphiQL IDE"),
    log_dir: Path | None = typer.Option(
        None,
        "--log-dir",
        help="Directory for JSONL logs (console only when omitted)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Serve the GraphQL API for a database."""
    import uvicorn

    setup_logging(logging.DEBUG if verbose else logging.INFO, log_dir=log_dir)
    config = _load_config(db_path, column)

    db = DatabaseManager(db_path)
    graphql_app = create_graphql_app(db, config=config, enable_graphiql=graphiql)

    console.print(f"[green]Serving GraphQL at http://{host}:{port}/graphql[/green]")
    try:
        uvicorn.run(graphql_app, host=host, port=port, log_level="debug" if verbose else "info")
    finally:
        db.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
