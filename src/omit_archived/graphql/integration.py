"""
FastAPI/Strawberry integration.

Provides utilities for building the schema from a database and mounting it
on a FastAPI application.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import strawberry
from fastapi import FastAPI, Request
from strawberry.fastapi import GraphQLRouter

from omit_archived.config import OmitArchivedConfig
from omit_archived.graphql.archived_filter import OmitArchivedPlugin
from omit_archived.graphql.context import CONTEXT_KEY, create_context_from_request
from omit_archived.graphql.resolver_generator import create_schema
from omit_archived.graphql.schema_builder import SchemaBuilder, SchemaDefinition, SchemaPlugin
from omit_archived.runtime.database import DatabaseManager
from omit_archived.runtime.introspection import introspect_catalog
from omit_archived.specs import CatalogSpec


def default_plugins(config: OmitArchivedConfig | None = None) -> list[SchemaPlugin]:
    """Plugins applied when none are given explicitly."""
    return [OmitArchivedPlugin(config)]


def build_schema_definition(
    catalog: CatalogSpec,
    config: OmitArchivedConfig | None = None,
    plugins: Sequence[SchemaPlugin] | None = None,
) -> SchemaDefinition:
    """Build the schema definition for a catalog."""
    if plugins is None:
        plugins = default_plugins(config)
    return SchemaBuilder(catalog, plugins=plugins).build()


def create_database_schema(
    db: DatabaseManager,
    config: OmitArchivedConfig | None = None,
    plugins: Sequence[SchemaPlugin] | None = None,
) -> strawberry.Schema:
    """
    Introspect a database and create its GraphQL schema.

    Args:
        db: Database to introspect
        config: Archived filtering options (defaults to ``is_archived``)
        plugins: Plugins to apply (defaults to ``OmitArchivedPlugin(config)``)

    Returns:
        Strawberry Schema object
    """
    catalog = introspect_catalog(db)
    return create_schema(build_schema_definition(catalog, config, plugins))


def mount_graphql(
    app: FastAPI,
    db: DatabaseManager,
    config: OmitArchivedConfig | None = None,
    path: str = "/graphql",
    enable_graphiql: bool = True,
) -> None:
    """
    Mount a GraphQL endpoint for a database on an existing FastAPI application.

    Example:
        app = FastAPI()
        mount_graphql(app, DatabaseManager("app.db"))
        # GraphQL available at /graphql
    """
    schema = create_database_schema(db, config)

    def get_context(request: Request) -> dict[str, Any]:
        return {CONTEXT_KEY: create_context_from_request(request, db)}

    graphql_router: GraphQLRouter[Any, Any] = GraphQLRouter(
        schema,
        graphql_ide="graphiql" if enable_graphiql else None,
        context_getter=get_context,
    )
    app.include_router(graphql_router, prefix=path)


def create_graphql_app(
    db: DatabaseManager,
    config: OmitArchivedConfig | None = None,
    path: str = "/graphql",
    enable_graphiql: bool = True,
) -> FastAPI:
    """
    Create a standalone FastAPI application with a GraphQL endpoint.

    Example:
        app = create_graphql_app(DatabaseManager("app.db"))
        # Run with: uvicorn mymodule:app
    """
    app = FastAPI(title="GraphQL API", description="GraphQL API with archived-row filtering")
    mount_graphql(app, db, config=config, path=path, enable_graphiql=enable_graphiql)
    return app
