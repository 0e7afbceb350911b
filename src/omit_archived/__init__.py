"""
omit-archived: archived-row filtering for a catalog-driven GraphQL API.

Collection fields over tables with an archival marker column (``is_archived``
by default) hide archived rows unless the caller passes ``includeArchived``.
"""

from omit_archived.config import OmitArchivedConfig
from omit_archived.graphql import (
    GraphQLContext,
    IncludeArchivedOption,
    OmitArchivedPlugin,
    SchemaBuilder,
    create_database_schema,
    create_graphql_app,
)
from omit_archived.runtime import DatabaseManager, introspect_catalog

__version__ = "0.1.0"

__all__ = [
    "DatabaseManager",
    "GraphQLContext",
    "IncludeArchivedOption",
    "OmitArchivedConfig",
    "OmitArchivedPlugin",
    "SchemaBuilder",
    "__version__",
    "create_database_schema",
    "create_graphql_app",
    "introspect_catalog",
]
