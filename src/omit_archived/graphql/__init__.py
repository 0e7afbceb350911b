"""
GraphQL layer with archived-row filtering.

Provides:
- ``IncludeArchivedOption``: enum selecting how archived rows are treated
- ``OmitArchivedPlugin``: adds ``includeArchived`` to archivable collections
- ``SchemaBuilder`` / ``ResolverGenerator``: catalog -> Strawberry schema
- FastAPI integration
"""

from omit_archived.graphql.archived_filter import (
    INCLUDE_ARCHIVED_ARGUMENT,
    ArchivalColumn,
    ArchivedPredicateGenerator,
    FieldArchivalConfig,
    OmitArchivedPlugin,
    OmitArchivedStrategy,
    compile_predicate,
    find_archival_column,
)
from omit_archived.graphql.context import GraphQLContext
from omit_archived.graphql.field_scope import (
    ArgumentSpec,
    BuildContext,
    FieldAugmentation,
    FieldKey,
    FieldScope,
    FieldStrategy,
)
from omit_archived.graphql.include_archived import (
    IncludeArchivedOption,
    register_include_archived_option,
)
from omit_archived.graphql.integration import (
    build_schema_definition,
    create_database_schema,
    create_graphql_app,
    mount_graphql,
)
from omit_archived.graphql.registry import PredicateRegistry, TypeRegistrationError, TypeRegistry
from omit_archived.graphql.resolver_generator import ResolverGenerator, create_schema
from omit_archived.graphql.schema_builder import SchemaBuilder, SchemaDefinition

__all__ = [
    # Archived filtering
    "INCLUDE_ARCHIVED_ARGUMENT",
    "ArchivalColumn",
    "ArchivedPredicateGenerator",
    "FieldArchivalConfig",
    "IncludeArchivedOption",
    "OmitArchivedPlugin",
    "OmitArchivedStrategy",
    "compile_predicate",
    "find_archival_column",
    "register_include_archived_option",
    # Build
    "ArgumentSpec",
    "BuildContext",
    "FieldAugmentation",
    "FieldKey",
    "FieldScope",
    "FieldStrategy",
    "PredicateRegistry",
    "SchemaBuilder",
    "SchemaDefinition",
    "TypeRegistrationError",
    "TypeRegistry",
    # Execution
    "GraphQLContext",
    "ResolverGenerator",
    "create_schema",
    # Integration
    "build_schema_definition",
    "create_database_schema",
    "create_graphql_app",
    "mount_graphql",
]
