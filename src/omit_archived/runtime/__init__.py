"""
Runtime layer: SQL query building, database access and catalog introspection.
"""

from omit_archived.runtime.database import DatabaseManager
from omit_archived.runtime.introspection import introspect_catalog
from omit_archived.runtime.query_builder import (
    QueryBuilder,
    SqlFragment,
    fragment,
    identifier,
    quote_identifier,
    raw,
    validate_sql_identifier,
)

__all__ = [
    "DatabaseManager",
    "QueryBuilder",
    "SqlFragment",
    "fragment",
    "identifier",
    "introspect_catalog",
    "quote_identifier",
    "raw",
    "validate_sql_identifier",
]
