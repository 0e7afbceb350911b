"""
Archived-row filtering for collection fields.

For every collection field whose table has an archival marker column (by
default ``is_archived``), this adds an ``includeArchived`` argument and a
predicate generator that filters rows at query time:

- ``NO``: only rows that are not archived
- ``YES``: all rows
- ``EXCLUSIVELY``: only archived rows
- ``INHERIT``: on a backward relation whose parent table is archivable too,
  all rows when the parent row is archived, otherwise as ``NO``

A boolean marker means "archived" when true. Any other column type is a
nullable marker (e.g. ``archived_at``), archived when not null.

Fields the filter does not apply to are left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from omit_archived.config import OmitArchivedConfig
from omit_archived.graphql.field_scope import (
    ArgumentSpec,
    BuildContext,
    FieldAugmentation,
    FieldScope,
    FieldStrategy,
)
from omit_archived.graphql.include_archived import (
    INCLUDE_ARCHIVED_OPTION_TYPE_NAME,
    IncludeArchivedOption,
    register_include_archived_option,
)
from omit_archived.graphql.registry import TypeRegistry
from omit_archived.logging import get_logger, log_with_context
from omit_archived.runtime.query_builder import (
    QueryBuilder,
    SqlFragment,
    fragment,
    identifier,
    raw,
)
from omit_archived.specs import CatalogSpec, TableSpec, ValueCategory

logger = get_logger("ARCHIVED")

INCLUDE_ARCHIVED_ARGUMENT = "includeArchived"
INCLUDE_ARCHIVED_DESCRIPTION = (
    "Indicates whether archived items should be included in the results or not."
)


# =============================================================================
# Archival columns
# =============================================================================


@dataclass(frozen=True)
class ArchivalColumn:
    """The archival marker column of one table."""

    table_id: int
    column_name: str
    value_category: ValueCategory

    @property
    def not_archived(self) -> SqlFragment:
        """Literal an unarchived row's marker ``IS``: ``false`` or ``null``."""
        if self.value_category == ValueCategory.BOOLEAN:
            return raw("false")
        return raw("null")

    def reference(self, alias: SqlFragment) -> SqlFragment:
        """``<alias>."<column>"``"""
        return fragment("{}.{}", alias, identifier(self.column_name))


def find_archival_column(
    catalog: CatalogSpec, table: TableSpec | None, column_name: str
) -> ArchivalColumn | None:
    """Look up a table's archival marker column by its conventional name."""
    if table is None:
        return None
    column = catalog.get_column(table.id, column_name)
    if column is None:
        return None
    return ArchivalColumn(
        table_id=table.id,
        column_name=column.name,
        value_category=column.value_category,
    )


@dataclass(frozen=True)
class FieldArchivalConfig:
    """
    Build-time decision for one collection field.

    Attributes:
        column: Archival column of the field's table
        parent_column: Archival column of the owning type's table, if any
        is_backward_relation: The field walks from a parent row to its children
    """

    column: ArchivalColumn
    parent_column: ArchivalColumn | None = None
    is_backward_relation: bool = False

    @property
    def capable_of_inherit(self) -> bool:
        return self.is_backward_relation and self.parent_column is not None

    @property
    def default_option(self) -> IncludeArchivedOption:
        if self.capable_of_inherit:
            return IncludeArchivedOption.INHERIT
        return IncludeArchivedOption.NO


# =============================================================================
# Predicates
# =============================================================================


def compile_predicate(
    config: FieldArchivalConfig,
    option: IncludeArchivedOption,
    query_builder: QueryBuilder,
) -> SqlFragment | None:
    """
    Build the WHERE condition for an option, or None when no filter applies.

    ``INHERIT`` needs an inherit-capable field and a parent query builder;
    otherwise it is the same as ``NO``. Only the immediate parent is consulted.
    """
    child = config.column.reference(query_builder.get_table_alias())
    not_archived = config.column.not_archived
    parent_builder = query_builder.parent_query_builder

    if (
        option == IncludeArchivedOption.INHERIT
        and config.parent_column is not None
        and config.capable_of_inherit
        and parent_builder is not None
    ):
        parent = config.parent_column.reference(parent_builder.get_table_alias())
        return fragment(
            "({} IS NOT {} OR {} IS {})",
            parent,
            config.parent_column.not_archived,
            child,
            not_archived,
        )
    if option in (IncludeArchivedOption.NO, IncludeArchivedOption.INHERIT):
        return fragment("{} IS {}", child, not_archived)
    if option == IncludeArchivedOption.EXCLUSIVELY:
        return fragment("{} IS NOT {}", child, not_archived)
    return None


@dataclass(frozen=True)
class ArchivedPredicateGenerator:
    """
    Query-time filter for one field.

    Reads ``includeArchived`` from the field's arguments and appends the
    matching condition to the field's query builder. An explicit null uses
    the field's default. An unrecognised value is logged and treated as
    ``NO``, so archived rows stay hidden.
    """

    field: str
    config: FieldArchivalConfig

    def resolve_option(self, arguments: Mapping[str, Any]) -> IncludeArchivedOption:
        raw_value = arguments.get(INCLUDE_ARCHIVED_ARGUMENT)
        if raw_value is None:
            return self.config.default_option
        option = IncludeArchivedOption.parse(raw_value)
        if option is None:
            log_with_context(
                logger,
                logging.WARNING,
                f"Unrecognised {INCLUDE_ARCHIVED_ARGUMENT} value on {self.field}; "
                "excluding archived rows",
                value=str(raw_value),
            )
            return IncludeArchivedOption.NO
        return option

    def __call__(self, arguments: Mapping[str, Any], query_builder: QueryBuilder) -> None:
        option = self.resolve_option(arguments)
        condition = compile_predicate(self.config, option, query_builder)
        if condition is not None:
            query_builder.where(condition)


# =============================================================================
# Field strategy and plugin
# =============================================================================


class OmitArchivedStrategy:
    """Adds ``includeArchived`` to collection fields over archivable tables."""

    name = "PgOmitArchived"

    def __init__(self, config: OmitArchivedConfig | None = None) -> None:
        self.config = config or OmitArchivedConfig()

    def field_config(self, context: BuildContext, scope: FieldScope) -> FieldArchivalConfig | None:
        """Decide whether the filter applies to a field, and how."""
        table = scope.table
        if not scope.is_collection or table is None or not table.is_queryable:
            return None

        column_name = self.config.archived_column_name
        column = find_archival_column(context.catalog, table, column_name)
        if column is None:
            return None

        parent_column = (
            find_archival_column(context.catalog, scope.parent_table, column_name)
            if scope.is_backward_relation
            else None
        )
        return FieldArchivalConfig(
            column=column,
            parent_column=parent_column,
            is_backward_relation=scope.is_backward_relation,
        )

    def augment(
        self,
        arguments: Mapping[str, ArgumentSpec],
        context: BuildContext,
        scope: FieldScope,
    ) -> FieldAugmentation | None:
        if INCLUDE_ARCHIVED_ARGUMENT in arguments:
            return None
        field_config = self.field_config(context, scope)
        if field_config is None:
            return None

        option_type = context.get_type_by_name(INCLUDE_ARCHIVED_OPTION_TYPE_NAME)
        if option_type is None:
            option_type = register_include_archived_option(context.types)

        return FieldAugmentation(
            arguments={
                INCLUDE_ARCHIVED_ARGUMENT: ArgumentSpec(
                    type=option_type | None,
                    default=field_config.default_option,
                    description=INCLUDE_ARCHIVED_DESCRIPTION,
                )
            },
            predicate_generator=ArchivedPredicateGenerator(
                field=str(scope.key), config=field_config
            ),
            provenance=(
                f"Adding {INCLUDE_ARCHIVED_ARGUMENT} argument to connection field "
                f"'{scope.field_name}' of '{scope.type_name}'"
            ),
        )


class OmitArchivedPlugin:
    """
    Registers ``IncludeArchivedOption`` and the archived-row field strategy.

    Example:
        builder = SchemaBuilder(catalog, plugins=[OmitArchivedPlugin()])
        definition = builder.build()
    """

    display_name = "PgOmitArchivedPlugin"

    def __init__(self, config: OmitArchivedConfig | None = None) -> None:
        self.config = config or OmitArchivedConfig()
        self._strategy = OmitArchivedStrategy(self.config)

    def register_types(self, types: TypeRegistry) -> None:
        register_include_archived_option(types)

    def field_strategies(self) -> list[FieldStrategy]:
        return [self._strategy]
