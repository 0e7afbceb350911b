"""
Schema Builder - derive a GraphQL schema definition from a CatalogSpec.

Walks the catalog once and declares:
- one object type per queryable table, with a field per column
- root ``Query`` fields: ``<row>(<pk>)`` lookups and ``all<Rows>`` collections
- forward (to-one) relation fields on child types
- backward (to-many) relation fields on parent types

Each non-column field's arguments are passed through the field strategies
contributed by plugins, in plugin order. A strategy may extend the
arguments and register a query-time predicate generator for the field.

The result is a plain ``SchemaDefinition``; ``ResolverGenerator`` turns it
into an executable Strawberry schema.
"""

from __future__ import annotations

import keyword
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from omit_archived.graphql.field_scope import (
    ArgumentSpec,
    BuildContext,
    FieldKey,
    FieldScope,
    FieldStrategy,
    extend_arguments,
)
from omit_archived.graphql.inflection import (
    camel_case,
    pascal_case,
    singularize,
    type_name_for_table,
)
from omit_archived.graphql.registry import PredicateRegistry, TypeRegistry
from omit_archived.logging import get_logger
from omit_archived.specs import BOOLEAN_CATEGORY, CatalogSpec, ColumnSpec, ForeignKeySpec, TableSpec

logger = get_logger("BUILD")

QUERY_TYPE_NAME = "Query"


class SchemaPlugin(Protocol):
    """Contributes named types and field strategies to a build."""

    display_name: str

    def register_types(self, types: TypeRegistry) -> None: ...

    def field_strategies(self) -> list[FieldStrategy]: ...


class FieldKind(StrEnum):
    """What a field resolves to."""

    COLUMN = "column"
    ROW_BY_KEY = "row_by_key"
    COLLECTION = "collection"
    FORWARD_RELATION = "forward_relation"
    BACKWARD_RELATION = "backward_relation"


@dataclass
class FieldDefinition:
    """
    A field of an object type.

    Attributes:
        name: GraphQL field name
        kind: What the field resolves to
        table: Table the field's rows come from (None for column fields)
        column: Backing column (column fields only)
        foreign_key: Traversed foreign key (relation fields only)
        arguments: Arguments keyed by GraphQL name
        description: Field documentation
    """

    name: str
    kind: FieldKind
    table: TableSpec | None = None
    column: ColumnSpec | None = None
    foreign_key: ForeignKeySpec | None = None
    arguments: dict[str, ArgumentSpec] = field(default_factory=dict)
    description: str | None = None

    @property
    def is_collection(self) -> bool:
        return self.kind in (FieldKind.COLLECTION, FieldKind.BACKWARD_RELATION)


@dataclass
class ObjectTypeDefinition:
    """An object type and its fields (in declaration order)."""

    name: str
    table: TableSpec | None = None
    description: str | None = None
    fields: dict[str, FieldDefinition] = field(default_factory=dict)

    def add_field(self, definition: FieldDefinition) -> bool:
        """Add a field unless the name is taken; returns whether it was added."""
        if definition.name in self.fields:
            logger.warning(
                "Skipping field %s.%s: name already in use", self.name, definition.name
            )
            return False
        self.fields[definition.name] = definition
        return True


@dataclass
class SchemaDefinition:
    """Result of a build: object types plus the registries plugins filled."""

    catalog: CatalogSpec
    object_types: dict[str, ObjectTypeDefinition]
    types: TypeRegistry
    predicates: PredicateRegistry

    @property
    def query(self) -> ObjectTypeDefinition:
        return self.object_types[QUERY_TYPE_NAME]

    def get_field(self, type_name: str, field_name: str) -> FieldDefinition | None:
        object_type = self.object_types.get(type_name)
        return object_type.fields.get(field_name) if object_type else None

    def type_for_table(self, table_id: int) -> ObjectTypeDefinition | None:
        for object_type in self.object_types.values():
            if object_type.table is not None and object_type.table.id == table_id:
                return object_type
        return None


def python_type_for_column(column: ColumnSpec) -> type:
    """Python scalar type for a column's values."""
    if column.category == BOOLEAN_CATEGORY:
        return bool
    if column.category == "N":
        return int if "INT" in column.type_name.upper() else float
    return str


def attribute_name(column_name: str) -> str:
    """Python attribute name for a column (keywords get a trailing underscore)."""
    return f"{column_name}_" if keyword.iskeyword(column_name) else column_name


class SchemaBuilder:
    """
    Build a ``SchemaDefinition`` from a catalog.

    Example:
        builder = SchemaBuilder(catalog, plugins=[OmitArchivedPlugin()])
        definition = builder.build()
        definition.get_field("Post", "comments").arguments["includeArchived"]
    """

    def __init__(
        self,
        catalog: CatalogSpec,
        plugins: Sequence[SchemaPlugin] = (),
        types: TypeRegistry | None = None,
    ) -> None:
        """
        Initialize the schema builder.

        Args:
            catalog: Catalog to build from
            plugins: Plugins, applied in order
            types: Type registry to register into (a fresh one by default)
        """
        self.catalog = catalog
        self.plugins = list(plugins)
        self.types = types if types is not None else TypeRegistry()

    @property
    def strategies(self) -> list[FieldStrategy]:
        return [s for plugin in self.plugins for s in plugin.field_strategies()]

    def build(self) -> SchemaDefinition:
        """
        Build the schema definition.

        Returns:
            SchemaDefinition with all object types and registered predicates
        """
        for plugin in self.plugins:
            plugin.register_types(self.types)

        context = BuildContext(catalog=self.catalog, types=self.types)
        predicates = PredicateRegistry()
        object_types = self._declare_types()
        strategies = self.strategies

        augmented = 0
        for object_type in object_types.values():
            for definition in object_type.fields.values():
                if definition.kind == FieldKind.COLUMN:
                    continue
                scope = FieldScope(
                    key=FieldKey(object_type.name, definition.name),
                    is_collection=definition.is_collection,
                    is_backward_relation=definition.kind == FieldKind.BACKWARD_RELATION,
                    table=definition.table,
                    parent_table=object_type.table,
                    foreign_key=definition.foreign_key,
                )
                for strategy in strategies:
                    augmentation = strategy.augment(definition.arguments, context, scope)
                    if augmentation is None:
                        continue
                    definition.arguments = extend_arguments(
                        definition.arguments, augmentation.arguments, augmentation.provenance
                    )
                    if augmentation.predicate_generator is not None:
                        predicates.add(scope.key, augmentation.predicate_generator)
                    augmented += 1

        logger.info(
            "Built schema: %d object types, %d field augmentations (%s)",
            len(object_types) - 1,
            augmented,
            ", ".join(p.display_name for p in self.plugins) or "no plugins",
        )
        return SchemaDefinition(
            catalog=self.catalog,
            object_types=object_types,
            types=self.types,
            predicates=predicates,
        )

    # =========================================================================
    # Type declaration
    # =========================================================================

    def _declare_types(self) -> dict[str, ObjectTypeDefinition]:
        tables = [t for t in self.catalog.tables if t.is_queryable]
        query = ObjectTypeDefinition(name=QUERY_TYPE_NAME, description="The root query type.")
        object_types: dict[str, ObjectTypeDefinition] = {}
        by_table: dict[int, ObjectTypeDefinition] = {}

        for table in tables:
            name = type_name_for_table(table.name)
            if name in object_types or name == QUERY_TYPE_NAME:
                logger.warning("Skipping table %s: type name %s already in use", table.name, name)
                continue
            object_type = ObjectTypeDefinition(
                name=name, table=table, description=table.description
            )
            for column in self.catalog.get_columns(table.id):
                object_type.add_field(
                    FieldDefinition(name=camel_case(column.name), kind=FieldKind.COLUMN, column=column)
                )
            object_types[name] = object_type
            by_table[table.id] = object_type

        for table_id, object_type in by_table.items():
            self._declare_root_fields(query, object_type)
            for fk in self.catalog.get_foreign_keys(table_id):
                parent_type = by_table.get(fk.foreign_table_id)
                if parent_type is not None:
                    self._declare_relation_fields(object_type, parent_type, fk)

        return {QUERY_TYPE_NAME: query, **object_types}

    def _declare_root_fields(
        self, query: ObjectTypeDefinition, object_type: ObjectTypeDefinition
    ) -> None:
        table = object_type.table
        assert table is not None
        primary_key = self.catalog.get_primary_key(table.id)
        if len(primary_key) == 1:
            pk = primary_key[0]
            query.add_field(
                FieldDefinition(
                    name=camel_case(singularize(table.name)),
                    kind=FieldKind.ROW_BY_KEY,
                    table=table,
                    arguments={camel_case(pk.name): ArgumentSpec(type=python_type_for_column(pk))},
                    description=f"Reads a single `{object_type.name}` by its {pk.name}.",
                )
            )
        query.add_field(
            FieldDefinition(
                name=f"all{pascal_case(table.name)}",
                kind=FieldKind.COLLECTION,
                table=table,
                arguments=_pagination_arguments(),
                description=f"Reads a set of `{object_type.name}`.",
            )
        )

    def _declare_relation_fields(
        self,
        child_type: ObjectTypeDefinition,
        parent_type: ObjectTypeDefinition,
        fk: ForeignKeySpec,
    ) -> None:
        child = child_type.table
        parent = parent_type.table
        assert child is not None and parent is not None

        if len(fk.columns) == 1 and fk.columns[0].endswith("_id"):
            forward_name = camel_case(fk.columns[0][: -len("_id")])
        else:
            forward_name = (
                camel_case(singularize(parent.name))
                + "By"
                + "And".join(pascal_case(c) for c in fk.columns)
            )
        child_type.add_field(
            FieldDefinition(
                name=forward_name,
                kind=FieldKind.FORWARD_RELATION,
                table=parent,
                foreign_key=fk,
                description=f"Reads a single `{parent_type.name}` related to this `{child_type.name}`.",
            )
        )

        siblings = [
            k
            for k in self.catalog.get_foreign_keys(child.id)
            if k.foreign_table_id == parent.id
        ]
        backward_name = camel_case(child.name)
        if len(siblings) > 1:
            backward_name += "By" + "And".join(pascal_case(c) for c in fk.columns)
        parent_type.add_field(
            FieldDefinition(
                name=backward_name,
                kind=FieldKind.BACKWARD_RELATION,
                table=child,
                foreign_key=fk,
                arguments=_pagination_arguments(),
                description=f"Reads and enables pagination through a set of `{child_type.name}`.",
            )
        )


def _pagination_arguments() -> dict[str, ArgumentSpec]:
    return {
        "first": ArgumentSpec(type=int | None, description="Only read the first `n` values of the set."),
        "offset": ArgumentSpec(type=int | None, description="Skip the first `n` values of the set."),
    }
