"""
Resolver Generator - turn a SchemaDefinition into a Strawberry schema.

Object types are created dynamically (one Strawberry type per table). Each
non-column field gets a resolver that:
- builds a ``QueryBuilder`` for the field occurrence (linked to a parent
  builder for backward relations)
- runs the predicate generators registered for the field
- executes the query against the request's database
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from typing import Annotated, Any, Union, get_args, get_origin

import strawberry

from omit_archived.graphql.context import get_graphql_context
from omit_archived.graphql.field_scope import ArgumentSpec, FieldKey
from omit_archived.graphql.inflection import camel_case, snake_case
from omit_archived.graphql.schema_builder import (
    QUERY_TYPE_NAME,
    FieldDefinition,
    FieldKind,
    ObjectTypeDefinition,
    SchemaDefinition,
    attribute_name,
    python_type_for_column,
)
from omit_archived.logging import get_logger
from omit_archived.runtime.query_builder import QueryBuilder
from omit_archived.specs import BOOLEAN_CATEGORY, ColumnSpec, TableSpec

logger = get_logger("QUERY")

#: Resolver body: (root object, info, arguments keyed by GraphQL name) -> result
ResolverImpl = Callable[[Any, strawberry.Info, dict[str, Any]], Any]


class ResolverGenerator:
    """
    Generate an executable Strawberry schema from a ``SchemaDefinition``.

    Example:
        definition = SchemaBuilder(catalog, plugins=[OmitArchivedPlugin()]).build()
        schema = ResolverGenerator(definition).create_schema()
        schema.execute_sync(query, context_value=GraphQLContext(db=db))
    """

    def __init__(self, definition: SchemaDefinition) -> None:
        self.definition = definition
        self._classes: dict[str, type] = {}

    def create_schema(self) -> strawberry.Schema:
        """Create the Strawberry schema."""
        object_types = [
            t for name, t in self.definition.object_types.items() if name != QUERY_TYPE_NAME
        ]

        # Declare every class with its column fields first so relation
        # fields can reference any type, then add relations and decorate.
        for object_type in object_types:
            self._classes[object_type.name] = self._declare_class(object_type)
        for object_type in object_types:
            self._add_relation_fields(self._classes[object_type.name], object_type)

        query_cls = type(QUERY_TYPE_NAME, (), {"__annotations__": {}})
        self._add_relation_fields(query_cls, self.definition.query)

        for object_type in object_types:
            strawberry.type(
                self._classes[object_type.name],
                name=object_type.name,
                description=object_type.description,
            )
        query = strawberry.type(
            query_cls, name=QUERY_TYPE_NAME, description=self.definition.query.description
        )
        return strawberry.Schema(query=query)

    # =========================================================================
    # Class construction
    # =========================================================================

    def _declare_class(self, object_type: ObjectTypeDefinition) -> type:
        annotations: dict[str, Any] = {}
        namespace: dict[str, Any] = {"__annotations__": annotations}
        for definition in object_type.fields.values():
            if definition.kind != FieldKind.COLUMN or definition.column is None:
                continue
            column = definition.column
            attr = attribute_name(column.name)
            py_type: Any = python_type_for_column(column)
            if not column.not_null and not column.is_primary_key:
                py_type = py_type | None
            annotations[attr] = py_type
            namespace[attr] = strawberry.field(name=definition.name, description=definition.description)
        return type(object_type.name, (), namespace)

    def _add_relation_fields(self, cls: type, object_type: ObjectTypeDefinition) -> None:
        for definition in object_type.fields.values():
            if definition.kind == FieldKind.COLUMN:
                continue
            return_type = self._return_type(definition)
            attr = attribute_name(snake_case(definition.name))
            while attr in cls.__annotations__:
                attr += "_"
            cls.__annotations__[attr] = return_type
            setattr(
                cls,
                attr,
                strawberry.field(
                    resolver=self._make_resolver(
                        self._resolver_impl(object_type, definition),
                        definition.arguments,
                        return_type,
                    ),
                    name=definition.name,
                    description=definition.description,
                    graphql_type=return_type,
                ),
            )

    def _return_type(self, definition: FieldDefinition) -> Any:
        assert definition.table is not None
        target = self._class_for_table(definition.table)
        if definition.is_collection:
            return list[target]  # type: ignore[valid-type]
        return target | None

    def _class_for_table(self, table: TableSpec) -> type:
        object_type = self.definition.type_for_table(table.id)
        assert object_type is not None, f"No object type for table {table.name}"
        return self._classes[object_type.name]

    @staticmethod
    def _make_resolver(
        impl: ResolverImpl,
        arguments: dict[str, ArgumentSpec],
        return_type: Any,
    ) -> Callable[..., Any]:
        """Wrap a resolver body in a function whose signature declares the arguments."""
        python_names = {name: snake_case(name) for name in arguments}

        def resolve(*, root: Any = None, info: strawberry.Info, **kwargs: Any) -> Any:
            args = {name: kwargs.get(py_name) for name, py_name in python_names.items()}
            return impl(root, info, args)

        parameters = [
            inspect.Parameter("root", inspect.Parameter.KEYWORD_ONLY, default=None),
            inspect.Parameter("info", inspect.Parameter.KEYWORD_ONLY, annotation=strawberry.Info),
        ]
        for name, spec in arguments.items():
            annotation: Any = spec.type
            if spec.description:
                annotation = Annotated[spec.type, strawberry.argument(description=spec.description)]
            default = (
                spec.default
                if spec.default is not None or _is_optional(spec.type)
                else inspect.Parameter.empty
            )
            parameters.append(
                inspect.Parameter(
                    python_names[name],
                    inspect.Parameter.KEYWORD_ONLY,
                    default=default,
                    annotation=annotation,
                )
            )

        resolve.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
            parameters, return_annotation=return_type
        )
        resolve.__annotations__ = {
            **{p.name: p.annotation for p in parameters[1:]},
            "return": return_type,
        }
        return resolve

    # =========================================================================
    # Resolver bodies
    # =========================================================================

    def _resolver_impl(
        self, owner: ObjectTypeDefinition, definition: FieldDefinition
    ) -> ResolverImpl:
        key = FieldKey(owner.name, definition.name)
        if definition.kind == FieldKind.ROW_BY_KEY:
            return self._row_by_key_impl(key, definition)
        if definition.kind == FieldKind.COLLECTION:
            return self._collection_impl(key, definition)
        if definition.kind == FieldKind.FORWARD_RELATION:
            return self._forward_relation_impl(key, owner, definition)
        return self._backward_relation_impl(key, owner, definition)

    def _row_by_key_impl(self, key: FieldKey, definition: FieldDefinition) -> ResolverImpl:
        table = definition.table
        assert table is not None
        (pk,) = self.definition.catalog.get_primary_key(table.id)
        arg_name = camel_case(pk.name)

        def impl(root: Any, info: strawberry.Info, args: dict[str, Any]) -> Any:
            builder = QueryBuilder(table_name=table.name)
            builder.where_equals(pk.name, args[arg_name])
            self.definition.predicates.apply(key, args, builder)
            row = get_graphql_context(info.context).db.fetch_one(builder)
            return self._to_object(table, row) if row else None

        return impl

    def _collection_impl(self, key: FieldKey, definition: FieldDefinition) -> ResolverImpl:
        table = definition.table
        assert table is not None

        def impl(root: Any, info: strawberry.Info, args: dict[str, Any]) -> Any:
            builder = QueryBuilder(table_name=table.name)
            self._prepare_collection(builder, table, args)
            self.definition.predicates.apply(key, args, builder)
            rows = get_graphql_context(info.context).db.fetch_all(builder)
            return [self._to_object(table, row) for row in rows]

        return impl

    def _forward_relation_impl(
        self, key: FieldKey, owner: ObjectTypeDefinition, definition: FieldDefinition
    ) -> ResolverImpl:
        parent = definition.table
        fk = definition.foreign_key
        assert parent is not None and fk is not None

        def impl(root: Any, info: strawberry.Info, args: dict[str, Any]) -> Any:
            values = [getattr(root, attribute_name(c)) for c in fk.columns]
            if any(v is None for v in values):
                return None
            builder = QueryBuilder(table_name=parent.name)
            for column, value in zip(fk.foreign_columns, values, strict=True):
                builder.where_equals(column, value)
            self.definition.predicates.apply(key, args, builder)
            row = get_graphql_context(info.context).db.fetch_one(builder)
            return self._to_object(parent, row) if row else None

        return impl

    def _backward_relation_impl(
        self, key: FieldKey, owner: ObjectTypeDefinition, definition: FieldDefinition
    ) -> ResolverImpl:
        child = definition.table
        parent = owner.table
        fk = definition.foreign_key
        assert child is not None and parent is not None and fk is not None

        def impl(root: Any, info: strawberry.Info, args: dict[str, Any]) -> Any:
            parent_builder = QueryBuilder(table_name=parent.name)
            for column in fk.foreign_columns:
                parent_builder.where_equals(column, getattr(root, attribute_name(column)))
            builder = QueryBuilder(
                table_name=child.name,
                parent_query_builder=parent_builder,
                parent_join=list(zip(fk.columns, fk.foreign_columns, strict=True)),
            )
            self._prepare_collection(builder, child, args)
            self.definition.predicates.apply(key, args, builder)
            rows = get_graphql_context(info.context).db.fetch_all(builder)
            return [self._to_object(child, row) for row in rows]

        return impl

    def _prepare_collection(
        self, builder: QueryBuilder, table: TableSpec, args: dict[str, Any]
    ) -> None:
        for pk in self.definition.catalog.get_primary_key(table.id):
            builder.add_sort(pk.name)
        builder.set_pagination(args.get("first"), args.get("offset"))

    def _to_object(self, table: TableSpec, row: dict[str, Any]) -> Any:
        cls = self._class_for_table(table)
        columns = self.definition.catalog.get_columns(table.id)
        return cls(**{attribute_name(c.name): _convert_value(c, row.get(c.name)) for c in columns})


def _convert_value(column: ColumnSpec, value: Any) -> Any:
    """SQLite stores booleans as integers."""
    if value is not None and column.category == BOOLEAN_CATEGORY:
        return bool(value)
    return value


def _is_optional(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return origin in (Union, types.UnionType) and type(None) in get_args(annotation)


def create_schema(definition: SchemaDefinition) -> strawberry.Schema:
    """Create a Strawberry schema from a built definition."""
    schema = ResolverGenerator(definition).create_schema()
    logger.info("Created GraphQL schema with %d object types", len(definition.object_types) - 1)
    return schema
