"""
Typed structures passed to field strategies during schema construction.

The build orchestrator calls each ``FieldStrategy`` once per field with
the field's current arguments, the shared ``BuildContext`` and the field's
``FieldScope``. A strategy returns ``None`` to leave the field unchanged, or a
``FieldAugmentation`` describing the arguments and predicate generator to add.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from omit_archived.graphql.registry import PredicateGenerator, TypeRegistry
from omit_archived.logging import get_logger
from omit_archived.specs import CatalogSpec, ForeignKeySpec, TableSpec

logger = get_logger("BUILD")


@dataclass(frozen=True, order=True)
class FieldKey:
    """Identity of a field: owning type name and GraphQL field name."""

    type_name: str
    field_name: str

    def __str__(self) -> str:
        return f"{self.type_name}.{self.field_name}"


@dataclass(frozen=True)
class ArgumentSpec:
    """
    A field argument.

    Attributes:
        type: Python type annotation of the argument
        default: Default value (None means no default)
        description: Argument documentation
    """

    type: Any
    default: Any = None
    description: str | None = None


@dataclass(frozen=True)
class FieldScope:
    """
    Metadata about the field being built.

    Attributes:
        key: Field identity
        is_collection: The field returns a list of rows
        is_backward_relation: The field walks a foreign key from the parent
            (referenced) row to its child rows
        table: Table the field's rows come from (None when not table-backed)
        parent_table: Table backing the field's owning type (None on Query)
        foreign_key: Foreign key traversed by a relation field
    """

    key: FieldKey
    is_collection: bool = False
    is_backward_relation: bool = False
    table: TableSpec | None = None
    parent_table: TableSpec | None = None
    foreign_key: ForeignKeySpec | None = None

    @property
    def type_name(self) -> str:
        return self.key.type_name

    @property
    def field_name(self) -> str:
        return self.key.field_name


@dataclass
class BuildContext:
    """Shared state for one schema build."""

    catalog: CatalogSpec
    types: TypeRegistry

    def get_type_by_name(self, name: str) -> Any | None:
        return self.types.get_type_by_name(name)


@dataclass(frozen=True)
class FieldAugmentation:
    """Arguments and query-time behaviour a strategy adds to one field."""

    arguments: dict[str, ArgumentSpec] = field(default_factory=dict)
    predicate_generator: PredicateGenerator | None = None
    provenance: str = ""


class FieldStrategy(Protocol):
    """Decides, per field, whether and how to augment it."""

    name: str

    def augment(
        self,
        arguments: Mapping[str, ArgumentSpec],
        context: BuildContext,
        scope: FieldScope,
    ) -> FieldAugmentation | None: ...


def extend_arguments(
    arguments: Mapping[str, ArgumentSpec],
    additions: Mapping[str, ArgumentSpec],
    provenance: str = "",
) -> dict[str, ArgumentSpec]:
    """
    Return a new argument mapping with ``additions`` appended.

    The input mapping is left untouched.

    Raises:
        ValueError: If an added argument name already exists
    """
    clashes = sorted(set(arguments) & set(additions))
    if clashes:
        raise ValueError(
            f"Cannot add argument(s) {', '.join(clashes)}: already defined"
            + (f" ({provenance})" if provenance else "")
        )
    if provenance:
        logger.debug(provenance)
    return {**arguments, **additions}
