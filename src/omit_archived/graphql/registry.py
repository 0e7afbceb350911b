"""
Build-phase registries.

- ``TypeRegistry``: named GraphQL types (enums, etc.) contributed by plugins
- ``PredicateRegistry``: per-field query-time predicate generators

Both are populated while the schema is built and only read afterwards, so
concurrent requests can share them without locking.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from omit_archived.logging import get_logger
from omit_archived.runtime.query_builder import QueryBuilder

if TYPE_CHECKING:
    from omit_archived.graphql.field_scope import FieldKey

logger = get_logger("BUILD")

#: Called once per executed query with the field's resolved arguments
#: (keyed by GraphQL argument name) and the field's query builder.
PredicateGenerator = Callable[[Mapping[str, Any], QueryBuilder], None]


class TypeRegistrationError(Exception):
    """A different type was registered under a name that is already taken."""


@dataclass
class RegisteredType:
    """A named type and the scope flags it was registered with."""

    name: str
    type: Any
    scope: dict[str, Any] = field(default_factory=dict)


@dataclass
class TypeRegistry:
    """
    Registry of named schema types.

    Registering the same type object under the same name again is a no-op,
    so plugins can register their types on every build.
    """

    _types: dict[str, RegisteredType] = field(default_factory=dict)

    def register(self, name: str, type_: Any, scope: dict[str, Any] | None = None) -> Any:
        """
        Register a type under a name.

        Returns:
            The registered type

        Raises:
            TypeRegistrationError: If another type already uses the name
        """
        existing = self._types.get(name)
        if existing is not None:
            if existing.type is not type_:
                raise TypeRegistrationError(
                    f"Type name '{name}' is already registered to {existing.type!r}"
                )
            return existing.type

        self._types[name] = RegisteredType(name=name, type=type_, scope=dict(scope or {}))
        logger.debug("Registered type %s", name)
        return type_

    def get_type_by_name(self, name: str) -> Any | None:
        """Get a registered type by name."""
        registered = self._types.get(name)
        return registered.type if registered else None

    def get_scope(self, name: str) -> dict[str, Any]:
        """Get the scope flags a type was registered with."""
        registered = self._types.get(name)
        return dict(registered.scope) if registered else {}

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    @property
    def names(self) -> list[str]:
        """Registered type names, in registration order."""
        return list(self._types)


@dataclass
class PredicateRegistry:
    """
    Predicate generators keyed by field.

    Generators for a field run in registration order and each may append
    conditions to the field's query builder.
    """

    _generators: dict[FieldKey, list[PredicateGenerator]] = field(default_factory=dict)

    def add(self, key: FieldKey, generator: PredicateGenerator) -> None:
        """Register a generator for a field."""
        self._generators.setdefault(key, []).append(generator)

    def generators_for(self, key: FieldKey) -> tuple[PredicateGenerator, ...]:
        """Get the generators registered for a field."""
        return tuple(self._generators.get(key, ()))

    def apply(self, key: FieldKey, arguments: Mapping[str, Any], builder: QueryBuilder) -> None:
        """Run every generator for a field against a query builder."""
        for generator in self._generators.get(key, ()):
            generator(arguments, builder)

    def __iter__(self) -> Iterator[FieldKey]:
        return iter(self._generators)

    def __len__(self) -> int:
        return len(self._generators)
