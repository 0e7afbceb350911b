"""
Query builder for collection and row lookups.

Provides SQL fragment composition, identifier quoting, and a ``QueryBuilder``
that accumulates WHERE conditions and can be linked to a parent query so
that filters may reference the parent row's table alias.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

# Valid SQL identifier pattern (alphanumeric and underscore, not starting with digit)
_VALID_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_PLACEHOLDER = "{}"


def validate_sql_identifier(name: str, context: str = "identifier") -> str:
    """
    Validate that a string is a safe SQL identifier.

    Args:
        name: The identifier to validate
        context: Description of what's being validated (for error messages)

    Returns:
        The validated name

    Raises:
        ValueError: If the name contains invalid characters
    """
    if not name:
        raise ValueError(f"SQL {context} cannot be empty")
    if not _VALID_IDENTIFIER_PATTERN.match(name):
        raise ValueError(
            f"Invalid SQL {context} '{name}': must contain only letters, digits, "
            "and underscores, and cannot start with a digit"
        )
    return name


def quote_identifier(name: str) -> str:
    """Quote a validated identifier for use in SQL."""
    return f'"{validate_sql_identifier(name)}"'


# =============================================================================
# SQL Fragments
# =============================================================================


@dataclass(frozen=True)
class SqlFragment:
    """
    A piece of SQL text with its bound parameters.

    Fragments compare by value, so two independently generated predicates
    can be checked for equality.
    """

    text: str
    params: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return self.text


def identifier(*names: str) -> SqlFragment:
    """Quoted (optionally dotted) identifier, e.g. ``identifier("t0", "id")``."""
    return SqlFragment(".".join(quote_identifier(n) for n in names))


def raw(text: str) -> SqlFragment:
    """Trusted SQL text without parameters."""
    return SqlFragment(text)


def value(param: Any) -> SqlFragment:
    """Bound parameter."""
    return SqlFragment("?", (param,))


def fragment(template: str, *parts: SqlFragment) -> SqlFragment:
    """
    Compose a fragment from a template and sub-fragments.

    Each ``{}`` in the template is replaced by the next part; parameters are
    concatenated in order.

    Example:
        fragment("{}.{} IS {}", alias, identifier("is_archived"), raw("false"))
    """
    pieces = template.split(_PLACEHOLDER)
    if len(pieces) - 1 != len(parts):
        raise ValueError(
            f"Fragment template expects {len(pieces) - 1} parts, got {len(parts)}"
        )
    text = pieces[0]
    params: list[Any] = []
    for part, piece in zip(parts, pieces[1:], strict=True):
        text += part.text + piece
        params.extend(part.params)
    return SqlFragment(text, tuple(params))


def join(parts: Iterable[SqlFragment], separator: str) -> SqlFragment:
    """Join fragments with a separator."""
    items = list(parts)
    return SqlFragment(
        separator.join(p.text for p in items),
        tuple(param for p in items for param in p.params),
    )


# =============================================================================
# Query Builder
# =============================================================================


@dataclass
class QueryBuilder:
    """
    Builds a SELECT over one table with accumulated WHERE conditions.

    A builder may be linked to a parent builder. The parent's table is then
    joined on ``parent_join`` (child column, parent column pairs) and the
    parent's own conditions are applied too, so conditions added to the
    child can reference ``parent_query_builder.get_table_alias()``.

    Example:
        posts = QueryBuilder(table_name="posts")
        posts.where_equals("id", 1)
        comments = QueryBuilder(
            table_name="comments",
            parent_query_builder=posts,
            parent_join=[("post_id", "id")],
        )
        comments.where(fragment("{}.{} IS false", comments.get_table_alias(),
                                identifier("is_archived")))
        sql, params = comments.build_select()
    """

    table_name: str
    parent_query_builder: QueryBuilder | None = None
    parent_join: list[tuple[str, str]] = field(default_factory=list)
    conditions: list[SqlFragment] = field(default_factory=list)
    order_by: list[tuple[str, bool]] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate table name on initialization."""
        validate_sql_identifier(self.table_name, "table name")
        for child_col, parent_col in self.parent_join:
            validate_sql_identifier(child_col, "join column")
            validate_sql_identifier(parent_col, "join column")

    @property
    def depth(self) -> int:
        """Number of ancestors above this builder."""
        if self.parent_query_builder is None:
            return 0
        return self.parent_query_builder.depth + 1

    def get_table_alias(self) -> SqlFragment:
        """Quoted alias of this builder's table (``t0`` for a root query)."""
        return identifier(f"t{self.depth}")

    def where(self, condition: SqlFragment) -> QueryBuilder:
        """Add a condition; all conditions are combined with AND."""
        self.conditions.append(condition)
        return self

    def where_equals(self, column: str, param: Any) -> QueryBuilder:
        """Add a ``column = ?`` condition on this builder's table."""
        return self.where(
            fragment("{}.{} = {}", self.get_table_alias(), identifier(column), value(param))
        )

    def add_sort(self, column: str, descending: bool = False) -> QueryBuilder:
        """Add a sort column."""
        validate_sql_identifier(column, "sort column")
        self.order_by.append((column, descending))
        return self

    def set_pagination(self, limit: int | None, offset: int | None = 0) -> QueryBuilder:
        """Set LIMIT/OFFSET (``limit=None`` means unbounded)."""
        self.limit = None if limit is None else max(0, min(limit, 1000))  # Cap at 1000
        self.offset = max(0, offset or 0)
        return self

    def build_where_clause(self) -> SqlFragment:
        """
        Build the WHERE clause from this builder's and the parent's conditions.

        Returns:
            Fragment with the clause (empty text when there are no conditions)
        """
        conditions = list(self.conditions)
        if self.parent_query_builder is not None and self.parent_join:
            conditions.extend(self.parent_query_builder.conditions)
        if not conditions:
            return SqlFragment("")
        return fragment("WHERE {}", join(conditions, " AND "))

    def build_from_clause(self) -> SqlFragment:
        """Build FROM (and the parent JOIN, when linked)."""
        alias = self.get_table_alias()
        clause = fragment("FROM {} AS {}", identifier(self.table_name), alias)
        parent = self.parent_query_builder
        if parent is None or not self.parent_join:
            return clause
        parent_alias = parent.get_table_alias()
        on = join(
            (
                fragment("{}.{} = {}.{}", alias, identifier(c), parent_alias, identifier(p))
                for c, p in self.parent_join
            ),
            " AND ",
        )
        return fragment(
            "{} INNER JOIN {} AS {} ON {}",
            clause,
            identifier(parent.table_name),
            parent_alias,
            on,
        )

    def build_order_clause(self) -> str:
        """Build the ORDER BY clause."""
        if not self.order_by:
            return ""
        alias = self.get_table_alias().text
        order_parts = [
            f"{alias}.{quote_identifier(col)} {'DESC' if desc else 'ASC'}"
            for col, desc in self.order_by
        ]
        return f"ORDER BY {', '.join(order_parts)}"

    def build_select(self) -> tuple[str, list[Any]]:
        """
        Build the complete SELECT query.

        Returns:
            Tuple of (sql, parameters)
        """
        alias = self.get_table_alias()
        from_clause = self.build_from_clause()
        where_clause = self.build_where_clause()

        query_parts = [f"SELECT {alias.text}.*", from_clause.text]
        params: list[Any] = [*from_clause.params]
        if where_clause.text:
            query_parts.append(where_clause.text)
            params.extend(where_clause.params)

        order_clause = self.build_order_clause()
        if order_clause:
            query_parts.append(order_clause)

        if self.limit is not None or self.offset:
            query_parts.append("LIMIT ? OFFSET ?")
            params.extend([-1 if self.limit is None else self.limit, self.offset])

        return " ".join(query_parts), params
