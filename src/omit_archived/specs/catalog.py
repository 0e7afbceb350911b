"""
Catalog metadata types.

Describes the introspected relational schema: tables, columns and foreign
keys. These are the metadata the GraphQL layer is built from.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# =============================================================================
# Value Categories
# =============================================================================

#: Category code for boolean columns (matches PostgreSQL ``typcategory``).
BOOLEAN_CATEGORY = "B"


class ValueCategory(StrEnum):
    """How an archival marker column encodes "archived"."""

    BOOLEAN = "boolean"  # true = archived
    NULLABLE_MARKER = "nullable_marker"  # non-null (e.g. a timestamp) = archived

    @classmethod
    def from_code(cls, code: str | None) -> "ValueCategory":
        """Classify a catalog category code."""
        if code == BOOLEAN_CATEGORY:
            return cls.BOOLEAN
        return cls.NULLABLE_MARKER


# =============================================================================
# Tables and Columns
# =============================================================================


class TableKind(StrEnum):
    """Kinds of relations the catalog knows about."""

    TABLE = "table"
    VIEW = "view"
    COMPOSITE = "composite"


class ColumnSpec(BaseModel):
    """
    Column of a table.

    Attributes:
        table_id: Owning table identifier
        name: Column name
        type_name: Declared SQL type (e.g. "BOOLEAN", "TIMESTAMP")
        category: Single-letter value category code ("B" = boolean)
        not_null: Whether the column has a NOT NULL constraint
        is_primary_key: Whether the column is (part of) the primary key
    """

    table_id: int = Field(description="Owning table identifier")
    name: str = Field(description="Column name")
    type_name: str = Field(default="", description="Declared SQL type")
    category: str = Field(default="S", description="Value category code")
    not_null: bool = Field(default=False, description="NOT NULL constraint")
    is_primary_key: bool = Field(default=False, description="Primary key column")

    model_config = ConfigDict(frozen=True)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Category codes are a single upper-case letter."""
        if len(v) != 1 or not v.isupper():
            raise ValueError(f"Category code '{v}' must be a single upper-case letter")
        return v

    @property
    def value_category(self) -> ValueCategory:
        return ValueCategory.from_code(self.category)


class TableSpec(BaseModel):
    """
    Table (or view) in the catalog.

    A table without a namespace is not a normal queryable relation (for
    example a composite type) and never gets collection fields.
    """

    id: int = Field(description="Table identifier")
    name: str = Field(description="Table name")
    namespace: str | None = Field(default=None, description="Schema the table lives in")
    kind: TableKind = Field(default=TableKind.TABLE, description="Relation kind")
    description: str | None = Field(default=None, description="Table comment")

    model_config = ConfigDict(frozen=True)

    @property
    def is_queryable(self) -> bool:
        """Whether rows can be selected from this relation."""
        return bool(self.namespace) and self.kind != TableKind.COMPOSITE


class ForeignKeySpec(BaseModel):
    """
    Foreign key constraint from a child table to a parent table.

    Example:
        comments.post_id -> posts.id:
        ForeignKeySpec(table_id=2, foreign_table_id=1,
                       columns=["post_id"], foreign_columns=["id"])
    """

    table_id: int = Field(description="Child (referencing) table")
    foreign_table_id: int = Field(description="Parent (referenced) table")
    columns: list[str] = Field(description="Referencing columns on the child")
    foreign_columns: list[str] = Field(description="Referenced columns on the parent")

    model_config = ConfigDict(frozen=True)

    @field_validator("foreign_columns")
    @classmethod
    def validate_column_count(cls, v: list[str], info: ValidationInfo) -> list[str]:
        """Both sides of the key must have the same arity."""
        columns = info.data.get("columns")
        if columns is not None and len(columns) != len(v):
            raise ValueError("Foreign key column lists must have the same length")
        return v
