"""
CatalogSpec type definitions.

This module exports the catalog types and the ``CatalogSpec`` aggregate
which provides table and column lookups.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from omit_archived.specs.catalog import (
    BOOLEAN_CATEGORY,
    ColumnSpec,
    ForeignKeySpec,
    TableKind,
    TableSpec,
    ValueCategory,
)


class CatalogSpec(BaseModel):
    """
    Introspected relational catalog.

    This is the aggregate root for schema metadata:
    - Tables (and views)
    - Columns
    - Foreign keys

    Example:
        CatalogSpec(
            tables=[TableSpec(id=1, name="posts", namespace="main")],
            columns=[
                ColumnSpec(table_id=1, name="id", is_primary_key=True),
                ColumnSpec(table_id=1, name="is_archived", category="B"),
            ],
        )
    """

    tables: list[TableSpec] = Field(default_factory=list, description="Tables and views")
    columns: list[ColumnSpec] = Field(default_factory=list, description="Columns of all tables")
    foreign_keys: list[ForeignKeySpec] = Field(
        default_factory=list, description="Foreign key constraints"
    )

    model_config = ConfigDict(frozen=True)

    # =========================================================================
    # Query methods
    # =========================================================================

    def get_table(self, table_id: int) -> TableSpec | None:
        """Get table by id."""
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def get_table_by_name(self, name: str) -> TableSpec | None:
        """Get table by name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_columns(self, table_id: int) -> list[ColumnSpec]:
        """Get all columns of a table, in declaration order."""
        return [col for col in self.columns if col.table_id == table_id]

    def get_column(self, table_id: int, name: str) -> ColumnSpec | None:
        """Get a column by owning table id and column name."""
        for col in self.columns:
            if col.table_id == table_id and col.name == name:
                return col
        return None

    def get_primary_key(self, table_id: int) -> list[ColumnSpec]:
        """Get the primary key columns of a table."""
        return [col for col in self.get_columns(table_id) if col.is_primary_key]

    def get_foreign_keys(self, table_id: int) -> list[ForeignKeySpec]:
        """Get foreign keys declared on a (child) table."""
        return [fk for fk in self.foreign_keys if fk.table_id == table_id]

    def get_referencing_keys(self, table_id: int) -> list[ForeignKeySpec]:
        """Get foreign keys on other tables that reference this (parent) table."""
        return [fk for fk in self.foreign_keys if fk.foreign_table_id == table_id]

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_references(self) -> list[str]:
        """
        Validate all references between specs.

        Returns list of error messages (empty if valid).
        """
        errors = []

        for col in self.columns:
            if not self.get_table(col.table_id):
                errors.append(f"Column '{col.name}' references unknown table {col.table_id}")

        for fk in self.foreign_keys:
            child = self.get_table(fk.table_id)
            parent = self.get_table(fk.foreign_table_id)
            if not child:
                errors.append(f"Foreign key references unknown table {fk.table_id}")
                continue
            if not parent:
                errors.append(
                    f"Foreign key on '{child.name}' references unknown table {fk.foreign_table_id}"
                )
                continue
            for name in fk.columns:
                if not self.get_column(child.id, name):
                    errors.append(f"Foreign key column '{child.name}.{name}' does not exist")
            for name in fk.foreign_columns:
                if not self.get_column(parent.id, name):
                    errors.append(f"Foreign key column '{parent.name}.{name}' does not exist")

        return errors

    @property
    def stats(self) -> dict[str, int]:
        """Get statistics about this catalog."""
        return {
            "tables": len(self.tables),
            "columns": len(self.columns),
            "foreign_keys": len(self.foreign_keys),
        }


__all__ = [
    "BOOLEAN_CATEGORY",
    "CatalogSpec",
    "ColumnSpec",
    "ForeignKeySpec",
    "TableKind",
    "TableSpec",
    "ValueCategory",
]
