"""
SQLite catalog introspection.

Reads tables, views, columns, primary keys and foreign keys from a live
database and produces a ``CatalogSpec``.
"""

from __future__ import annotations

import re
import sqlite3
from collections import defaultdict
from typing import Any

from omit_archived.logging import get_logger
from omit_archived.runtime.database import DatabaseManager
from omit_archived.runtime.query_builder import quote_identifier, validate_sql_identifier
from omit_archived.specs import (
    BOOLEAN_CATEGORY,
    CatalogSpec,
    ColumnSpec,
    ForeignKeySpec,
    TableKind,
    TableSpec,
)

logger = get_logger("INTROSPECT")

#: SQLite's schema name for the main database.
MAIN_NAMESPACE = "main"

# Checked in order; first match wins.
_CATEGORY_BY_TYPE_PATTERN: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"BOOL"), BOOLEAN_CATEGORY),
    (re.compile(r"\bINTERVAL\b"), "T"),
    (re.compile(r"\b(?:POINT|LINE|LSEG|BOX|PATH|POLYGON|CIRCLE)\b"), "G"),
    (re.compile(r"DATE|TIME"), "D"),
    (re.compile(r"\b(?:BIG|SMALL|TINY|MEDIUM|UNSIGNED\s+)?INT(?:EGER|\d+)?\b"), "N"),
    (re.compile(r"REAL|FLOA|DOUB|NUM|DEC"), "N"),
]


def category_for_type(type_name: str) -> str:
    """
    Map a declared SQLite column type to a value category code.

    Examples:
        - "BOOLEAN" -> "B"
        - "TIMESTAMP" -> "D"
        - "INTEGER" -> "N"
        - "INTERVAL" -> "T"
        - "TEXT" -> "S"
    """
    upper = type_name.upper()
    for pattern, code in _CATEGORY_BY_TYPE_PATTERN:
        if pattern.search(upper):
            return code
    return "S"


def introspect_catalog(db: DatabaseManager) -> CatalogSpec:
    """
    Build a catalog from the database's current schema.

    Args:
        db: Database to inspect

    Returns:
        CatalogSpec with one entry per user table and view
    """
    conn = db.get_persistent_connection()
    relations = conn.execute(
        "SELECT name, type FROM sqlite_master "
        "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
        "ORDER BY name"
    ).fetchall()

    tables: list[TableSpec] = []
    columns: list[ColumnSpec] = []
    raw_keys: dict[int, list[Any]] = {}

    for table_id, row in enumerate(relations, start=1):
        name = row["name"]
        try:
            validate_sql_identifier(name, "table name")
        except ValueError:
            logger.warning("Skipping %s with unsupported name '%s'", row["type"], name)
            continue
        kind = TableKind.VIEW if row["type"] == "view" else TableKind.TABLE
        tables.append(TableSpec(id=table_id, name=name, namespace=MAIN_NAMESPACE, kind=kind))
        columns.extend(_introspect_columns(conn, table_id, name))
        if kind == TableKind.TABLE:
            raw_keys[table_id] = conn.execute(
                f"PRAGMA foreign_key_list({quote_identifier(name)})"
            ).fetchall()

    ids_by_name = {t.name: t.id for t in tables}
    foreign_keys: list[ForeignKeySpec] = []
    for table_id, fk_rows in raw_keys.items():
        foreign_keys.extend(_group_foreign_keys(table_id, fk_rows, ids_by_name, columns))

    catalog = CatalogSpec(tables=tables, columns=columns, foreign_keys=foreign_keys)
    logger.info(
        "Introspected %d tables, %d columns, %d foreign keys",
        len(tables),
        len(columns),
        len(foreign_keys),
    )
    return catalog


def _introspect_columns(conn: sqlite3.Connection, table_id: int, name: str) -> list[ColumnSpec]:
    rows = conn.execute(f"PRAGMA table_info({quote_identifier(name)})").fetchall()
    return [
        ColumnSpec(
            table_id=table_id,
            name=row["name"],
            type_name=row["type"] or "",
            category=category_for_type(row["type"] or ""),
            not_null=bool(row["notnull"]),
            is_primary_key=bool(row["pk"]),
        )
        for row in rows
    ]


def _group_foreign_keys(
    table_id: int,
    fk_rows: list[Any],
    ids_by_name: dict[str, int],
    columns: list[ColumnSpec],
) -> list[ForeignKeySpec]:
    """Combine PRAGMA foreign_key_list rows (one per column) into constraints."""
    grouped: dict[int, list[Any]] = defaultdict(list)
    for row in fk_rows:
        grouped[row["id"]].append(row)

    keys: list[ForeignKeySpec] = []
    for rows in grouped.values():
        rows.sort(key=lambda r: r["seq"])
        parent_id = ids_by_name.get(rows[0]["table"])
        if parent_id is None:
            logger.warning("Skipping foreign key to unknown table '%s'", rows[0]["table"])
            continue
        foreign_columns = [r["to"] for r in rows]
        if any(c is None for c in foreign_columns):
            # REFERENCES parent without a column list targets the primary key
            foreign_columns = [
                c.name for c in columns if c.table_id == parent_id and c.is_primary_key
            ]
        keys.append(
            ForeignKeySpec(
                table_id=table_id,
                foreign_table_id=parent_id,
                columns=[r["from"] for r in rows],
                foreign_columns=foreign_columns,
            )
        )
    return keys
