"""Shared pytest fixtures for omit-archived tests."""

from collections.abc import Iterator

import pytest

from omit_archived.runtime import DatabaseManager, introspect_catalog
from omit_archived.specs import CatalogSpec, ColumnSpec, ForeignKeySpec, TableSpec

BLOG_SCHEMA = """
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    is_archived BOOLEAN NOT NULL DEFAULT 0
);

CREATE TABLE comments (
    id INTEGER PRIMARY KEY,
    post_id INTEGER NOT NULL REFERENCES posts(id),
    body TEXT NOT NULL,
    is_archived BOOLEAN NOT NULL DEFAULT 0
);

CREATE TABLE tags (
    id INTEGER PRIMARY KEY,
    label TEXT NOT NULL
);

INSERT INTO posts (id, title, is_archived) VALUES
    (1, 'Hello world', 0),
    (2, 'Old news', 1);

INSERT INTO comments (id, post_id, body, is_archived) VALUES
    (1, 1, 'First!', 0),
    (2, 1, 'Spam', 1),
    (3, 2, 'Still relevant', 0),
    (4, 2, 'Outdated', 1);

INSERT INTO tags (id, label) VALUES
    (1, 'python'),
    (2, 'graphql');
"""


@pytest.fixture
def blog_schema_sql() -> str:
    """DDL and rows for the blog database."""
    return BLOG_SCHEMA


@pytest.fixture
def blog_db() -> Iterator[DatabaseManager]:
    """In-memory blog database: two posts (one archived), four comments, tags."""
    db = DatabaseManager()
    db.execute_script(BLOG_SCHEMA)
    yield db
    db.close()


@pytest.fixture
def blog_catalog(blog_db: DatabaseManager) -> CatalogSpec:
    """Catalog introspected from the blog database."""
    return introspect_catalog(blog_db)


@pytest.fixture
def simple_catalog() -> CatalogSpec:
    """
    Hand-built catalog.

    - posts: boolean ``is_archived``
    - comments -> posts: boolean ``is_archived``
    - events: nullable-marker ``is_archived`` (timestamp)
    - tags: no archival column
    - post_stats: composite type (no namespace)
    """
    return CatalogSpec(
        tables=[
            TableSpec(id=1, name="posts", namespace="main"),
            TableSpec(id=2, name="comments", namespace="main"),
            TableSpec(id=3, name="events", namespace="main"),
            TableSpec(id=4, name="tags", namespace="main"),
            TableSpec(id=5, name="post_stats", namespace=None),
        ],
        columns=[
            ColumnSpec(table_id=1, name="id", type_name="INTEGER", category="N", is_primary_key=True),
            ColumnSpec(table_id=1, name="is_archived", type_name="BOOLEAN", category="B"),
            ColumnSpec(table_id=2, name="id", type_name="INTEGER", category="N", is_primary_key=True),
            ColumnSpec(table_id=2, name="post_id", type_name="INTEGER", category="N"),
            ColumnSpec(table_id=2, name="is_archived", type_name="BOOLEAN", category="B"),
            ColumnSpec(table_id=3, name="id", type_name="INTEGER", category="N", is_primary_key=True),
            ColumnSpec(table_id=3, name="is_archived", type_name="TIMESTAMP", category="D"),
            ColumnSpec(table_id=4, name="id", type_name="INTEGER", category="N", is_primary_key=True),
            ColumnSpec(table_id=4, name="label", type_name="TEXT", category="S"),
            ColumnSpec(table_id=5, name="is_archived", type_name="BOOLEAN", category="B"),
        ],
        foreign_keys=[
            ForeignKeySpec(table_id=2, foreign_table_id=1, columns=["post_id"], foreign_columns=["id"]),
        ],
    )
