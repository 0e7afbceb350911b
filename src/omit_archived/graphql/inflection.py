"""Naming helpers for deriving GraphQL names from table and column names."""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def pascal_case(name: str) -> str:
    """Convert snake_case to PascalCase."""
    return "".join(word[:1].upper() + word[1:] for word in name.split("_") if word)


def camel_case(name: str) -> str:
    """Convert snake_case to camelCase."""
    pascal = pascal_case(name)
    if not pascal:
        return pascal
    return pascal[0].lower() + pascal[1:]


def snake_case(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def singularize(name: str) -> str:
    """
    Naive English singular.

    Examples:
        - "posts" -> "post"
        - "categories" -> "category"
        - "addresses" -> "address"
        - "status" -> "status"
    """
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith(("sses", "xes", "ches", "shes")):
        return name[:-2]
    if name.endswith("s") and not name.endswith(("ss", "us", "is")):
        return name[:-1]
    return name


def type_name_for_table(table_name: str) -> str:
    """GraphQL object type name for a table (``blog_posts`` -> ``BlogPost``)."""
    return pascal_case(singularize(table_name))
