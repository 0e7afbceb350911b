"""
The ``IncludeArchivedOption`` enum type.

Selects how a collection field treats archived rows. Every member resolves
to its own name.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import strawberry

from omit_archived.graphql.registry import TypeRegistry

INCLUDE_ARCHIVED_OPTION_TYPE_NAME = "IncludeArchivedOption"

INCLUDE_ARCHIVED_OPTION_SCOPE = {"isIncludeArchivedOptionEnum": True}


@strawberry.enum(
    name=INCLUDE_ARCHIVED_OPTION_TYPE_NAME,
    description="Indicates whether archived items should be included in the results or not.",
)
class IncludeArchivedOption(Enum):
    NO = strawberry.enum_value("NO", description="Exclude archived items.")
    YES = strawberry.enum_value("YES", description="Include archived items.")
    EXCLUSIVELY = strawberry.enum_value(
        "EXCLUSIVELY",
        description="Only include archived items (i.e. exclude non-archived items).",
    )
    INHERIT = strawberry.enum_value(
        "INHERIT",
        description=(
            "If there is a parent GraphQL record and it is archived then this is "
            "equivalent to YES, in all other cases this is equivalent to NO."
        ),
    )

    @classmethod
    def parse(cls, value: Any) -> IncludeArchivedOption | None:
        """
        Resolve a member or a member name; None for anything unrecognised.

        Examples:
            - IncludeArchivedOption.YES -> IncludeArchivedOption.YES
            - "INHERIT" -> IncludeArchivedOption.INHERIT
            - "LATER" -> None
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value)
        return None


def register_include_archived_option(types: TypeRegistry) -> type[IncludeArchivedOption]:
    """Add ``IncludeArchivedOption`` to a type registry (no-op if already there)."""
    registered: type[IncludeArchivedOption] = types.register(
        INCLUDE_ARCHIVED_OPTION_TYPE_NAME,
        IncludeArchivedOption,
        scope=INCLUDE_ARCHIVED_OPTION_SCOPE,
    )
    return registered
