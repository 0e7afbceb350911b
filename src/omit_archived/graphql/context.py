"""
GraphQL request context.

Every resolver reads the database handle from the context. The context may
be passed directly as ``context_value`` or, as with the FastAPI router,
stored in a dict under ``CONTEXT_KEY``.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from omit_archived.runtime.database import DatabaseManager

if TYPE_CHECKING:
    from starlette.requests import Request

CONTEXT_KEY = "omit_archived"


@dataclass(frozen=True)
class GraphQLContext:
    """
    Per-request context.

    Attributes:
        db: Database the request's queries run against
        request_id: Unique request identifier for tracing
        session: Additional request data (optional)
    """

    db: DatabaseManager
    request_id: str | None = None
    session: dict[str, Any] = field(default_factory=dict)


def get_graphql_context(context: Any) -> GraphQLContext:
    """
    Extract the ``GraphQLContext`` from a Strawberry ``info.context``.

    Raises:
        RuntimeError: If no GraphQLContext is attached
    """
    if isinstance(context, GraphQLContext):
        return context
    if isinstance(context, Mapping):
        candidate = context.get(CONTEXT_KEY)
        if isinstance(candidate, GraphQLContext):
            return candidate
    raise RuntimeError(
        "GraphQL context has no database; pass a GraphQLContext as context_value"
    )


def create_context_from_request(request: Request, db: DatabaseManager) -> GraphQLContext:
    """
    Create the context for an HTTP request.

    Uses the ``X-Request-ID`` header when present, otherwise a fresh UUID.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    return GraphQLContext(db=db, request_id=request_id)
