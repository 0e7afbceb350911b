"""
Configuration for archived-row filtering.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from omit_archived.runtime.query_builder import validate_sql_identifier

DEFAULT_ARCHIVED_COLUMN_NAME = "is_archived"

#: Environment variable overriding ``archived_column_name``.
ENV_ARCHIVED_COLUMN_NAME = "OMIT_ARCHIVED_COLUMN_NAME"


class OmitArchivedConfig(BaseModel):
    """
    Options supplied when the plugin is constructed.

    Attributes:
        archived_column_name: Conventional name of the archival marker column.
            A boolean column marks archived rows with true; any other type is
            treated as a nullable marker (archived when not null).
    """

    archived_column_name: str = Field(
        default=DEFAULT_ARCHIVED_COLUMN_NAME,
        description="Conventional name of the archival marker column",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("archived_column_name")
    @classmethod
    def validate_column_name(cls, v: str) -> str:
        return validate_sql_identifier(v, "archived column name")

    @classmethod
    def from_env(cls, **overrides: str) -> OmitArchivedConfig:
        """Build a config from the environment; explicit overrides win."""
        values: dict[str, str] = {}
        env_column = os.environ.get(ENV_ARCHIVED_COLUMN_NAME)
        if env_column:
            values["archived_column_name"] = env_column
        values.update({k: v for k, v in overrides.items() if v})
        return cls(**values)
