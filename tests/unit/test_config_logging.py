"""Tests for configuration and logging setup."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from omit_archived.config import (
    DEFAULT_ARCHIVED_COLUMN_NAME,
    ENV_ARCHIVED_COLUMN_NAME,
    OmitArchivedConfig,
)
from omit_archived.logging import (
    LOG_FILE_NAME,
    ROOT_LOGGER_NAME,
    ConsoleFormatter,
    JSONLFormatter,
    get_logger,
    log_with_context,
    setup_logging,
)

# =============================================================================
# Configuration
# =============================================================================


class TestOmitArchivedConfig:
    """Tests for OmitArchivedConfig."""

    def test_default(self) -> None:
        """The conventional column is is_archived."""
        assert OmitArchivedConfig().archived_column_name == DEFAULT_ARCHIVED_COLUMN_NAME == "is_archived"

    def test_invalid_name(self) -> None:
        """Column names must be safe identifiers."""
        with pytest.raises(ValidationError):
            OmitArchivedConfig(archived_column_name="is archived")

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The environment overrides the default; explicit values win."""
        monkeypatch.setenv(ENV_ARCHIVED_COLUMN_NAME, "archived_at")
        assert OmitArchivedConfig.from_env().archived_column_name == "archived_at"
        assert (
            OmitArchivedConfig.from_env(archived_column_name="deleted").archived_column_name
            == "deleted"
        )

    def test_from_env_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without the variable the default applies; empty overrides are ignored."""
        monkeypatch.delenv(ENV_ARCHIVED_COLUMN_NAME, raising=False)
        config = OmitArchivedConfig.from_env(archived_column_name="")
        assert config.archived_column_name == DEFAULT_ARCHIVED_COLUMN_NAME

    def test_frozen(self) -> None:
        """Configs are immutable."""
        config = OmitArchivedConfig()
        with pytest.raises(ValidationError):
            config.archived_column_name = "other"  # type: ignore[misc]


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture
def clean_root_logger() -> Iterator[logging.Logger]:
    """Package logger with handlers removed afterwards."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="omit_archived.build",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, val in extra.items():
        setattr(record, key, val)
    return record


class TestLogging:
    """Tests for component loggers and formatters."""

    def test_component_logger(self) -> None:
        """Component loggers live under the package namespace and are cached."""
        logger = get_logger("BUILD")
        assert logger.name == "omit_archived.build"
        assert get_logger("BUILD") is logger

    def test_jsonl_formatter(self) -> None:
        """Records become one JSON object with component and context."""
        line = JSONLFormatter().format(_record(component="BUILD", context={"field": "comments"}))
        entry = json.loads(line)
        assert entry["level"] == "WARNING"
        assert entry["component"] == "BUILD"
        assert entry["message"] == "hello"
        assert entry["context"] == {"field": "comments"}
        assert entry["timestamp"].endswith("Z")

    def test_console_formatter(self) -> None:
        """Console lines carry the component and non-INFO level."""
        line = ConsoleFormatter().format(_record(component="QUERY"))
        assert "[QUERY]" in line
        assert "WARNING" in line
        assert line.endswith("hello")

    def test_setup_logging_writes_jsonl(
        self, tmp_path: Path, clean_root_logger: logging.Logger
    ) -> None:
        """A log directory adds a JSONL file handler."""
        setup_logging(logging.DEBUG, log_dir=tmp_path / "logs")
        log_with_context(get_logger("ARCHIVED"), logging.WARNING, "Unrecognised value", value="LATER")
        for handler in clean_root_logger.handlers:
            handler.flush()

        lines = (tmp_path / "logs" / LOG_FILE_NAME).read_text().splitlines()
        entry = json.loads(lines[-1])
        assert entry["component"] == "ARCHIVED"
        assert entry["message"] == "Unrecognised value"
        assert entry["context"] == {"value": "LATER"}

    def test_setup_logging_console_only(self, clean_root_logger: logging.Logger) -> None:
        """Without a log directory only the console handler is installed."""
        setup_logging(logging.INFO)
        assert len(clean_root_logger.handlers) == 1
        assert clean_root_logger.level == logging.INFO
