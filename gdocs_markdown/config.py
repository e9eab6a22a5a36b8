"""
Configuration for Markdown <-> Google Docs conversion.

Per-call conversion options live in `ConversionOptions`. Process-wide defaults
come from the environment through `TransformerSettings`.
"""

import logging
import os
import re
from dataclasses import dataclass

from gdocs_markdown.errors import ValidationError

DEFAULT_MAX_BATCH_SIZE = 50
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class ConversionOptions:
    """Options accepted by the Markdown compiler beyond start index and tab ID.

    Attributes:
        first_heading_as_title: Style the first H1 as TITLE instead of HEADING_1.
    """

    first_heading_as_title: bool = False


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class TransformerSettings:
    """
    Environment-driven settings for the transformer and batch executor.

    Environment variables:
        GDOCS_MARKDOWN_MAX_BATCH_SIZE: Requests per batchUpdate call (default 50).
        GDOCS_MARKDOWN_FIRST_HEADING_AS_TITLE: Default for title promotion (default false).
        GDOCS_MARKDOWN_LOG_LEVEL: Level for the package logger (default WARNING).
    """

    def __init__(self):
        raw_batch_size = os.getenv("GDOCS_MARKDOWN_MAX_BATCH_SIZE", str(DEFAULT_MAX_BATCH_SIZE))
        try:
            self.max_batch_size = int(raw_batch_size)
        except ValueError as e:
            raise ValueError(f"GDOCS_MARKDOWN_MAX_BATCH_SIZE must be an integer, got {raw_batch_size!r}") from e
        if self.max_batch_size < 1:
            raise ValueError("GDOCS_MARKDOWN_MAX_BATCH_SIZE must be at least 1")

        self.first_heading_as_title = _env_flag("GDOCS_MARKDOWN_FIRST_HEADING_AS_TITLE")
        self.log_level = os.getenv("GDOCS_MARKDOWN_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    def conversion_options(self, first_heading_as_title: bool | None = None) -> ConversionOptions:
        """Build ConversionOptions, letting an explicit argument override the environment."""
        if first_heading_as_title is None:
            first_heading_as_title = self.first_heading_as_title
        return ConversionOptions(first_heading_as_title=first_heading_as_title)


_settings: TransformerSettings | None = None


def get_settings() -> TransformerSettings:
    """Return the cached settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = TransformerSettings()
    return _settings


def reload_settings() -> TransformerSettings:
    """Re-read the environment (used after env changes, mainly in tests)."""
    global _settings
    _settings = TransformerSettings()
    return _settings


def configure_logging(level: str | None = None) -> None:
    """Set the level of the package logger from the argument or settings."""
    level_name = (level or get_settings().log_level).upper()
    logging.getLogger("gdocs_markdown").setLevel(getattr(logging, level_name, logging.WARNING))


def validate_start_index(value: int, param_name: str = "start_index") -> int:
    """Validate a 1-based document index."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{param_name} must be an integer >= 1, got {value!r}")
    return value


def validate_document_id(document_id: str, param_name: str = "document_id") -> str:
    """Validate a Google Docs document ID."""
    if not document_id:
        raise ValidationError(f"{param_name} is required")

    document_id = document_id.strip()
    if not document_id:
        raise ValidationError(f"{param_name} cannot be empty")

    if not re.match(r"^[\w\-]+$", document_id):
        raise ValidationError(f"{param_name} contains invalid characters")

    return document_id
