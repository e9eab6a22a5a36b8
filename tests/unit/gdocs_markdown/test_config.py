"""Tests for configuration, environment settings and input validation."""

import logging

import pytest

from gdocs_markdown.config import (
    DEFAULT_MAX_BATCH_SIZE,
    ConversionOptions,
    configure_logging,
    get_settings,
    validate_document_id,
    validate_start_index,
)
from gdocs_markdown.errors import ValidationError


class TestTransformerSettings:
    """Test environment-driven settings."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.max_batch_size == DEFAULT_MAX_BATCH_SIZE
        assert settings.first_heading_as_title is False
        assert settings.log_level == "WARNING"

    def test_batch_size_from_environment(self, env_override):
        assert env_override(GDOCS_MARKDOWN_MAX_BATCH_SIZE="10").max_batch_size == 10

    def test_non_integer_batch_size_raises(self, env_override):
        with pytest.raises(ValueError, match="must be an integer"):
            env_override(GDOCS_MARKDOWN_MAX_BATCH_SIZE="many")

    def test_zero_batch_size_raises(self, env_override):
        with pytest.raises(ValueError, match="at least 1"):
            env_override(GDOCS_MARKDOWN_MAX_BATCH_SIZE="0")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("YES", True), ("no", False)])
    def test_title_flag(self, env_override, value, expected):
        assert env_override(GDOCS_MARKDOWN_FIRST_HEADING_AS_TITLE=value).first_heading_as_title is expected

    def test_conversion_options_override(self, env_override):
        settings = env_override(GDOCS_MARKDOWN_FIRST_HEADING_AS_TITLE="true")
        assert settings.conversion_options() == ConversionOptions(first_heading_as_title=True)
        assert settings.conversion_options(False) == ConversionOptions(first_heading_as_title=False)

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()


class TestConfigureLogging:
    def test_explicit_level(self):
        configure_logging("debug")
        assert logging.getLogger("gdocs_markdown").level == logging.DEBUG

    def test_level_from_environment(self, env_override):
        env_override(GDOCS_MARKDOWN_LOG_LEVEL="error")
        configure_logging()
        assert logging.getLogger("gdocs_markdown").level == logging.ERROR

    def test_unknown_level_falls_back_to_warning(self):
        configure_logging("chatty")
        assert logging.getLogger("gdocs_markdown").level == logging.WARNING


class TestValidateStartIndex:
    def test_valid(self):
        assert validate_start_index(1) == 1
        assert validate_start_index(250) == 250

    @pytest.mark.parametrize("value", [0, -3, True, 1.5, "1", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError, match="start_index"):
            validate_start_index(value)


class TestValidateDocumentId:
    def test_valid_id_is_stripped(self):
        assert validate_document_id("  1AbC-d_9  ") == "1AbC-d_9"

    def test_missing(self):
        with pytest.raises(ValidationError, match="required"):
            validate_document_id("")

    def test_blank(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_document_id("   ")

    def test_invalid_characters(self):
        with pytest.raises(ValidationError, match="invalid characters"):
            validate_document_id("abc/def")
