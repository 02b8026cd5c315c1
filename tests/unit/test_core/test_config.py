"""Tests for configuration records."""

import pytest

from sqlbind.core.config import DEFAULT_PARAMETER_CONFIG, ParameterConfig, StatementOptions
from sqlbind.exceptions import ImproperConfigurationError


def test_parameter_config_defaults() -> None:
    """Test the default parameter policy."""
    config = ParameterConfig()

    assert config.strip_escape_backslash is False
    assert config.allow_mixed_parameter_styles is True
    assert config.expansion_separator == ", "
    assert config.empty_collection == "placeholder"
    assert config.reject_extra_values is False
    assert config.skip_qmark_operators is False
    assert config == DEFAULT_PARAMETER_CONFIG


def test_parameter_config_replace() -> None:
    """Test ``replace`` copies and changes only the named fields."""
    config = ParameterConfig(expansion_separator=",")
    strict = config.replace(reject_extra_values=True)

    assert strict.reject_extra_values is True
    assert strict.expansion_separator == ","
    assert config.reject_extra_values is False
    assert strict != config
    assert hash(strict) == hash(ParameterConfig(expansion_separator=",", reject_extra_values=True))


def test_parameter_config_rejects_unknown_policy() -> None:
    """Test an unknown empty-collection policy is a configuration error."""
    with pytest.raises(ImproperConfigurationError, match="empty_collection"):
        ParameterConfig(empty_collection="skip")  # type: ignore[arg-type]


def test_parameter_config_repr() -> None:
    assert "empty_collection='placeholder'" in repr(ParameterConfig())


def test_statement_options_defaults() -> None:
    """Test default options describe a plain forward-only statement."""
    options = StatementOptions()

    assert options.result_set_type == "forward_only"
    assert options.is_default
    assert not options.wants_generated_keys


def test_statement_options_generated_keys() -> None:
    """Test key retrieval by flag or by column names."""
    assert StatementOptions(return_generated_keys=True).wants_generated_keys
    by_columns = StatementOptions(generated_key_columns=["id"])

    assert by_columns.wants_generated_keys
    assert by_columns.generated_key_columns == ("id",)
    assert not by_columns.is_default


def test_statement_options_equality() -> None:
    """Test options compare and hash by value."""
    first = StatementOptions(result_set_type="scroll_sensitive", updatable_results=True)
    second = StatementOptions().replace(result_set_type="scroll_sensitive", updatable_results=True)

    assert first == second
    assert hash(first) == hash(second)
    assert {first, second} == {first}


def test_statement_options_rejects_unknown_result_set_type() -> None:
    """Test unknown result set types are rejected."""
    with pytest.raises(ImproperConfigurationError, match="result_set_type"):
        StatementOptions(result_set_type="backwards")  # type: ignore[arg-type]
