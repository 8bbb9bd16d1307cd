"""Unit tests for validation.py - snapshot declaration validation."""

import pytest

from errors import ValidationError
from plugins.base import OneShot, Recurring
from validation import (
    SNAPSHOT_SCHEMA,
    parse_declaration,
    validate_declaration,
    validate_spec_against_schema,
)


class TestValidateSpecAgainstSchema:
    """Tests for validate_spec_against_schema function."""

    def test_valid_spec(self):
        is_valid, error = validate_spec_against_schema(
            {"name": "db-snap", "instance_id": "i-123"}, SNAPSHOT_SCHEMA
        )
        assert is_valid is True
        assert error is None

    def test_errors_include_path(self):
        is_valid, error = validate_spec_against_schema(
            {"name": "db-snap", "instance_id": "i-123", "safe": "yes"},
            SNAPSHOT_SCHEMA,
        )
        assert is_valid is False
        assert "safe:" in error

    def test_multiple_errors_joined(self):
        is_valid, error = validate_spec_against_schema(
            {"name": 5, "instance_id": 6}, SNAPSHOT_SCHEMA
        )
        assert is_valid is False
        assert "name:" in error
        assert "instance_id:" in error
        assert "; " in error


class TestValidateDeclaration:
    """Tests for validate_declaration function."""

    def test_minimal_declaration(self):
        assert validate_declaration({"name": "a", "instance_id": "b"}) == (True, None)

    def test_full_declaration(self):
        is_valid, _ = validate_declaration(
            {
                "name": "nightly",
                "instance_id": "i-123",
                "safe": True,
                "cron_timing": "0 2 * * *",
            }
        )
        assert is_valid is True

    def test_null_cron_timing_allowed(self):
        is_valid, _ = validate_declaration(
            {"name": "a", "instance_id": "b", "cron_timing": None}
        )
        assert is_valid is True

    def test_missing_name(self):
        is_valid, error = validate_declaration({"instance_id": "i-123"})
        assert is_valid is False
        assert "'name' is a required property" in error

    def test_empty_instance_id(self):
        is_valid, error = validate_declaration({"name": "a", "instance_id": ""})
        assert is_valid is False
        assert "instance_id" in error

    def test_not_an_object(self):
        is_valid, error = validate_declaration(["name", "instance_id"])
        assert is_valid is False
        assert "must be an object" in error

    def test_unknown_attributes_rejected(self):
        is_valid, error = validate_declaration(
            {"name": "a", "instance_id": "b", "description": "nightly db"}
        )
        assert is_valid is False
        assert "'description' was unexpected" in error

    def test_computed_attributes_rejected(self):
        is_valid, error = validate_declaration(
            {"name": "a", "instance_id": "b", "hostname": "db1", "size_gb": 20}
        )
        assert is_valid is False
        assert "hostname" in error


class TestParseDeclaration:
    """Tests for parse_declaration function."""

    def test_one_shot_by_default(self, sample_declaration):
        decl = parse_declaration(sample_declaration)

        assert decl.name == "db-snap"
        assert decl.instance_id == "i-123"
        assert decl.safe is True
        assert decl.mode == OneShot()
        assert decl.cron_timing is None

    def test_safe_defaults_to_false(self):
        decl = parse_declaration({"name": "a", "instance_id": "b"})
        assert decl.safe is False

    def test_recurring_with_cron(self, recurring_declaration):
        decl = parse_declaration(recurring_declaration)

        assert decl.mode == Recurring("0 2 * * *")
        assert decl.cron_timing == "0 2 * * *"

    @pytest.mark.parametrize("cron_timing", ["", None])
    def test_empty_cron_is_one_shot(self, cron_timing):
        decl = parse_declaration(
            {"name": "a", "instance_id": "b", "cron_timing": cron_timing}
        )
        assert isinstance(decl.mode, OneShot)

    def test_invalid_raises_validation_error(self):
        with pytest.raises(ValidationError, match="Invalid snapshot declaration"):
            parse_declaration({"name": "a"})

    def test_unknown_attribute_raises_validation_error(self, sample_declaration):
        with pytest.raises(ValidationError, match="description"):
            parse_declaration(dict(sample_declaration, description="nightly db"))
