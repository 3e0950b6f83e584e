"""Tests for scalar value heuristics."""

import uuid

import pytest

from grpc_automock.heuristics import (
    SCALAR_VALUES,
    interpret_via_field_name,
    mock_scalar,
)

pytestmark = pytest.mark.timeout(10)


class TestMockScalar:
    """Test the scalar lookup table."""

    @pytest.mark.parametrize("type_name", sorted(SCALAR_VALUES))
    def test_known_types(self, type_name):
        """Test that every known type maps to its constant."""
        assert mock_scalar(type_name, "value") == SCALAR_VALUES[type_name]

    def test_widths_are_distinct(self):
        """Test that 32 and 64 bit variants can be told apart."""
        for narrow, wide in [
            ("int32", "int64"),
            ("uint32", "uint64"),
            ("sint32", "sint64"),
            ("fixed32", "fixed64"),
            ("sfixed32", "sfixed64"),
            ("float", "double"),
        ]:
            assert mock_scalar(narrow, "x") != mock_scalar(wide, "x")

    def test_bool(self):
        """Test bool is literal True."""
        assert mock_scalar("bool", "enabled") is True

    def test_bytes(self):
        """Test bytes is 'Hello' encoded."""
        assert mock_scalar("bytes", "data") == b"Hello"

    def test_unknown_type(self):
        """Test unknown type names yield no value."""
        assert mock_scalar("mystery", "field") is None
        assert mock_scalar(None, "field") is None


class TestStringHeuristics:
    """Test string values guessed from field names."""

    @pytest.mark.parametrize("field_name", ["userId", "id", "ID", "identifier", "Paid"])
    def test_id_like_names_get_uuid(self, field_name):
        """Test names starting or ending with 'id' get a UUID4."""
        value = mock_scalar("string", field_name)
        assert len(value) == 36
        parsed = uuid.UUID(value)
        assert parsed.version == 4
        assert parsed.variant == uuid.RFC_4122

    def test_uuids_are_fresh(self):
        """Test every call generates a new identifier."""
        assert interpret_via_field_name("userId") != interpret_via_field_name("userId")

    @pytest.mark.parametrize("field_name", ["name", "title", "middle"])
    def test_other_names_get_hello(self, field_name):
        """Test non id-like names get 'Hello'."""
        assert mock_scalar("string", field_name) == "Hello"
