"""Unit tests for Value Objects."""

import pytest

from stockdesk.domain.exceptions import ValidationError
from stockdesk.domain.model.value_objects import EntityRef, Quantity, validate_notes


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="au moins 1"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="au moins 1"):
            Quantity(-1)

    def test_float_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(1.5)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)

    def test_equality(self):
        assert Quantity(3) == Quantity(3)
        assert Quantity(3) != Quantity(4)


class TestNotes:

    def test_blank_becomes_none(self):
        assert validate_notes("  ") is None
        assert validate_notes(None) is None

    def test_strips_whitespace(self):
        assert validate_notes("  urgent ") == "urgent"

    def test_limit_is_250(self):
        assert validate_notes("x" * 250) == "x" * 250
        with pytest.raises(ValidationError, match="250"):
            validate_notes("x" * 251)


class TestEntityRef:

    def test_str_prefers_name(self):
        assert str(EntityRef("w1", "Main")) == "Main"
        assert str(EntityRef("w1")) == "w1"
