"""Unit tests for field value formatting."""

import logging
from datetime import date, datetime, time

import pytest

from clinidoc.models.fields import FieldDefinition, FieldType
from clinidoc.template_engine.formatter import (
    EXPORT_BLANK_MARKER,
    INVALID_DATE_MARKER,
    PREVIEW_BLANK_MARKER,
    SIGNATURE_MARKER,
    FieldValueFormatter,
)


def make_field(field_type: FieldType, name: str = "f") -> FieldDefinition:
    return FieldDefinition(name=name, label="שדה", type=field_type)


class TestDispatchCoverage:
    """Every field kind has a formatting rule."""

    def test_every_field_type_is_supported(self):
        # Arrange
        formatter = FieldValueFormatter()

        # Act & Assert
        assert formatter.supported_types == frozenset(FieldType)

    @pytest.mark.parametrize("field_type", list(FieldType))
    def test_every_field_type_formats_a_string_value(self, field_type):
        # Arrange
        formatter = FieldValueFormatter()

        # Act
        result = formatter.format(make_field(field_type), "2024-03-01")

        # Assert
        assert isinstance(result, str)
        assert result != EXPORT_BLANK_MARKER


class TestBlankValues:
    """Blank handling and marker selection."""

    @pytest.mark.parametrize("value", [None, "", "   ", "\n\t", []])
    def test_blank_values_render_marker(self, value):
        # Arrange
        formatter = FieldValueFormatter()

        # Act
        result = formatter.format(make_field(FieldType.SHORT_TEXT), value)

        # Assert
        assert result == EXPORT_BLANK_MARKER

    def test_blank_marker_is_idempotent(self):
        # Arrange
        formatter = FieldValueFormatter()
        field = make_field(FieldType.DATE)

        # Act
        first = formatter.format(field, None, PREVIEW_BLANK_MARKER)
        second = formatter.format(field, None, PREVIEW_BLANK_MARKER)

        # Assert
        assert first == second == PREVIEW_BLANK_MARKER

    def test_zero_and_false_are_values(self):
        # Arrange
        formatter = FieldValueFormatter()

        # Act & Assert
        assert formatter.format(make_field(FieldType.NUMBER), 0) == "0"
        assert formatter.format(make_field(FieldType.SHORT_TEXT), False) == "False"

    def test_export_marker_is_29_underscores(self):
        assert EXPORT_BLANK_MARKER == "_" * 29


class TestTypedFormatting:
    """Type-specific rules."""

    def test_multi_choice_joins_with_comma_space(self):
        # Arrange
        formatter = FieldValueFormatter()

        # Act
        result = formatter.format(make_field(FieldType.MULTI_CHOICE), ["a", "b", "c"])

        # Assert
        assert result == "a, b, c"

    def test_multi_choice_scalar_is_stringified(self):
        formatter = FieldValueFormatter()
        assert formatter.format(make_field(FieldType.MULTI_CHOICE), "a") == "a"

    def test_date_from_iso_string(self):
        formatter = FieldValueFormatter()
        assert formatter.format(make_field(FieldType.DATE), "2024-03-01") == "01/03/2024"

    def test_date_from_full_timestamp_shows_date_only(self):
        formatter = FieldValueFormatter()
        result = formatter.format(make_field(FieldType.DATE), "2024-03-01T14:20:00Z")
        assert result == "01/03/2024"

    def test_date_from_date_object(self):
        formatter = FieldValueFormatter()
        assert formatter.format(make_field(FieldType.DATE), date(2023, 12, 31)) == "31/12/2023"

    def test_datetime_format(self):
        formatter = FieldValueFormatter()
        result = formatter.format(make_field(FieldType.DATETIME), datetime(2024, 3, 1, 9, 5))
        assert result == "01/03/2024 09:05"

    def test_time_from_string_and_object(self):
        formatter = FieldValueFormatter()
        field = make_field(FieldType.TIME)
        assert formatter.format(field, "14:30") == "14:30"
        assert formatter.format(field, time(8, 0)) == "08:00"

    def test_invalid_date_renders_marker_and_warns(self, caplog):
        # Arrange
        formatter = FieldValueFormatter()

        # Act
        with caplog.at_level(logging.WARNING):
            result = formatter.format(make_field(FieldType.DATE, "visit"), "not a date")

        # Assert
        assert result == INVALID_DATE_MARKER
        assert "visit" in caplog.text

    def test_signature_renders_marker_regardless_of_value(self):
        formatter = FieldValueFormatter()
        result = formatter.format(make_field(FieldType.SIGNATURE), "data:image/png;base64,xyz")
        assert result == SIGNATURE_MARKER

    def test_whole_float_renders_without_decimal(self):
        formatter = FieldValueFormatter()
        assert formatter.format(make_field(FieldType.RATING), 5.0) == "5"
        assert formatter.format(make_field(FieldType.NUMBER), 5.5) == "5.5"

    def test_custom_date_format(self):
        formatter = FieldValueFormatter(date_format="%Y-%m-%d")
        assert formatter.format(make_field(FieldType.DATE), "2024-03-01") == "2024-03-01"
