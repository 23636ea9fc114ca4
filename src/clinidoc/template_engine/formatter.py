"""Field value formatting.

Renders a raw stored field value into display text according to the field's
type. The same formatter serves the interactive preview, the placeholder
resolver and the export serializer; callers pick the blank marker.
"""

import logging
from typing import Any, Callable, Dict, Optional

from clinidoc.models.fields import FieldDefinition, FieldType, is_blank
from clinidoc.utils.dates import parse_datetime, parse_time

logger = logging.getLogger(__name__)

# Blank marker used in exported artifacts and resolved bodies
EXPORT_BLANK_MARKER = "_" * 29

# Blank marker used in on-screen preview ("not filled")
PREVIEW_BLANK_MARKER = "לא מולא"

INVALID_DATE_MARKER = "תאריך לא תקין"

SIGNATURE_MARKER = "חתום דיגיטלית ✍️"

DEFAULT_DATE_FORMAT = "%d/%m/%Y"
DEFAULT_DATETIME_FORMAT = "%d/%m/%Y %H:%M"
DEFAULT_TIME_FORMAT = "%H:%M"


class FieldValueFormatter:
    """Formats raw field values per field type.

    Formatting is pure: the same field, value and marker always produce the
    same text, and malformed values degrade to markers instead of raising.

    Example:
        >>> formatter = FieldValueFormatter()
        >>> field = FieldDefinition(name="d", label="Date", type=FieldType.DATE)
        >>> formatter.format(field, "2024-03-01")
        '01/03/2024'
        >>> formatter.format(field, "", PREVIEW_BLANK_MARKER)
        'לא מולא'
    """

    def __init__(
        self,
        date_format: str = DEFAULT_DATE_FORMAT,
        datetime_format: str = DEFAULT_DATETIME_FORMAT,
        time_format: str = DEFAULT_TIME_FORMAT,
        invalid_date_marker: str = INVALID_DATE_MARKER,
        signature_marker: str = SIGNATURE_MARKER,
    ):
        """Initialize formatter.

        Args:
            date_format: strftime format for date fields
            datetime_format: strftime format for datetime fields
            time_format: strftime format for time fields
            invalid_date_marker: Text shown for unparseable temporal values
            signature_marker: Text shown for signature fields
        """
        self.date_format = date_format
        self.datetime_format = datetime_format
        self.time_format = time_format
        self.invalid_date_marker = invalid_date_marker
        self.signature_marker = signature_marker

        self._dispatch: Dict[FieldType, Callable[[FieldDefinition, Any], str]] = {
            FieldType.SHORT_TEXT: self._format_plain,
            FieldType.LONG_TEXT: self._format_plain,
            FieldType.NUMBER: self._format_number,
            FieldType.DATE: self._format_date,
            FieldType.TIME: self._format_time,
            FieldType.DATETIME: self._format_datetime,
            FieldType.SINGLE_CHOICE: self._format_plain,
            FieldType.MULTI_CHOICE: self._format_multi_choice,
            FieldType.PATIENT_DERIVED: self._format_plain,
            FieldType.SIGNATURE: self._format_signature,
            FieldType.RATING: self._format_number,
            FieldType.DIVIDER: self._format_plain,
            FieldType.HEADER: self._format_plain,
        }

    @property
    def supported_types(self) -> frozenset:
        """Field types with a registered formatting rule."""
        return frozenset(self._dispatch)

    def format(
        self,
        field: FieldDefinition,
        raw_value: Any,
        blank_marker: str = EXPORT_BLANK_MARKER,
    ) -> str:
        """Render a raw value as display text.

        Args:
            field: Field definition whose type selects the rule
            raw_value: Stored or derived value
            blank_marker: Text returned for blank values

        Returns:
            Display string; never raises for malformed values
        """
        if is_blank(raw_value):
            return blank_marker
        return self._dispatch[field.type](field, raw_value)

    def format_date_value(self, value: Any) -> Optional[str]:
        """Format a date-like value with the date format, None if unparseable."""
        parsed = parse_datetime(value)
        if parsed is None:
            return None
        return parsed.strftime(self.date_format)

    def format_datetime_value(self, value: Any) -> Optional[str]:
        """Format a datetime-like value with the datetime format."""
        parsed = parse_datetime(value)
        if parsed is None:
            return None
        return parsed.strftime(self.datetime_format)

    def _format_plain(self, field: FieldDefinition, value: Any) -> str:
        return str(value)

    def _format_number(self, field: FieldDefinition, value: Any) -> str:
        # 5.0 renders as "5"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    def _format_date(self, field: FieldDefinition, value: Any) -> str:
        formatted = self.format_date_value(value)
        if formatted is None:
            return self._invalid_date(field, value)
        return formatted

    def _format_datetime(self, field: FieldDefinition, value: Any) -> str:
        formatted = self.format_datetime_value(value)
        if formatted is None:
            return self._invalid_date(field, value)
        return formatted

    def _format_time(self, field: FieldDefinition, value: Any) -> str:
        parsed = parse_time(value)
        if parsed is None:
            return self._invalid_date(field, value)
        return parsed.strftime(self.time_format)

    def _format_multi_choice(self, field: FieldDefinition, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value)
        return str(value)

    def _format_signature(self, field: FieldDefinition, value: Any) -> str:
        return self.signature_marker

    def _invalid_date(self, field: FieldDefinition, value: Any) -> str:
        logger.warning(
            f"Field {field.name} holds unparseable {field.type.value} value: {value!r}"
        )
        return self.invalid_date_marker
