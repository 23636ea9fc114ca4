"""Field definition data model.

This module defines the closed set of field kinds a template may declare and
the dataclasses describing a single field, its choice options and its
validation constraints.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class FieldType(Enum):
    """Closed set of template field kinds.

    Values are the type strings stored in template JSON files.
    """

    SHORT_TEXT = "text"
    LONG_TEXT = "textarea"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    SINGLE_CHOICE = "select"
    MULTI_CHOICE = "checkbox"
    PATIENT_DERIVED = "patient_info"
    SIGNATURE = "signature"
    RATING = "rating"
    DIVIDER = "divider"
    HEADER = "header"

    @classmethod
    def _missing_(cls, value: object) -> Optional["FieldType"]:
        if isinstance(value, str):
            return _FIELD_TYPE_ALIASES.get(value.strip().lower())
        return None

    @property
    def is_choice(self) -> bool:
        """True for field kinds that carry an options list."""
        return self in (FieldType.SINGLE_CHOICE, FieldType.MULTI_CHOICE)

    @property
    def is_structural(self) -> bool:
        """True for layout-only field kinds that never hold a value."""
        return self in (FieldType.DIVIDER, FieldType.HEADER)

    @property
    def is_temporal(self) -> bool:
        """True for date, time and datetime fields."""
        return self in (FieldType.DATE, FieldType.TIME, FieldType.DATETIME)


_FIELD_TYPE_ALIASES = {
    "short-text": FieldType.SHORT_TEXT,
    "long-text": FieldType.LONG_TEXT,
    "single-choice": FieldType.SINGLE_CHOICE,
    "radio": FieldType.SINGLE_CHOICE,
    "multi-choice": FieldType.MULTI_CHOICE,
    "patient-derived": FieldType.PATIENT_DERIVED,
    "pain-scale": FieldType.RATING,
    "structural-divider": FieldType.DIVIDER,
    "structural-header": FieldType.HEADER,
}


# Patient source keys with dedicated derivation rules; any other key is a
# direct attribute lookup on the patient record.
FULL_NAME_SOURCE = "full_name"
AGE_SOURCE = "age"
ADDRESS_SOURCE = "address"


def is_blank(value: Any) -> bool:
    """Check whether a raw field value counts as "not filled".

    None, empty or whitespace-only strings and empty lists are blank.
    Zero and False are real values.

    Example:
        >>> is_blank("   ")
        True
        >>> is_blank(0)
        False
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class FieldOption:
    """One selectable option of a choice field."""

    value: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldOption":
        value = str(data["value"])
        return cls(value=value, label=str(data.get("label", value)))


@dataclass(frozen=True)
class FieldValidation:
    """Authoring-time validation constraints of a field.

    Attributes:
        required: Field must be filled for the document to be complete
        min_length: Minimum text length
        max_length: Maximum text length
        pattern: Regular expression the text must match
        min: Minimum numeric value
        max: Maximum numeric value
    """

    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"required": self.required}
        for key in ("min_length", "max_length", "pattern", "min", "max"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldValidation":
        return cls(
            required=bool(data.get("required", False)),
            min_length=data.get("min_length", data.get("minLength")),
            max_length=data.get("max_length", data.get("maxLength")),
            pattern=data.get("pattern"),
            min=data.get("min"),
            max=data.get("max"),
        )


@dataclass(frozen=True)
class FieldDefinition:
    """A single named, typed input slot within a template.

    Attributes:
        name: Unique key within a template, used for value lookup and placeholders
        label: Display text
        type: Field kind
        order: Display and assembly sequence
        required: Counted by completion statistics; never blocks assembly
        options: Ordered choices, only for choice fields
        patient_source_field: Patient attribute to project, only for
            patient-derived fields (full_name, age, address or any attribute)
        id: Optional authoring identifier
        placeholder: Input hint shown in forms
        help_text: Longer help shown in forms
        default_value: Value pre-filled in forms
        group: Optional grouping key for forms
        validation: Authoring-time validation constraints
    """

    name: str
    label: str
    type: FieldType
    order: int = 0
    required: bool = False
    options: List[FieldOption] = field(default_factory=list)
    patient_source_field: Optional[str] = None
    id: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    default_value: Any = None
    group: Optional[str] = None
    validation: FieldValidation = field(default_factory=FieldValidation)

    @property
    def is_required(self) -> bool:
        """True if either the field flag or its validation marks it required."""
        return self.required or self.validation.required

    @property
    def token(self) -> str:
        """Placeholder token for this field in template bodies."""
        return "{{" + self.name + "}}"

    def option_label(self, value: Any) -> Optional[str]:
        """Return the display label for a stored option value, if known."""
        for option in self.options:
            if option.value == value:
                return option.label
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        data: Dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.type.value,
            "order": self.order,
            "required": self.required,
        }
        if self.options:
            data["options"] = [option.to_dict() for option in self.options]
        for key in (
            "patient_source_field",
            "id",
            "placeholder",
            "help_text",
            "default_value",
            "group",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.validation != FieldValidation():
            data["validation"] = self.validation.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        """Build a field from a dictionary.

        Accepts both snake_case keys and the camelCase keys used by exported
        template files (``patientField``, ``helpText``, ``defaultValue``).

        Raises:
            KeyError: If name, label or type is missing
            ValueError: If type is not a known field kind
        """
        options = [
            FieldOption.from_dict(option) if isinstance(option, dict)
            else FieldOption(value=str(option), label=str(option))
            for option in data.get("options") or []
        ]
        validation_data = data.get("validation")
        return cls(
            name=data["name"],
            label=data["label"],
            type=FieldType(data["type"]),
            order=int(data.get("order", 0)),
            required=bool(data.get("required", False)),
            options=options,
            patient_source_field=(
                data.get("patient_source_field")
                or data.get("patientSourceField")
                or data.get("patientField")
            ),
            id=data.get("id"),
            placeholder=data.get("placeholder"),
            help_text=data.get("help_text", data.get("helpText")),
            default_value=data.get("default_value", data.get("defaultValue")),
            group=data.get("group"),
            validation=(
                FieldValidation.from_dict(validation_data)
                if validation_data
                else FieldValidation()
            ),
        )
