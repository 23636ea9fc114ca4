"""Patient data model.

This module defines the Patient dataclass used throughout the application
for representing patient demographic, contact and medical history information.
Age is never stored; it is derived from ``birth_date`` when needed.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from clinidoc.utils.dates import parse_date, parse_datetime, to_iso, utc_now


@dataclass(frozen=True)
class Address:
    """Postal address of a patient."""

    street: str = ""
    city: str = ""
    postal_code: Optional[str] = None
    country: Optional[str] = None

    def display(self) -> str:
        """Format as "{street}, {city}", skipping empty parts."""
        return ", ".join(part for part in (self.street, self.city) if part)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "street": self.street,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        return cls(
            street=data.get("street") or "",
            city=data.get("city") or "",
            postal_code=data.get("postal_code", data.get("postalCode")),
            country=data.get("country"),
        )


@dataclass(frozen=True)
class MedicalRecord:
    """One entry of a patient's append-only medical history.

    Attributes:
        id: Record identifier
        date: Date of the visit or diagnosis
        diagnosis: Diagnosis text
        treatment: Treatment text
        notes: Optional free-text notes
    """

    id: str
    date: Optional[date]
    diagnosis: str
    treatment: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": to_iso(self.date),
            "diagnosis": self.diagnosis,
            "treatment": self.treatment,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicalRecord":
        return cls(
            id=str(data["id"]),
            date=parse_date(data.get("date")),
            diagnosis=data.get("diagnosis") or "",
            treatment=data.get("treatment") or "",
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Patient:
    """Patient demographic and contact record.

    Attributes:
        id: Unique patient identifier
        first_name: Patient's first name
        last_name: Patient's last name
        id_number: National ID number (teudat zehut)
        phone: Contact phone number
        email: Contact email (optional)
        birth_date: Date of birth (optional)
        address: Postal address (optional)
        medical_history: Append-only list of medical records
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    first_name: str
    last_name: str
    id_number: str = ""
    phone: str = ""
    email: Optional[str] = None
    birth_date: Optional[date] = None
    address: Optional[Address] = None
    medical_history: List[MedicalRecord] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def full_name(self) -> str:
        """First and last name joined by a single space."""
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "id_number": self.id_number,
            "phone": self.phone,
            "email": self.email,
            "birth_date": to_iso(self.birth_date),
            "address": self.address.to_dict() if self.address else None,
            "medical_history": [record.to_dict() for record in self.medical_history],
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patient":
        """Build a patient from a dictionary.

        Unparseable birth dates are stored as None so that age derivation
        falls back to the blank marker instead of failing.
        """
        address_data = data.get("address")
        return cls(
            id=str(data["id"]),
            first_name=data.get("first_name", data.get("firstName", "")),
            last_name=data.get("last_name", data.get("lastName", "")),
            id_number=data.get("id_number", data.get("idNumber", "")) or "",
            phone=data.get("phone") or "",
            email=data.get("email") or None,
            birth_date=parse_date(data.get("birth_date", data.get("birthDate"))),
            address=Address.from_dict(address_data) if address_data else None,
            medical_history=[
                MedicalRecord.from_dict(record)
                for record in data.get("medical_history", data.get("medicalHistory")) or []
            ],
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
        )
