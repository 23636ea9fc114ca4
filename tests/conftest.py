"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests).
"""

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Callable

import pytest

from clinidoc.logging_audit import PIIRedactingFormatter
from clinidoc.logging_audit.logger import OPERATION_LOGGERS
from clinidoc.models import (
    Address,
    Document,
    FieldDefinition,
    FieldType,
    MedicalRecord,
    Patient,
    Template,
)
from clinidoc.store.repositories import (
    InMemoryDocumentStore,
    InMemoryPatientStore,
    InMemoryTemplateStore,
)
from clinidoc.template_engine.library import default_templates

FROZEN_NOW = datetime(2024, 6, 1, 10, 30)


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def frozen_now() -> datetime:
    """Fixed reference time: 2024-06-01 10:30."""
    return FROZEN_NOW


@pytest.fixture
def clock(frozen_now: datetime) -> Callable[[], datetime]:
    """Clock callable returning the frozen time."""
    return lambda: frozen_now


@pytest.fixture
def sample_patient() -> Patient:
    """
    Return a sample patient born 1990-05-15.

    Returns:
        Patient: Patient with contact details, address and one history entry.
    """
    return Patient(
        id="patient-0001",
        first_name="דנה",
        last_name="כהן",
        id_number="000000018",
        phone="050-1234567",
        email="dana@example.com",
        birth_date=date(1990, 5, 15),
        address=Address(street="הרצל 10", city="תל אביב", postal_code="6100000"),
        medical_history=[
            MedicalRecord(
                id="mr-1",
                date=date(2024, 1, 10),
                diagnosis="כאבי גב תחתון",
                treatment="תרגילי חיזוק",
            )
        ],
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )


@pytest.fixture
def library_templates() -> dict:
    """Built-in templates keyed by id."""
    return {template.id: template for template in default_templates()}


@pytest.fixture
def simple_template() -> Template:
    """
    Return a small template touching every interesting field kind.

    Returns:
        Template: Fields for name, age, a multi-choice, a date and a signature.
    """
    return Template(
        id="tpl-simple",
        name="סיכום ביקור",
        content="שם: {{patientName}}, גיל: {{age}}, מטרות: {{goals}}, לא קיים: {{ghostField}}",
        fields=[
            FieldDefinition(
                name="fullName",
                label="שם מלא",
                type=FieldType.PATIENT_DERIVED,
                patient_source_field="full_name",
                required=True,
                order=1,
            ),
            FieldDefinition(
                name="age",
                label="גיל",
                type=FieldType.PATIENT_DERIVED,
                patient_source_field="age",
                order=2,
            ),
            FieldDefinition(
                name="goals",
                label="מטרות",
                type=FieldType.MULTI_CHOICE,
                required=True,
                order=4,
            ),
            FieldDefinition(
                name="visitDate",
                label="תאריך ביקור",
                type=FieldType.DATE,
                required=True,
                order=3,
            ),
            FieldDefinition(
                name="signature",
                label="חתימה",
                type=FieldType.SIGNATURE,
                order=5,
            ),
        ],
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )


@pytest.fixture
def sample_document(simple_template: Template, sample_patient: Patient) -> Document:
    """Document over the simple template with stored values."""
    return Document(
        id="doc-00000000-abcdef12",
        name="סיכום ביקור - דנה כהן",
        template_id=simple_template.id,
        patient_id=sample_patient.id,
        data={
            "goals": ["הפחתת כאב", "שיפור יציבה"],
            "visitDate": "2024-05-30",
        },
        content=simple_template.content,
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )


@pytest.fixture
def stores(clock, sample_patient: Patient, simple_template: Template, library_templates):
    """In-memory stores holding the sample patient and all templates."""
    patients = InMemoryPatientStore(clock)
    templates = InMemoryTemplateStore(clock)
    documents = InMemoryDocumentStore(clock)
    patients.add(sample_patient)
    templates.add(simple_template)
    for template in library_templates.values():
        templates.add(template)
    return patients, templates, documents


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers and operation levels installed by configure_logging."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, PIIRedactingFormatter):
            root_logger.removeHandler(handler)
            handler.close()
    for logger_name in OPERATION_LOGGERS.values():
        logging.getLogger(logger_name).setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove CLINIDOC_* overrides inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("CLINIDOC_"):
            monkeypatch.delenv(key, raising=False)
