"""Patient CLI commands.

Commands:
    patient add - Add a patient
    patient import <csv> - Import patients from CSV
    patient list - List patients
    patient show <id> - Show one patient
    patient check <id> - Check export readiness
    patient export <id> - Export the patient record to Word
"""

import asyncio
import json
import logging
import time
import uuid
from pathlib import Path
from typing import Optional

import click

from clinidoc.cli.common import fail, get_exporter, get_stores
from clinidoc.csv_parser.parser import parse_patients_csv
from clinidoc.export.readiness import check_export_readiness
from clinidoc.logging_audit.audit import log_audit_event
from clinidoc.models.patient import Address, Patient
from clinidoc.utils.dates import parse_date
from clinidoc.utils.exceptions import ClinidocError, RecordNotFoundError, ValidationError

logger = logging.getLogger(__name__)


@click.group(name="patient")
def patient_group() -> None:
    """Patient record commands."""


@patient_group.command(name="add")
@click.option("--first-name", required=True, help="First name")
@click.option("--last-name", required=True, help="Last name")
@click.option("--id-number", required=True, help="National ID number (9 digits)")
@click.option("--phone", required=True, help="Phone number")
@click.option("--email", default=None, help="Email address")
@click.option("--birth-date", default=None, help="Birth date (YYYY-MM-DD)")
@click.option("--street", default="", help="Street address")
@click.option("--city", default="", help="City")
@click.pass_context
def add_command(
    ctx: click.Context,
    first_name: str,
    last_name: str,
    id_number: str,
    phone: str,
    email: Optional[str],
    birth_date: Optional[str],
    street: str,
    city: str,
) -> None:
    """Add a patient.

    Example:
        clinidoc patient add --first-name דנה --last-name כהן \\
            --id-number 000000018 --phone 050-1234567 --birth-date 1990-05-15
    """
    try:
        parsed_birth = parse_date(birth_date) if birth_date else None
        if birth_date and parsed_birth is None:
            raise ValidationError(f"Invalid birth date '{birth_date}'. Expected YYYY-MM-DD")

        patient = Patient(
            id=str(uuid.uuid4()),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            id_number=id_number.strip(),
            phone=phone.strip(),
            email=email or None,
            birth_date=parsed_birth,
            address=Address(street=street, city=city) if (street or city) else None,
        )
        get_stores(ctx).patients.add(patient)
        click.secho(f"✓ Added patient {patient.full_name}", fg="green")
        click.echo(patient.id)
    except ClinidocError as e:
        fail(e)


@patient_group.command(name="import")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def import_command(ctx: click.Context, file: Path) -> None:
    """Import patients from a CSV file.

    Required columns: first_name, last_name, id_number, phone. Optional:
    id, email, birth_date, street, city, postal_code, country. Rows whose
    id already exists are skipped.

    Exit Codes:
        0: Import succeeded
        1: CSV invalid or store not writable

    Example:
        clinidoc patient import patients.csv
    """
    start = time.time()
    try:
        patients = parse_patients_csv(file)
        store = get_stores(ctx).patients

        imported = 0
        skipped = 0
        for patient in patients:
            if store.get(patient.id) is not None:
                logger.warning(f"Skipping patient {patient.id}: id already exists")
                skipped += 1
                continue
            store.add(patient)
            imported += 1

        log_audit_event("PATIENTS_IMPORTED", {
            "status": "success",
            "input_file": str(file),
            "record_count": imported,
            "skipped": skipped,
            "duration": time.time() - start,
        })
        click.secho(f"✓ Imported {imported} patient(s)", fg="green")
        if skipped:
            click.secho(f"  Skipped {skipped} existing patient(s)", fg="yellow")
    except (ClinidocError, FileNotFoundError) as e:
        log_audit_event("PATIENTS_IMPORTED", {
            "status": "failure",
            "input_file": str(file),
            "error_message": str(e),
        })
        fail(e)


@patient_group.command(name="list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List patients."""
    try:
        patients = sorted(
            get_stores(ctx).patients.list(), key=lambda p: (p.last_name, p.first_name)
        )
    except ClinidocError as e:
        fail(e)

    if not patients:
        click.echo("No patients found")
        return
    for patient in patients:
        click.echo(f"{patient.id}  {patient.full_name}  {patient.id_number}  {patient.phone}")


@patient_group.command(name="show")
@click.argument("patient_id")
@click.pass_context
def show_command(ctx: click.Context, patient_id: str) -> None:
    """Show a patient as JSON."""
    try:
        patient = get_stores(ctx).patients.get(patient_id)
        if patient is None:
            raise RecordNotFoundError("patient", patient_id)
    except ClinidocError as e:
        fail(e)
    click.echo(json.dumps(patient.to_dict(), ensure_ascii=False, indent=2))


@patient_group.command(name="check")
@click.argument("patient_id")
@click.pass_context
def check_command(ctx: click.Context, patient_id: str) -> None:
    """Check whether a patient record is ready for export.

    Exit Codes:
        0: Ready (warnings allowed)
        1: Blocking issues found
    """
    try:
        patient = get_stores(ctx).patients.get(patient_id)
        if patient is None:
            raise RecordNotFoundError("patient", patient_id)
    except ClinidocError as e:
        fail(e)

    readiness = check_export_readiness(patient)
    for warning in readiness.warnings:
        click.secho(f"  ! {warning.message}", fg="yellow")
    if readiness.ready:
        click.secho("✓ Ready for export", fg="green")
        return
    for issue in readiness.issues:
        click.secho(f"  ✗ {issue}", fg="red")
    raise click.exceptions.Exit(1)


@patient_group.command(name="export")
@click.argument("patient_id")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: export.output_dir from config)",
)
@click.option(
    "--sanitize",
    is_flag=True,
    help="Mask the ID number and phone and leave out the email",
)
@click.pass_context
def export_command(
    ctx: click.Context, patient_id: str, output: Optional[Path], sanitize: bool
) -> None:
    """Export a patient record to a Word file.

    Example:
        clinidoc patient export <patient-id> --output exports/
        clinidoc patient export <patient-id> --sanitize
    """
    try:
        patient = get_stores(ctx).patients.get(patient_id)
        if patient is None:
            raise RecordNotFoundError("patient", patient_id)
        result = asyncio.run(
            get_exporter(ctx, output).export_patient(patient, sanitize=sanitize)
        )
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Exported {result.path}", fg="green")
