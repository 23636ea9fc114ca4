"""Document lifecycle CLI commands.

Commands:
    document create <patient-id> <template-id> - Start a document
    document list - List documents
    document set <id> <field> <value>... - Set one field value
    document status <id> <status> - Change status
    document sign <id> --by <name> - Sign
    document duplicate <id> - Copy into a new draft
    document delete <id> - Delete
    document preview <id> - Show the assembled document
    document export <id> - Export to Word
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from clinidoc.cli.common import fail, get_config, get_exporter, get_service
from clinidoc.export.readiness import check_export_readiness
from clinidoc.models.document import DocumentStatus
from clinidoc.models.fields import FieldType
from clinidoc.utils.exceptions import ClinidocError

logger = logging.getLogger(__name__)

STATUS_CHOICES = [status.value for status in DocumentStatus]


@click.group(name="document")
def document_group() -> None:
    """Document lifecycle commands."""


@document_group.command(name="create")
@click.argument("patient_id")
@click.argument("template_id")
@click.option("--name", default=None, help="Document title (default: template and patient name)")
@click.pass_context
def create_command(
    ctx: click.Context, patient_id: str, template_id: str, name: Optional[str]
) -> None:
    """Start a draft document from a template.

    Patient-derived fields are filled from the patient record at creation.

    Example:
        clinidoc document create <patient-id> builtin-treatment-report
    """
    try:
        document = get_service(ctx).create_document(patient_id, template_id, name)
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Created {document.name}", fg="green")
    click.echo(document.id)


@document_group.command(name="list")
@click.option("--patient", "patient_id", default=None, help="Only documents of this patient")
@click.option("--search", "term", default=None, help="Filter by name or tag")
@click.pass_context
def list_command(ctx: click.Context, patient_id: Optional[str], term: Optional[str]) -> None:
    """List documents."""
    try:
        service = get_service(ctx)
        if patient_id:
            documents = service.list_for_patient(patient_id)
        elif term:
            documents = service.search(term)
        else:
            documents = service.documents.list()
    except ClinidocError as e:
        fail(e)

    if not documents:
        click.echo("No documents found")
        return
    for document in documents:
        click.echo(
            f"{document.id}  {document.name}  [{document.status.label}]  v{document.version}"
        )


@document_group.command(name="set")
@click.argument("document_id")
@click.argument("field_name")
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def set_command(
    ctx: click.Context, document_id: str, field_name: str, values: Tuple[str, ...]
) -> None:
    """Set one field value.

    Several values set a multi-choice field; numbers are stored as numbers
    for number and rating fields.

    Example:
        clinidoc document set <id> painLevel 7
        clinidoc document set <id> goals "הפחתת כאב" "שיפור תנועתיות"
    """
    try:
        service = get_service(ctx)
        document = service.get_document(document_id)
        template = service.templates.get(document.template_id)
        field = template.get_field(field_name) if template else None
        value = _coerce_value(field.type if field else None, values)
        document = service.update_field(document_id, field_name, value)
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Updated {field_name} (version {document.version})", fg="green")


def _coerce_value(field_type: Optional[FieldType], values: Tuple[str, ...]):
    if field_type is FieldType.MULTI_CHOICE or len(values) > 1:
        return list(values)
    value = values[0]
    if field_type in (FieldType.NUMBER, FieldType.RATING):
        try:
            number = float(value)
        except ValueError:
            return value
        return int(number) if number.is_integer() else number
    return value


@document_group.command(name="status")
@click.argument("document_id")
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@click.pass_context
def status_command(ctx: click.Context, document_id: str, status: str) -> None:
    """Change document status."""
    try:
        document = get_service(ctx).set_status(document_id, DocumentStatus(status))
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Status: {document.status.label}", fg="green")


@document_group.command(name="sign")
@click.argument("document_id")
@click.option("--by", "signed_by", default=None, help="Signer name (default: practice therapist)")
@click.pass_context
def sign_command(ctx: click.Context, document_id: str, signed_by: Optional[str]) -> None:
    """Sign a document."""
    signer = signed_by or get_config(ctx).practice.therapist_name
    if not signer:
        click.secho("✗ Signer name required: pass --by or set practice.therapist_name", fg="red")
        raise click.exceptions.Exit(1)
    try:
        document = get_service(ctx).sign(document_id, signer)
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Signed by {document.signed_by}", fg="green")


@document_group.command(name="duplicate")
@click.argument("document_id")
@click.option("--name", default=None, help="Name of the copy")
@click.pass_context
def duplicate_command(ctx: click.Context, document_id: str, name: Optional[str]) -> None:
    """Copy a document into a new draft."""
    try:
        copied = get_service(ctx).duplicate(document_id, name)
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Created {copied.name}", fg="green")
    click.echo(copied.id)


@document_group.command(name="delete")
@click.argument("document_id")
@click.confirmation_option(prompt="Delete this document?")
@click.pass_context
def delete_command(ctx: click.Context, document_id: str) -> None:
    """Delete a document."""
    try:
        get_service(ctx).delete(document_id)
    except ClinidocError as e:
        fail(e)
    click.secho("✓ Deleted", fg="green")


@document_group.command(name="preview")
@click.argument("document_id")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def preview_command(ctx: click.Context, document_id: str, json_output: bool) -> None:
    """Show the assembled document.

    Unfilled placeholders in the body show the preview blank marker.
    """
    config = get_config(ctx)
    try:
        assembled = get_service(ctx).assemble(
            document_id, blank_marker=config.locale.preview_blank_marker
        )
    except ClinidocError as e:
        fail(e)

    if json_output:
        click.echo(json.dumps(assembled.to_dict(), ensure_ascii=False, indent=2))
        return

    stats = assembled.completion_stats
    click.echo(
        f"Completion: {stats.required_filled}/{stats.required_total} "
        f"required ({stats.percentage}%)\n"
    )
    for item in assembled.populated_fields:
        click.echo(f"{item.label}: {item.formatted_value}")
    click.echo("")
    click.echo(assembled.resolved_body)


@document_group.command(name="export")
@click.argument("document_id")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: export.output_dir from config)",
)
@click.option(
    "--check/--no-check",
    default=False,
    help="Refuse to export when readiness checks find blocking issues",
)
@click.option(
    "--mark-exported",
    is_flag=True,
    help="Set the document status to exported after writing the file",
)
@click.pass_context
def export_command(
    ctx: click.Context,
    document_id: str,
    output: Optional[Path],
    check: bool,
    mark_exported: bool,
) -> None:
    """Export a document to a Word file.

    Example:
        clinidoc document export <id> --output exports/ --check
    """
    try:
        service = get_service(ctx)
        document = service.get_document(document_id)
        template, patient = service.resolve_references(document)

        if check:
            readiness = check_export_readiness(patient, document)
            if not readiness.ready:
                for issue in readiness.issues:
                    click.secho(f"  ✗ {issue}", fg="red")
                raise click.exceptions.Exit(1)

        assembled = service.assembler.assemble(template, patient, document)
        result = asyncio.run(
            get_exporter(ctx, output).export_document(assembled, document, template, patient)
        )
        if mark_exported:
            service.set_status(document_id, DocumentStatus.EXPORTED)
    except ClinidocError as e:
        fail(e)
    click.secho(f"✓ Exported {result.path}", fg="green")
