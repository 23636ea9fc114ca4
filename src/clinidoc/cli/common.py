"""Shared helpers for CLI commands.

Builds stores, services and formatters from the loaded configuration stored
in the click context, and prints errors in a uniform way.
"""

import logging
from typing import NoReturn

import click

from clinidoc.config.schema import Config
from clinidoc.documents.service import DocumentService
from clinidoc.export.docx_serializer import DocxExportSerializer
from clinidoc.export.exporter import DocumentExporter
from clinidoc.export.patient_record import PatientRecordSerializer
from clinidoc.store.json_store import Stores, open_stores
from clinidoc.template_engine.assembly import DocumentAssembler
from clinidoc.template_engine.formatter import FieldValueFormatter
from clinidoc.utils.exceptions import create_error_info

logger = logging.getLogger(__name__)


def get_config(ctx: click.Context) -> Config:
    """Configuration loaded by the root command (defaults if run standalone)."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = Config()
    return ctx.obj["config"]


def get_stores(ctx: click.Context) -> Stores:
    """Open the JSON stores once per invocation."""
    ctx.ensure_object(dict)
    if "stores" not in ctx.obj:
        ctx.obj["stores"] = open_stores(get_config(ctx).storage.data_dir)
    return ctx.obj["stores"]


def build_formatter(config: Config) -> FieldValueFormatter:
    """Formatter using the configured date formats."""
    return FieldValueFormatter(
        date_format=config.locale.date_format,
        datetime_format=config.locale.datetime_format,
        time_format=config.locale.time_format,
    )


def get_service(ctx: click.Context) -> DocumentService:
    """Document service over the JSON stores."""
    config = get_config(ctx)
    stores = get_stores(ctx)
    return DocumentService(
        stores.patients,
        stores.templates,
        stores.documents,
        assembler=DocumentAssembler(formatter=build_formatter(config)),
    )


def get_exporter(ctx: click.Context, output_dir=None) -> DocumentExporter:
    """Exporter writing to ``output_dir`` or the configured directory."""
    config = get_config(ctx)
    formatter = build_formatter(config)
    return DocumentExporter(
        output_dir or config.export.output_dir,
        serializer=DocxExportSerializer(config.export, formatter),
        patient_serializer=PatientRecordSerializer(
            config.export, config.practice, formatter
        ),
    )


def fail(error: Exception) -> NoReturn:
    """Print structured error information and exit with code 1."""
    info = create_error_info(error)
    click.secho(f"✗ {info.message}", fg="red", err=True)
    click.echo(f"  Category: {info.category.value}", err=True)
    click.echo(f"  Fix: {info.remediation}", err=True)
    if info.technical_details:
        click.echo(f"  Details: {info.technical_details}", err=True)
    logger.error(f"{info.error_type}: {info.message}")
    raise click.exceptions.Exit(1)
