"""Template validation and management CLI commands.

This module provides Click commands for validating template definition files
and managing the templates held in the template store.

Commands:
    template validate <file> - Validate template structure and placeholders
    template import <file> - Load templates from JSON into the store
    template list - List stored templates
    template seed - Install the built-in templates
"""

import logging
from pathlib import Path

import click

from clinidoc.cli.common import fail, get_stores
from clinidoc.template_engine.library import seed_default_templates
from clinidoc.template_engine.loader import TemplateLoader
from clinidoc.template_engine.validators import extract_placeholders, validate_template
from clinidoc.utils.exceptions import ClinidocError, TemplateError

logger = logging.getLogger(__name__)


@click.group(name="template")
def template_group() -> None:
    """Template validation and management commands.

    Use these commands to validate template definitions and to install them
    into the template store.
    """


@template_group.command(name="validate")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
def validate_command(file: Path) -> None:
    """Validate template structure and placeholders.

    Checks that every template in the file parses, that field names are
    unique, that patient-derived fields name a source, and reports body
    placeholders that match no field.

    Args:
        file: Path to template JSON file

    Exit Codes:
        0: Template is valid (warnings allowed)
        1: Template validation failed

    Example:
        clinidoc template validate templates/assessment.json
    """
    try:
        templates = TemplateLoader().load_from_file(file)
        logger.info(f"Loaded {len(templates)} template(s) from {file}")
    except TemplateError as e:
        click.secho(f"✗ Validation failed: {e}", fg="red")
        logger.error(f"Template validation failed for {file}: {e}")
        raise click.exceptions.Exit(1)

    for template in templates:
        click.secho(f"✓ {template.name} ({len(template.fields)} fields)", fg="green")

        placeholders = extract_placeholders(template.content)
        click.echo(f"  Found {len(placeholders)} placeholders:")
        for placeholder in sorted(placeholders):
            click.echo(f"    - {placeholder}")

        for warning in validate_template(template).warnings:
            click.secho(f"  ! {warning}", fg="yellow")


@template_group.command(name="import")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--replace",
    is_flag=True,
    help="Replace templates whose id already exists in the store",
)
@click.pass_context
def import_command(ctx: click.Context, file: Path, replace: bool) -> None:
    """Load templates from a JSON file into the store.

    Example:
        clinidoc template import templates/assessment.json --replace
    """
    try:
        templates = TemplateLoader().load_from_file(file)
        store = get_stores(ctx).templates

        for template in templates:
            if store.get(template.id) is None:
                store.add(template)
                click.secho(f"✓ Imported {template.name}", fg="green")
            elif replace:
                store.delete(template.id)
                store.add(template)
                click.secho(f"✓ Replaced {template.name}", fg="green")
            else:
                click.secho(
                    f"  Skipped {template.name}: id {template.id} already exists",
                    fg="yellow",
                )
    except ClinidocError as e:
        fail(e)


@template_group.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive templates")
@click.pass_context
def list_command(ctx: click.Context, show_all: bool) -> None:
    """List stored templates."""
    try:
        templates = get_stores(ctx).templates.list()
    except ClinidocError as e:
        fail(e)

    if not show_all:
        templates = [t for t in templates if t.is_active]
    if not templates:
        click.echo("No templates found")
        return
    for template in sorted(templates, key=lambda t: t.name):
        click.echo(
            f"{template.id}  {template.name}  [{template.category.value}]  "
            f"v{template.version}  used {template.usage_count}x"
        )


@template_group.command(name="seed")
@click.pass_context
def seed_command(ctx: click.Context) -> None:
    """Install the built-in physiotherapy templates."""
    try:
        added = seed_default_templates(get_stores(ctx).templates)
    except ClinidocError as e:
        fail(e)

    if not added:
        click.echo("Built-in templates already installed")
    for template in added:
        click.secho(f"✓ Installed {template.name}", fg="green")
