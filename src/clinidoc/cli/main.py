"""Main CLI entry point for clinidoc.

This module provides the main Click command group for the clinidoc CLI.
"""

from pathlib import Path
from typing import Optional

import click

from clinidoc import __version__
from clinidoc.cli.document_commands import document_group
from clinidoc.cli.patient_commands import patient_group
from clinidoc.cli.template_commands import template_group
from clinidoc.config import load_config
from clinidoc.logging_audit import configure_logging, configure_operation_logging_from_config
from clinidoc.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="clinidoc")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of the JSON record stores (overrides config file)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (patient names, ID numbers, phones, emails) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    data_dir: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """clinidoc - Hebrew clinical documents from templates.

    Manages patients, document templates and documents, and exports
    right-to-left Word files.

    Common usage:

        # Install the built-in physiotherapy templates
        clinidoc template seed

        # Import patients from CSV
        clinidoc patient import patients.csv

        # Start a document and fill a field
        clinidoc document create <patient-id> builtin-initial-assessment
        clinidoc document set <document-id> chiefComplaint "כאבי גב"

        # Export to Word
        clinidoc document export <document-id>

    Use --help with any command for more information.
    """
    # Ensure context object exists for subcommands
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    if data_dir is not None:
        config_obj.storage.data_dir = data_dir
    ctx.obj["config"] = config_obj

    # Store CLI flags in context
    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    # Configure logging with precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii

    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )
    if not verbose:
        configure_operation_logging_from_config(config_obj.operation_logging)


# Register command groups
cli.add_command(patient_group)
cli.add_command(template_group)
cli.add_command(document_group)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Args:
        config_file: Path to configuration file to validate

    Example:
        clinidoc config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo("\nStorage:")
        click.echo(f"  Data dir:    {config_obj.storage.data_dir}")

        click.echo("\nExport:")
        click.echo(f"  Output dir:  {config_obj.export.output_dir}")
        click.echo(f"  Font:        {config_obj.export.font_name}")
        click.echo(f"  Margins:     {config_obj.export.margin_inches}in")

        click.echo("\nPractice:")
        click.echo(f"  Therapist:   {config_obj.practice.therapist_name or 'Not configured'}")
        click.echo(f"  License:     {config_obj.practice.license_number or 'Not configured'}")

        click.echo("\nLocale:")
        click.echo(f"  Date format: {config_obj.locale.date_format}")

        click.echo("\nLogging:")
        click.echo(f"  Level:       {config_obj.logging.level}")
        click.echo(f"  Log file:    {config_obj.logging.log_file}")
        click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"clinidoc version {__version__}")


if __name__ == "__main__":
    cli()
