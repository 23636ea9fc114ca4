"""Entry point for running clinidoc as a module.

This allows the package to be executed as:
    python -m clinidoc
"""

from clinidoc.cli.main import cli

if __name__ == "__main__":
    cli()
