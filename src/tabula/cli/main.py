"""Tabula command line tool."""

import click

from tabula import __version__
from tabula.cli import db, form


@click.group()
@click.version_option(version=__version__)
def cli():
    """Tabula command line tool."""
    pass


# Register command groups
cli.add_command(db.commands, name="db")
cli.add_command(form.commands, name="form")


if __name__ == "__main__":
    cli()
