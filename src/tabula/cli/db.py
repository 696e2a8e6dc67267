"""Database management commands."""

import click

from tabula.form import FormEngine
from tabula.cli import async_command


@click.group()
def commands():
    """Database management commands."""
    pass


@commands.command('create-schema')
@click.option('--dsn', type=str, default=None, help='Database DSN (default: tabula.form DB_DSN)')
@async_command
async def create_schema(dsn: str):
    """Create the form repository tables."""
    engine = FormEngine(dsn=dsn)
    try:
        await engine.create_schema()
        click.echo(f"Form tables created [{engine.manager.connector.dsn}]")
    except Exception as e:
        raise click.ClickException(f"Failed to create schema: {e}")
    finally:
        await engine.dispose()


@commands.command('drop-schema')
@click.option('--dsn', type=str, default=None, help='Database DSN (default: tabula.form DB_DSN)')
@click.confirmation_option(prompt='Drop all form tables and their data?')
@async_command
async def drop_schema(dsn: str):
    """Drop the form repository tables."""
    engine = FormEngine(dsn=dsn)
    try:
        await engine.drop_schema()
        click.echo(f"Form tables dropped [{engine.manager.connector.dsn}]")
    except Exception as e:
        raise click.ClickException(f"Failed to drop schema: {e}")
    finally:
        await engine.dispose()
