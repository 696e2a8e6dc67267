"""Form repository commands."""

from pathlib import Path

import click

from tabula.cli import async_command
from tabula.error import TabulaException
from tabula.form import FormEngine
from tabula.form.repository import read_form_resources


@click.group()
def commands():
    """Form repository commands."""
    pass


@commands.command()
@click.argument('sources', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option('--name', '-n', type=str, default=None, help='Deployment name')
@click.option('--tenant', '-t', 'tenant_id', type=str, default=None, help='Tenant of the deployment')
@click.option('--category', '-c', type=str, default=None, help='Deployment category')
@click.option('--dsn', type=str, default=None, help='Database DSN (default: tabula.form DB_DSN)')
@async_command
async def deploy(sources, name, tenant_id, category, dsn):
    """Deploy form model files (or directories of .form files)."""
    forms = {}
    for source in sources:
        if source.is_dir():
            forms.update(read_form_resources(source))
        else:
            forms[source.name] = source.read_text(encoding='utf-8')

    if not forms:
        raise click.ClickException("No form model found.")

    engine = FormEngine(dsn=dsn)
    try:
        deployment = await engine.repository_service.deploy(
            name=name, forms=forms, tenant_id=tenant_id, category=category
        )
        click.echo(f"Deployed {len(forms)} form(s) => deployment [{deployment.id}]")
    except TabulaException as e:
        raise click.ClickException(str(e))
    finally:
        await engine.dispose()


@commands.command()
@click.option('--name-like', type=str, default=None, help='Deployment name contains (literal)')
@click.option('--tenant', '-t', 'tenant_id', type=str, default=None, help='Tenant of the deployments')
@click.option('--key-like', type=str, default=None, help='Form definition key contains (literal)')
@click.option('--dsn', type=str, default=None, help='Database DSN (default: tabula.form DB_DSN)')
@async_command
async def deployments(name_like, tenant_id, key_like, dsn):
    """List deployments."""
    engine = FormEngine(dsn=dsn)
    try:
        query = engine.repository_service.create_deployment_query()
        if name_like:
            query.name_like(name_like)
        if tenant_id is not None:
            query.tenant_id(tenant_id)
        if key_like:
            query.definition_key_like(key_like)

        for item in await query.list():
            click.echo(f"{item.id}\t{item.name or '-'}\t{item.tenant_id or '-'}\t{item.category or '-'}\t{item.created}")
    except TabulaException as e:
        raise click.ClickException(str(e))
    finally:
        await engine.dispose()
