from pathlib import Path

import pytest
import pytest_asyncio

from tabula.form import FormEngine, FormMemoryConnector

RESOURCE_DIR = Path(__file__).parent / 'resources'


def load_form(name):
    return (RESOURCE_DIR / name).read_text(encoding='utf-8')


@pytest.fixture
def sqlite_dsn(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path}/tabula_form.sqlite"


@pytest_asyncio.fixture(params=['sqlite', 'memory'])
async def engine(request, sqlite_dsn):
    """ Form engine on a fresh store, for each backend """
    if request.param == 'memory':
        FormMemoryConnector.reset()
        form_engine = FormEngine.in_memory()
    else:
        form_engine = FormEngine(dsn=sqlite_dsn)

    await form_engine.create_schema()
    yield form_engine
    await form_engine.drop_schema()
    await form_engine.dispose()


@pytest_asyncio.fixture
async def sqlite_engine(sqlite_dsn):
    form_engine = FormEngine(dsn=sqlite_dsn)
    await form_engine.create_schema()
    yield form_engine
    await form_engine.dispose()


@pytest.fixture
def deploy(engine):
    async def _deploy(*resources, tenant_id=None, name=None):
        forms = {resource: load_form(resource) for resource in resources}
        return await engine.repository_service.deploy(name=name or resources[0], forms=forms, tenant_id=tenant_id)

    return _deploy
