import json

import pytest
import pytest_asyncio

from tabula.data.exceptions import IncorrectResultSizeError
from tabula.error import NotFoundError, ValidationError


def form_source(key):
    return json.dumps({
        'key': key,
        'name': f'Form {key}',
        'fields': [{'id': 'input1', 'type': 'text'}],
    })


@pytest_asyncio.fixture
async def deployments(engine):
    repository = engine.repository_service
    one = await repository.deploy(
        name='one%', forms={'one%.form': form_source('one%')}, tenant_id='One%', category='testCategory'
    )
    two = await repository.deploy(
        name='two_', forms={'two_.form': form_source('two_')}, tenant_id='Two_'
    )
    return one, two


@pytest.mark.asyncio
async def test_query_by_name_like(engine, deployments):
    repository = engine.repository_service

    query = repository.create_deployment_query().name_like('%')
    assert (await query.single_result()).name == 'one%'
    assert len(await query.list()) == 1
    assert await query.count() == 1

    query = repository.create_deployment_query().name_like('_')
    assert (await query.single_result()).name == 'two_'
    assert len(await query.list()) == 1
    assert await query.count() == 1


@pytest.mark.asyncio
async def test_query_by_tenant_id_like(engine, deployments):
    repository = engine.repository_service

    query = repository.create_deployment_query().tenant_id_like('%')
    assert (await query.single_result()).tenant_id == 'One%'
    assert await query.count() == 1

    query = repository.create_deployment_query().tenant_id_like('_')
    assert (await query.single_result()).tenant_id == 'Two_'
    assert await query.count() == 1

    assert await repository.create_deployment_query().tenant_id('Two_').count() == 1
    assert await repository.create_deployment_query().without_tenant_id().count() == 0


@pytest.mark.asyncio
async def test_query_by_definition_key_like(engine, deployments):
    one, two = deployments
    repository = engine.repository_service

    query = repository.create_deployment_query().definition_key_like('_')
    assert [d.id for d in await query.list()] == [two.id]
    assert await query.count() == 1

    query = repository.create_deployment_query().definition_key('one%')
    assert (await query.single_result()).id == one.id

    query = repository.create_deployment_query().definition_key_like('missing')
    assert await query.list() == []
    assert await query.count() == 0


@pytest.mark.asyncio
async def test_like_is_case_sensitive(engine, deployments):
    repository = engine.repository_service

    assert await repository.create_deployment_query().name_like('ONE').count() == 0
    assert await repository.create_deployment_query().tenant_id_like('one').count() == 0
    assert await repository.create_deployment_query().tenant_id_like('One').count() == 1


@pytest.mark.asyncio
async def test_filters_combine_and_order(engine, deployments):
    one, two = deployments
    repository = engine.repository_service

    assert [d.id for d in await repository.create_deployment_query().list()] == [one.id, two.id]
    assert [d.id for d in await repository.create_deployment_query().list_page(1, 1)] == [two.id]

    query = repository.create_deployment_query().name_like('o').category('testCategory')
    assert [d.id for d in await query.list()] == [one.id]

    query = repository.create_deployment_query().name_like('%').tenant_id('Two_')
    assert await query.count() == 0


@pytest.mark.asyncio
async def test_single_result_requires_exactly_one(engine, deployments):
    repository = engine.repository_service

    with pytest.raises(IncorrectResultSizeError) as exc_info:
        await repository.create_deployment_query().name_like('o').single_result()
    assert exc_info.value.actual == 2

    with pytest.raises(IncorrectResultSizeError) as exc_info:
        await repository.create_deployment_query().name_like('zzz').single_result()
    assert exc_info.value.actual == 0


@pytest.mark.asyncio
async def test_form_definition_versions(engine, deployments):
    repository = engine.repository_service
    again = await repository.deploy(name='again', forms=[form_source('two_')], tenant_id='Two_')

    query = repository.create_form_definition_query().key('two_').tenant_id('Two_')
    versions = [d.version for d in await query.list()]
    assert versions == [1, 2]

    latest = await repository.get_form_model_by_key('two_', 'Two_')
    assert latest.version == 2
    assert latest.deployment_id == again.id
    assert latest.form_model.version == 2

    # Versions are counted per tenant
    other = await repository.deploy(forms=[form_source('two_')], tenant_id='Other')
    definition = await repository.create_form_definition_query().deployment_id(other.id).single_result()
    assert definition.version == 1


@pytest.mark.asyncio
async def test_deploy_rejects_invalid_models(engine):
    repository = engine.repository_service

    with pytest.raises(ValidationError):
        await repository.deploy(forms=[form_source('dup'), form_source('dup')])

    with pytest.raises(ValidationError):
        await repository.deploy(forms=['{"name": "no key"}'])

    with pytest.raises(ValidationError):
        await repository.deploy(forms=['not json'])

    assert await repository.create_deployment_query().count() == 0


@pytest.mark.asyncio
async def test_delete_deployment_cascade(engine, deployments):
    one, two = deployments
    repository = engine.repository_service
    form_service = engine.form_service

    form_info = await repository.get_form_model_by_key('one%', 'One%')
    await form_service.create_form_instance({'input1': 'x'}, form_info, 'aTaskId')
    assert await form_service.create_form_instance_query().tenant_id('One%').count() == 1

    assert await repository.delete_deployment(one.id, cascade=True) == 1
    assert await form_service.create_form_instance_query().count() == 0
    assert await repository.create_form_definition_query().deployment_id(one.id).count() == 0

    with pytest.raises(NotFoundError):
        await repository.get_deployment(one.id)

    assert (await repository.get_deployment(two.id)).name == 'two_'
    assert await repository.delete_deployment(two.id) == 1
    assert await repository.create_deployment_query().count() == 0
