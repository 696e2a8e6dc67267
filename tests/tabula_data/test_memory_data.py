from typing import Optional

import pytest

from pydantic import Field

from tabula.data import DataAccessManager, DataModel, InMemoryDriver, contains
from tabula.data.exceptions import DuplicateEntryError, ItemNotFoundError


class SampleMemoryConnector(InMemoryDriver):
    pass


class MemoryAccessManager(DataAccessManager):
    __connector__ = SampleMemoryConnector


@MemoryAccessManager.register_model('demo-resource')
class DemoDataResource(DataModel):
    id: str = Field(alias='_id')
    name: Optional[str] = None
    key: Optional[str] = None
    value: int = 0


@pytest.fixture
def manager():
    SampleMemoryConnector.reset()
    return MemoryAccessManager()


async def seed(manager):
    async with manager.transaction() as tx:
        await tx.insert_data(
            'demo-resource',
            {'_id': '1', 'name': 'one%', 'value': 10},
            {'_id': '2', 'name': 'two_', 'value': 20},
            {'_id': '3', 'name': None, 'value': 30},
        )


@pytest.mark.asyncio
async def test_memory_driver_basic_operations(manager):
    await seed(manager)

    async with manager.transaction() as tx:
        item = await tx.fetch('demo-resource', '1')
        assert item.name == 'one%'
        assert item.value == 10

        assert await tx.count('demo-resource') == 3
        assert await tx.find_one('demo-resource', identifier='missing') is None

        with pytest.raises(ItemNotFoundError):
            await tx.fetch('demo-resource', 'missing')

        assert await tx.update_data('demo-resource', '2', value=25) == 1
        assert (await tx.fetch('demo-resource', '2')).value == 25


@pytest.mark.asyncio
async def test_memory_query_operators(manager):
    await seed(manager)

    async with manager.transaction() as tx:
        items = await tx.query('demo-resource', where={'name.like': contains('%')}, limit=0)
        assert [i.id for i in items] == ['1']

        items = await tx.query('demo-resource', where={'name.null': True}, limit=0)
        assert [i.id for i in items] == ['3']

        items = await tx.query('demo-resource', where={'value.in': (10, 30)}, sort='value:desc', limit=0)
        assert [i.id for i in items] == ['3', '1']

        items = await tx.query('demo-resource', where={'.or': [{'value.lt': 15}, {'value.gt': 25}]}, sort='_id', limit=0)
        assert [i.id for i in items] == ['1', '3']

        items = await tx.query('demo-resource', where={'value!eq': 20}, sort='_id', limit=1, offset=1)
        assert [i.id for i in items] == ['3']


@pytest.mark.asyncio
async def test_memory_rollback(manager):
    await seed(manager)

    with pytest.raises(DuplicateEntryError):
        async with manager.transaction() as tx:
            await tx.insert_data('demo-resource', {'_id': '4', 'name': 'four'})
            await tx.insert_data('demo-resource', {'_id': '1', 'name': 'again'})

    async with manager.transaction() as tx:
        assert await tx.count('demo-resource') == 3
        assert await tx.find_one('demo-resource', identifier='4') is None


@pytest.mark.asyncio
async def test_memory_upsert_and_remove(manager):
    async with manager.transaction() as tx:
        await tx.upsert_data('demo-resource', {'_id': 'a', 'key': 'K', 'name': 'first'}, ('key',))
        await tx.upsert_data('demo-resource', {'_id': 'b', 'key': 'K', 'name': 'second'}, ('key',))

        # A missing key never conflicts
        await tx.upsert_data('demo-resource', {'_id': 'c', 'key': None, 'name': 'x'}, ('key',))
        await tx.upsert_data('demo-resource', {'_id': 'd', 'key': None, 'name': 'y'}, ('key',))

        items = await tx.query('demo-resource', where={'key': 'K'}, limit=0)
        assert [(i.id, i.name) for i in items] == [('a', 'second')]
        assert await tx.count('demo-resource') == 3

        assert await tx.remove_data('demo-resource', where={'key.null': True}) == 2
        assert await tx.remove_data('demo-resource', where={'key.null': True}) == 0
        assert await tx.count('demo-resource') == 1


@pytest.mark.asyncio
async def test_memory_insert_and_remove_records(manager):
    record = manager.create('demo-resource', {'_id': '5'}, name='five', value=5)
    assert isinstance(record, DemoDataResource)

    async with manager.transaction() as tx:
        await tx.insert(record)
        assert (await tx.fetch('demo-resource', '5')).name == 'five'

        assert await tx.remove(record) == 1
        assert await tx.find_one('demo-resource', identifier='5') is None
