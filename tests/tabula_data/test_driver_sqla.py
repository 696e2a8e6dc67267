from itertools import product
from typing import Optional

import pytest
import pytest_asyncio
import sqlalchemy as sa

from pydantic import Field

from tabula.data import DataAccessManager, DataModel, SqlaDriver, contains
from tabula.data.data_driver.sqla import DomainSchema
from tabula.data.exceptions import DuplicateEntryError
from tabula.error import BadRequestError, ConflictError


class SampleConnector(SqlaDriver):
    pass


class SampleSchema(SampleConnector.__data_schema_base__, DomainSchema):
    __tablename__ = 'sample_item'

    name = sa.Column(sa.String(255))
    code = sa.Column(sa.String(64), unique=True, nullable=True)
    score = sa.Column(sa.Integer, default=0)


class SampleManager(DataAccessManager):
    __connector__ = SampleConnector


@SampleManager.register_model('sample_item')
class SampleItem(DataModel):
    id: str = Field(alias='_id')
    name: Optional[str] = None
    code: Optional[str] = None
    score: int = 0


@pytest_asyncio.fixture
async def manager(tmp_path):
    mgr = SampleManager(dsn=f"sqlite+aiosqlite:///{tmp_path}/sample.sqlite")
    await mgr.connector.create_schema()
    async with mgr.transaction('fixture') as tx:
        await tx.insert_data(
            'sample_item',
            {'_id': 'A', 'name': 'one%', 'score': 1},
            {'_id': 'B', 'name': 'two_', 'score': 2},
            {'_id': 'C', 'name': 'One', 'score': 3},
        )

    yield mgr
    await mgr.dispose()


@pytest.mark.asyncio
async def test_sqla_insert_and_fetch(manager):
    async with manager.transaction() as tx:
        item = await tx.fetch('sample_item', 'A')
        assert isinstance(item, SampleItem)
        assert item.name == 'one%'

        assert await tx.find_one('sample_item', identifier='missing') is None
        assert await tx.count('sample_item') == 3


@pytest.mark.asyncio
async def test_sqla_duplicate_entry(manager):
    with pytest.raises(DuplicateEntryError) as exc_info:
        async with manager.transaction() as tx:
            await tx.insert_data('sample_item', {'_id': 'A', 'name': 'again'})

    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.status_code == 409

    async with manager.transaction() as tx:
        assert (await tx.fetch('sample_item', 'A')).name == 'one%'


@pytest.mark.asyncio
async def test_sqla_escaped_like(manager):
    async with manager.transaction() as tx:
        items = await tx.query('sample_item', where={'name.like': contains('%')}, limit=0)
        assert [i.id for i in items] == ['A']

        items = await tx.query('sample_item', where={'name.like': contains('_')}, limit=0)
        assert [i.id for i in items] == ['B']

        # Case sensitive on sqlite as well
        items = await tx.query('sample_item', where={'name.like': contains('One')}, limit=0)
        assert [i.id for i in items] == ['C']

        items = await tx.query('sample_item', where={'name!like': contains('o')}, sort='_id:asc', limit=0)
        assert [i.id for i in items] == ['C']


@pytest.mark.asyncio
async def test_sqla_sort_limit_offset(manager):
    async with manager.transaction() as tx:
        items = await tx.query('sample_item', sort='score:desc', limit=2)
        assert [i.id for i in items] == ['C', 'B']

        items = await tx.query('sample_item', sort='score:desc', limit=0, offset=1)
        assert [i.id for i in items] == ['B', 'A']

        items = await tx.query('sample_item', where={'.or': [{'score': 1}, {'score.gte': 3}]}, sort='_id', limit=0)
        assert [i.id for i in items] == ['A', 'C']


@pytest.mark.asyncio
async def test_sqla_upsert(manager):
    async with manager.transaction() as tx:
        await tx.upsert_data('sample_item', {'_id': 'D', 'name': 'first', 'code': 'K1'}, ('code',))
        await tx.upsert_data('sample_item', {'_id': 'E', 'name': 'second', 'code': 'K1'}, ('code',))

    async with manager.transaction() as tx:
        items = await tx.query('sample_item', where={'code': 'K1'}, limit=0)
        assert [(i.id, i.name) for i in items] == [('D', 'second')]


@pytest.mark.asyncio
async def test_sqla_update_and_remove(manager):
    async with manager.transaction() as tx:
        assert await tx.update_data('sample_item', 'B', score=20) == 1
        assert (await tx.fetch('sample_item', 'B')).score == 20

        assert await tx.remove_data('sample_item', where={'score.lt': 3}) == 1
        assert await tx.remove_data('sample_item', where={'score.lt': 3}) == 0
        assert await tx.remove_data('sample_item', identifier='missing') == 0

        with pytest.raises(BadRequestError):
            await tx.remove_data('sample_item')

        assert await tx.count('sample_item') == 2


LIKE_ALPHABET = ('%', '_', '|', 'a', 'A')


@pytest.mark.asyncio
async def test_sqla_escaped_like_sweep(tmp_path):
    values = [''.join(chars) for size in range(4) for chars in product(LIKE_ALPHABET, repeat=size)]
    needles = [v for v in values if 0 < len(v) <= 2]

    mgr = SampleManager(dsn=f"sqlite+aiosqlite:///{tmp_path}/sweep.sqlite")
    await mgr.connector.create_schema()
    try:
        async with mgr.transaction() as tx:
            await tx.insert_data('sample_item', *({'_id': f'v{i:03d}', 'name': v} for i, v in enumerate(values)))

        async with mgr.transaction() as tx:
            for raw in needles:
                items = await tx.query('sample_item', where={'name.like': contains(raw)}, limit=0)
                assert sorted(i.name for i in items) == sorted(v for v in values if raw in v), raw
    finally:
        await mgr.dispose()
