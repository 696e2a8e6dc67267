from tabula.data import BackendQuery, contains
from tabula.data.constant import NO_TENANT_ID
from tabula.data.exceptions import IncorrectResultSizeError
from tabula.constant import QUERY_OPERATOR_SEP, DEFAULT_OPERATOR

from . import config, logger

DEFAULT_SORT = ('_created:asc', '_id:asc')


def query_filter(field_name, operator=DEFAULT_OPERATOR):
    def _filter(self, value):
        if operator in ('in', 'notin'):
            value = tuple(value)

        return self.filter(field_name, value, operator)

    _filter.__name__ = f'{field_name}_{operator}'
    return _filter


def like_filter(field_name):
    ''' The value is a raw, unescaped substring; it is escaped and wrapped
        with wildcards when the query runs. '''
    def _filter(self, raw):
        return self.filter_like(field_name, raw)

    _filter.__name__ = f'{field_name}_like'
    return _filter


def tenant_filters(field_name='tenant_id'):
    def without_tenant_id(self):
        return self.filter(field_name, NO_TENANT_ID)

    return query_filter(field_name), like_filter(field_name), without_tenant_id


class EntityQuery(object):
    ''' Fluent query over a resource of a data access manager.

        Filters combine with AND. Results are ordered by creation time,
        then identifier, both ascending.

        >>> await DeploymentQuery(manager).name_like('one%').list()
    '''
    __resource__ = None
    __sort__ = DEFAULT_SORT

    def __init__(self, manager):
        if self.__resource__ is None:
            raise ValueError(f'Query resource is not defined: {self.__class__.__name__}')

        self._manager = manager
        self._where = []
        self._likes = []

    def filter(self, field_name, value, operator=DEFAULT_OPERATOR):
        self._where.append({f'{field_name}{QUERY_OPERATOR_SEP}{operator}': value})
        return self

    def filter_like(self, field_name, raw):
        self._likes.append((field_name, raw))
        return self

    async def _prepare(self):
        ''' Extra statements resolved at execution time, e.g. foreign
            relation filters. Returning None means the query can not
            match anything. '''
        return []

    def _like_statements(self):
        for field_name, raw in self._likes:
            yield {f'{field_name}{QUERY_OPERATOR_SEP}like': contains(raw)}

    async def _backend_query(self, **kwargs):
        extra = await self._prepare()
        if extra is None:
            return None

        where = [*self._where, *self._like_statements(), *extra]
        return BackendQuery.create(where=where, sort=self.__sort__, **kwargs)

    async def _run(self, **kwargs):
        async with self._manager.transaction(self.__class__.__name__):
            q = await self._backend_query(**kwargs)
            if q is None:
                return []

            return await self._manager.query(self.__resource__, q)

    async def list(self):
        return await self._run(limit=0, offset=0)

    async def list_page(self, offset=0, limit=config.QUERY_PAGE_LIMIT):
        return await self._run(limit=limit, offset=offset)

    async def single_result(self):
        items = await self._run(limit=2, offset=0)
        if len(items) != 1:
            logger.debug('[%s] single result expected, got %d', self.__class__.__name__, len(items))
            raise IncorrectResultSizeError(
                'Q02.001',
                f'Query did not return a unique result [{self.__resource__}]: {len(items)} item(s)',
                expected=1,
                actual=len(items),
            )

        return items[0]

    async def count(self):
        async with self._manager.transaction(self.__class__.__name__):
            q = await self._backend_query(limit=0, offset=0)
            if q is None:
                return 0

            return await self._manager.count(self.__resource__, q.set(sort=()))
