import copy

from contextlib import asynccontextmanager
from tabula.data import logger, timestamp
from tabula.data.constant import ITEM_ID_FIELD, CREATED_FIELD
from tabula.data.exceptions import ItemNotFoundError, DuplicateEntryError
from tabula.data.pattern import like_match
from tabula.data.query import BackendQuery, QueryExpression
from tabula.constant import OPERATOR_SEP_NEGATE

from .base import DataDriver


def _apply_operator(item_value, expected_value, operator):
    match operator:
        case 'eq':
            return item_value == expected_value
        case 'ne':
            return item_value != expected_value
        case 'gt':
            return item_value is not None and item_value > expected_value
        case 'gte':
            return item_value is not None and item_value >= expected_value
        case 'lt':
            return item_value is not None and item_value < expected_value
        case 'lte':
            return item_value is not None and item_value <= expected_value
        case 'in':
            return item_value in expected_value if expected_value else False
        case 'notin':
            return item_value not in expected_value if expected_value else True
        case 'like':
            return like_match(item_value, expected_value)
        case 'null':
            return (item_value is None) == bool(expected_value)

    raise ValueError(f'(memory store) Unsupported query operator: {operator}')


def _match_expression(item, qe: QueryExpression):
    if not qe.field:
        results = (_match_expression(item, sub) for sub in qe.value)
        result = all(results) if qe.operator == 'and' else any(results)
    else:
        result = _apply_operator(item.get(qe.field), qe.value, qe.operator)

    return not result if qe.mode == OPERATOR_SEP_NEGATE else result


def _sort_key(value):
    # None sorts first, like NULLS FIRST on ascending order
    return (value is not None, value)


def query_resource(store, q: BackendQuery):
    expressions = q.expressions()

    def _match(item):
        if q.identifier is not None and item.get(ITEM_ID_FIELD) != str(q.identifier):
            return False

        return all(_match_expression(item, qe) for qe in expressions)

    results = [item for item in store.values() if _match(item)]

    # Apply in reverse order for stable sorting
    for stmt in reversed(q.sort):
        results.sort(key=lambda x: _sort_key(x.get(stmt.field)), reverse=stmt.direction == 'desc')

    start = q.offset or 0
    end = start + q.limit if q.limit else None
    return results[start:end]


class InMemoryDriver(DataDriver):
    ''' Dictionary backed driver. Each subclass owns a separate store. '''
    _MEMORY_STORE = {}

    def __init__(self, **kwargs):
        pass

    def __init_subclass__(cls):
        super().__init_subclass__()
        cls._MEMORY_STORE = {}

    @classmethod
    def lookup_data_schema(cls, schema):
        if isinstance(schema, str):
            return schema

        return getattr(schema, '__data_schema__', None) or super().lookup_data_schema(schema)

    @asynccontextmanager
    async def transaction(self, trace_msg=None):
        # Copy of the store to roll back to
        backup = copy.deepcopy(self._MEMORY_STORE)

        try:
            yield self
        except Exception:
            logger.warning("Rolling back memory transaction [%s]", trace_msg)
            self._MEMORY_STORE.clear()
            self._MEMORY_STORE.update(backup)
            raise

    @classmethod
    def _get_memory(cls, resource):
        name = cls.lookup_data_schema(resource)
        return cls._MEMORY_STORE.setdefault(name, {})

    @classmethod
    def reset(cls):
        cls._MEMORY_STORE.clear()

    async def query(self, resource, query: BackendQuery):
        store = self._get_memory(resource)
        return [dict(item) for item in query_resource(store, query)]

    async def count(self, resource, query: BackendQuery):
        store = self._get_memory(resource)
        return len(query_resource(store, query.set(limit=0, offset=0)))

    async def find_one(self, resource, query: BackendQuery):
        store = self._get_memory(resource)
        results = query_resource(store, query)

        if not results:
            raise ItemNotFoundError(
                "E00.311",
                f"Query item not found.\n\t[RESOURCE] {resource}\n\t[QUERY   ] {query}"
            )

        return dict(results[0])

    def _insert_one(self, store, data):
        item = dict(data)
        item_id = str(item[ITEM_ID_FIELD])
        if item_id in store:
            raise DuplicateEntryError("E00.312", f'Item already exists: {item_id}')

        item[ITEM_ID_FIELD] = item_id
        item.setdefault(CREATED_FIELD, timestamp())
        store[item_id] = item
        return item

    async def insert(self, resource, values):
        store = self._get_memory(resource)

        if isinstance(values, (list, tuple)):
            return [self._insert_one(store, data) for data in values]

        return self._insert_one(store, values)

    async def upsert(self, resource, data, conflict_fields):
        store = self._get_memory(resource)
        key = tuple(data.get(f) for f in conflict_fields)

        # NULL never conflicts, like a unique index
        for item in store.values():
            if None not in key and tuple(item.get(f) for f in conflict_fields) == key:
                item.update({
                    k: v for k, v in data.items()
                    if k not in (ITEM_ID_FIELD, CREATED_FIELD)
                })
                return item

        return self._insert_one(store, data)

    async def update_data(self, resource, query, **updates):
        store = self._get_memory(resource)
        items = query_resource(store, query.set(limit=0, offset=0))
        for item in items:
            item.update(updates)

        return len(items)

    async def remove(self, resource, query):
        store = self._get_memory(resource)
        items = query_resource(store, query.set(limit=0, offset=0))
        for item in items:
            del store[item[ITEM_ID_FIELD]]

        return len(items)

    async def create_schema(self):
        pass

    async def drop_schema(self):
        self.reset()
