from contextlib import asynccontextmanager

from tabula.helper import camel_to_lower
from tabula.data import logger, config
from tabula.data.exceptions import DataSchemaError

_DEBUG = config.DEBUG
_DRIVER_REGISTRY = {}


class DataDriver(object):
    ''' Storage backend contract used by the data access managers.

        All data operations are coroutines and, except for `transaction`
        itself, must be awaited inside an active transaction.
    '''
    __data_schema_base__ = None

    def __init_subclass__(cls):
        key = cls.__name__
        if key in _DRIVER_REGISTRY:
            raise ValueError(f'Data storage driver already registered: {key}')

        cls.__data_schema_registry__ = {}
        _DRIVER_REGISTRY[key] = cls
        _DEBUG and logger.info('Registered data driver: %s => %s', key, cls)

    @classmethod
    def lookup_data_schema(cls, schema):
        try:
            if isinstance(schema, str):
                return cls.__data_schema_registry__[schema]

            if cls.__data_schema_base__ and issubclass(schema, cls.__data_schema_base__):
                return schema

            raise DataSchemaError('E00.301', f'Invalid resource specification: {schema}')
        except KeyError:
            raise DataSchemaError('E00.302', f'Data schema is not registered: {schema}')

    @classmethod
    def register_schema(cls, data_schema=None, /, name=None):
        def _decorator(schema_cls):
            if name is not None:
                schema_name = name
            else:
                schema_name = getattr(schema_cls, '__tablename__', None) or camel_to_lower(schema_cls.__name__)

            if schema_name in cls.__data_schema_registry__:
                raise DataSchemaError('E00.303', f'Schema model already registered: {schema_name}')

            schema = cls.validate_data_schema(schema_cls)
            if cls.__data_schema_base__ and not issubclass(schema, cls.__data_schema_base__):
                raise DataSchemaError(
                    'E00.304',
                    f'Invalid data schema [{schema_cls}] for data driver [{cls}]. '
                    f'Must be subclass of {cls.__data_schema_base__}'
                )

            schema.__data_schema__ = schema_name
            cls.__data_schema_registry__[schema_name] = schema
            return schema_cls

        if data_schema is None:
            return _decorator

        return _decorator(data_schema)

    @classmethod
    def validate_data_schema(cls, schema_model):
        return schema_model

    @asynccontextmanager
    async def transaction(self, *args, **kwargs):
        raise NotImplementedError('DataDriver.transaction is not implemented.')
        yield

    async def insert(self, resource, values):
        raise NotImplementedError('DataDriver.insert is not implemented.')

    async def find_one(self, resource, query):
        raise NotImplementedError('DataDriver.find_one is not implemented.')

    async def query(self, resource, query):
        raise NotImplementedError('DataDriver.query is not implemented.')

    async def count(self, resource, query):
        raise NotImplementedError('DataDriver.count is not implemented.')

    async def upsert(self, resource, data, conflict_fields):
        raise NotImplementedError('DataDriver.upsert is not implemented.')

    async def update_data(self, resource, query, **updates):
        raise NotImplementedError('DataDriver.update_data is not implemented.')

    async def remove(self, resource, query):
        raise NotImplementedError('DataDriver.remove is not implemented.')

    async def dispose(self):
        pass
