""" Data Access Interface

    A data access manager maps each resource of its connector (i.e. a table
    of the database driver) to an application data model which is database
    agnostic, so the same application code runs on every backend.
"""

from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import List, Optional, Type

from tabula.helper import select_value
from tabula.data import logger, config
from tabula.data.helper import serialize_mapping, generate_etag, timestamp
from tabula.data.data_driver import DataDriver
from tabula.data.data_model import DataModel
from tabula.data.query import BackendQuery
from tabula.data.exceptions import ItemNotFoundError
from tabula.data.constant import UPDATED_FIELD, ETAG_FIELD
from tabula.error import BadRequestError, InternalServerError

DEBUG = config.DEBUG


class ResourceAlreadyRegistered(Exception):
    pass


class DataAccessManager(object):
    # Database driver class that provides data to the manager
    __connector__ = None
    __abstract__ = True

    def __init_subclass__(cls, connector=None):
        super().__init_subclass__()

        if cls.__dict__.get('__abstract__'):
            return

        cls._MODELS = dict(getattr(cls, '_MODELS', {}))
        cls._RESOURCES = dict(getattr(cls, '_RESOURCES', {}))
        cls.__connector__ = select_value(connector, cls.__connector__)

    def __init__(self, **config):
        self._connector = self.setup_connector(config)

    @classmethod
    def register_model(cls, model_name: str):
        def _decorator(model_cls: Type[DataModel]):
            if model_name in cls._MODELS:
                raise ResourceAlreadyRegistered(f'Resource already registered: {model_name} => {cls._MODELS[model_name]}')

            cls._RESOURCES[model_cls] = model_name
            cls._MODELS[model_name] = model_cls

            DEBUG and logger.debug('Registered model: %s => %s', model_name, model_cls)
            return model_cls

        return _decorator

    @classmethod
    def lookup_model(cls, model_name):
        try:
            return cls._MODELS[model_name]
        except KeyError:
            raise InternalServerError('E00.207', f'Model is not registered: {model_name}')

    @classmethod
    def lookup_record_model(cls, record):
        return cls._RESOURCES[record.__class__]

    @property
    def connector(self):
        return self._connector

    def setup_connector(self, config):
        con_cls = self.__connector__
        if not con_cls or not issubclass(con_cls, DataDriver):
            raise InternalServerError('E00.204', f'Invalid data driver/connector: {con_cls}')

        return con_cls(**config)

    @asynccontextmanager
    async def transaction(self, trace_msg=None):
        async with self.connector.transaction(trace_msg):
            yield self

    async def dispose(self):
        await self.connector.dispose()

    @classmethod
    def create(cls, model_name: str, data: dict = None, /, **kwargs) -> DataModel:
        """ Create a single resource instance in memory (not saved yet!) """
        return cls.lookup_model(model_name).create(data, **kwargs)

    @classmethod
    def _wrap_item(cls, model_name, data):
        model_cls = cls.lookup_model(model_name)
        if isinstance(data, model_cls):
            return data

        if not isinstance(data, Mapping):
            data = serialize_mapping(data)

        return model_cls(**data)

    @classmethod
    def _wrap_list(cls, model_name, item_list):
        return [cls._wrap_item(model_name, data) for data in item_list]

    async def fetch(self, model_name: str, identifier, /, **kwargs) -> DataModel:
        """ Fetch exactly 1 item from the data store using its primary identifier """
        q = BackendQuery.create(identifier=identifier, where=kwargs, limit=1)
        item = await self.connector.find_one(model_name, q)
        return self._wrap_item(model_name, item)

    async def find_one(self, model_name: str, q=None, /, **query) -> Optional[DataModel]:
        """ Fetch the first matching item, or None """
        q = BackendQuery.create(q, **query, limit=1, offset=0)
        if q.limit != 1 or q.offset != 0:
            raise BadRequestError('E00.205', f'Invalid find_one query: {q}')

        try:
            item = await self.connector.find_one(model_name, q)
            return self._wrap_item(model_name, item)
        except ItemNotFoundError:
            return None

    async def query(self, model_name: str, q=None, /, **query) -> List[DataModel]:
        """ Query with offset and limits """
        q = BackendQuery.create(q, **query)
        data = await self.connector.query(model_name, q)
        return self._wrap_list(model_name, data)

    async def count(self, model_name: str, q=None, /, **query) -> int:
        q = BackendQuery.create(q, **query)
        return await self.connector.count(model_name, q)

    async def insert(self, record: DataModel):
        model_name = self.lookup_record_model(record)
        return await self.insert_data(model_name, record.serialize())

    async def insert_data(self, model_name: str, *records: dict):
        for data in records:
            data[ETAG_FIELD] = generate_etag(data)
            await self.connector.insert(model_name, data)

    async def upsert_data(self, model_name: str, data: dict, conflict_fields):
        data[UPDATED_FIELD] = timestamp()
        data[ETAG_FIELD] = generate_etag(data)
        return await self.connector.upsert(model_name, data, conflict_fields)

    async def update_data(self, model_name: str, identifier, /, **updates):
        query = BackendQuery.create(identifier=identifier)
        return await self.connector.update_data(
            model_name, query, _updated=timestamp(), _etag=generate_etag(updates), **updates
        )

    async def remove(self, record: DataModel):
        model_name = self.lookup_record_model(record)
        return await self.remove_data(model_name, identifier=record.id)

    async def remove_data(self, model_name: str, q=None, /, **query) -> int:
        """ Scoped bulk delete. Removing nothing is not an error. """
        q = BackendQuery.create(q, **query, limit=0, offset=0)
        if not (q.identifier or q.where or q.scope):
            raise BadRequestError('E00.208', f'Refusing to remove all items of [{model_name}]')

        removed = await self.connector.remove(model_name, q)
        DEBUG and logger.info('Removed %d item(s) from [%s]', removed, model_name)
        return removed
