import asyncpg
import importlib
import sqlalchemy as sa

from asyncio import current_task
from contextlib import asynccontextmanager
from contextvars import ContextVar
from functools import wraps

from sqlalchemy import event, exc
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    async_scoped_session
)

from tabula.data import logger, config
from tabula.data.exceptions import (
    ItemNotFoundError,
    DuplicateEntryError,
    IntegrityConstraintError,
    DatabaseConnectionError,
    QuerySyntaxError,
    DatabaseAPIError,
    UnexpectedDatabaseError,
    InvalidQueryValueError,
    DatabaseConfigurationError,
    DatabaseTransactionError,
    DataSchemaError,
)
from tabula.data.query import BackendQuery
from tabula.data.serializer import serialize_json
from tabula.data.data_driver.base import DataDriver

from .schema import create_data_schema_base, SqlaDataSchema
from .query import QueryBuilder


DEBUG_CONNECTOR = config.DEBUG
RAISE_NESTED_TRANSACTION_ERROR = False
PG_UNIQUE_VIOLATION = '23505'
SQLITE_UNIQUE_VIOLATION = 'UNIQUE constraint failed'


def build_dsn(dsn):
    if isinstance(dsn, (str, URL)):
        return make_url(dsn)

    raise DatabaseConfigurationError('E00.102', f'Invalid database DSN: {dsn!r}')


def _is_unique_violation(orig):
    if orig is None:
        return False

    if isinstance(orig.__cause__, asyncpg.exceptions.UniqueViolationError):
        return True

    if getattr(orig, 'pgcode', None) == PG_UNIQUE_VIOLATION:
        return True

    return SQLITE_UNIQUE_VIOLATION in str(orig)


def sqla_error_handler(code_prefix):
    """ Map driver exceptions to the standard data exceptions so that error
        handling on the data manager layer does not depend on the backend.

        SQLAlchemy wraps the underlying database exceptions, hence the
        isinstance() checks. More specific exceptions must be checked first.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except exc.NoResultFound as e:
                raise ItemNotFoundError(
                    f"{code_prefix}-06",
                    f"Item Not Found: {str(e)}",
                )
            except exc.SQLAlchemyError as e:
                logger.exception('SQLAlchemy Operation Error: %s', e)

                orig = getattr(e, 'orig', None)
                orig_str = str(orig) if orig else None
                pgcode = getattr(orig, 'pgcode', None) if orig else None

                if isinstance(e, exc.IntegrityError):
                    if _is_unique_violation(orig):
                        raise DuplicateEntryError(
                            f"{code_prefix}-01",
                            f"Duplicate entry detected. Record must be unique. [{orig}]",
                            orig_str
                        )
                    # Other integrity errors (foreign key, check constraints, etc.)
                    raise IntegrityConstraintError(
                        f"{code_prefix}-02",
                        f"Integrity constraint violated. Please check your input. [{orig}]",
                        orig_str
                    )

                if isinstance(e, exc.OperationalError):
                    raise DatabaseConnectionError(
                        f"{code_prefix}-03",
                        f"The database is currently unreachable. Please try again later. [{orig}]",
                        orig_str
                    )

                if isinstance(e, exc.ProgrammingError):
                    if pgcode == '42883':
                        raise InvalidQueryValueError(
                            f"{code_prefix}-41",
                            "Undefined function error [42883]. Values must be in correct format.",
                            orig_str
                        )
                    raise QuerySyntaxError(
                        f"{code_prefix}-04",
                        f"There was a syntax or structure error in the database query. [{orig}]",
                        orig_str
                    )

                if isinstance(e, exc.DBAPIError):
                    raise DatabaseAPIError(
                        f"{code_prefix}-05",
                        f"A database API error occurred [{pgcode}].",
                        orig_str
                    )

                raise UnexpectedDatabaseError(
                    f"{code_prefix}-07",
                    "An unexpected database error occurred while processing your request.",
                    orig_str
                )
        return wrapper
    return decorator


def _enable_case_sensitive_like(dbapi_connection, connection_record):
    # SQLite LIKE ignores ASCII case unless told otherwise
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA case_sensitive_like=ON")
    cursor.close()


class _AsyncSessionConfiguration(object):
    def __init__(self, dsn, **kwargs):
        self._async_engine, self._async_sessionmaker = self.set_bind(dsn, echo=False, **kwargs)

    def make_session(self):
        if self._async_engine is None:
            raise DatabaseConfigurationError('E00.101', 'AsyncSession connection is not established.')

        return self._async_sessionmaker()

    async def release_session(self):
        await self._async_sessionmaker.remove()

    def _setup_sql_statement(self, dialect):
        sqla_dialect = importlib.import_module(f'sqlalchemy.dialects.{dialect}')
        self.insert = getattr(sqla_dialect, 'insert', sa.insert)

    def set_bind(self, bind_dsn, **kwargs):
        engine = create_async_engine(
            build_dsn(bind_dsn),
            json_serializer=serialize_json,
            **(config.DB_CONFIG or {}),
            **kwargs
        )

        if engine.dialect.name == 'sqlite':
            event.listen(engine.sync_engine, "connect", _enable_case_sensitive_like)

        self._setup_sql_statement(engine.dialect.name)
        _sessionmaker = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
            autobegin=True
        )

        scoped_session = async_scoped_session(
            session_factory=_sessionmaker,
            scopefunc=current_task
        )

        return engine, scoped_session

    async def dispose(self):
        if self._async_engine is None:
            return

        await self._async_engine.dispose()
        self._async_engine = None


class SqlaDriver(DataDriver, QueryBuilder):
    __db_dsn__ = None
    __data_schema_base__ = SqlaDataSchema

    def __init__(self, dsn=None, **kwargs):
        dsn = dsn or self.__db_dsn__
        if dsn is None:
            raise DatabaseConfigurationError('E00.104', f'No database DSN provided to: {self.__class__}')

        DEBUG_CONNECTOR and logger.info(f'[{self.__class__.__name__}] setup with DSN: {dsn}')
        self._dsn = dsn
        self._session_configuration = _AsyncSessionConfiguration(dsn)
        self._active_session = ContextVar('active_session', default=None)

    def __init_subclass__(cls):
        cls.__data_schema_registry__ = {}
        cls.__data_schema_base__ = create_data_schema_base(cls)

    @classmethod
    def metadata(cls):
        return cls.__data_schema_base__.metadata

    @property
    def dsn(self):
        return self._dsn

    @property
    def engine(self):
        return self._session_configuration._async_engine

    async def create_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(self.metadata().create_all)

    async def drop_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(self.metadata().drop_all)

    async def dispose(self):
        await self._session_configuration.dispose()

    @classmethod
    def validate_data_schema(cls, schema_model):
        if not cls.__data_schema_base__:
            return schema_model

        if issubclass(schema_model, cls.__data_schema_base__):
            return schema_model

        raise DataSchemaError('E00.105', f'{cls.__name__} only support subclass of [{cls.__data_schema_base__}]. Got: {schema_model}')

    @asynccontextmanager
    async def transaction(self, trace_msg=None):
        active_session = self._active_session.get()

        if active_session is not None:
            if RAISE_NESTED_TRANSACTION_ERROR:
                raise DatabaseTransactionError('E00.106', f'Nested/concurrent transaction detected [{trace_msg}]: {active_session._trace_msg}')

            DEBUG_CONNECTOR and logger.info('Joining active transaction [%s]: %s', trace_msg, active_session._trace_msg)
            yield active_session
            return

        async with self._session_configuration.make_session() as async_session:
            async_session._trace_msg = trace_msg
            token = self._active_session.set(async_session)
            try:
                yield async_session
                await async_session.commit()
            except Exception as e:
                logger.error('[E15201] Error during database transaction (%s). Rolling back ...', e)
                await async_session.rollback()
                raise
            finally:
                self._active_session.reset(token)
                await self._session_configuration.release_session()

    @property
    def active_session(self):
        if self._active_session.get() is None:
            raise DatabaseTransactionError('E00.107', 'Database operation must be run within a transaction.')

        return self._active_session.get()

    @sqla_error_handler('E00.007')
    async def query(self, resource, query: BackendQuery):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_select(data_schema, query)
        cursor = await self.active_session.execute(stmt)
        items = [dict(row) for row in cursor.mappings().all()]

        DEBUG_CONNECTOR and logger.info("\n[QUERY] %r\n=> [RESULT] %s items", str(stmt), len(items))
        return items

    @sqla_error_handler('E00.008')
    async def count(self, resource, query: BackendQuery):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_count(data_schema, query)
        cursor = await self.active_session.execute(stmt)
        return cursor.scalar_one()

    @sqla_error_handler('E00.001')
    async def find_one(self, resource, query: BackendQuery):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_select(data_schema, query)
        cursor = await self.active_session.execute(stmt)
        DEBUG_CONNECTOR and logger.info("\n[FIND_ONE] %r\n=> [RESOURCE] %s", query, resource)

        return dict(cursor.mappings().one())

    @sqla_error_handler('E00.002')
    async def update_data(self, resource, query: BackendQuery, **updates):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_update(data_schema, query, updates)
        cursor = await self.active_session.execute(stmt)
        return cursor.rowcount

    @sqla_error_handler('E00.003')
    async def remove(self, resource, query: BackendQuery):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_delete(data_schema, query)
        cursor = await self.active_session.execute(stmt)
        DEBUG_CONNECTOR and logger.info("[REMOVE] %s => %d items", resource, cursor.rowcount)
        return cursor.rowcount

    @sqla_error_handler('E00.004')
    async def insert(self, resource, values: dict | list):
        data_schema = self.lookup_data_schema(resource)
        stmt = self.build_insert(data_schema, values)
        cursor = await self.active_session.execute(stmt)

        DEBUG_CONNECTOR and logger.info("\n- DATA INSERTED: %s \n- RESULTS: %r", values, cursor.rowcount)
        return cursor.rowcount

    @sqla_error_handler('E00.005')
    async def upsert(self, resource, data: dict, conflict_fields=('_id',)):
        ''' Single conditional write: insert the row or, when a row with the
            same conflict fields exists, overwrite its other columns. '''

        # Use dialect dependent (e.g. sqlite, postgres) version of the statement
        data_schema = self.lookup_data_schema(resource)
        stmt = self._session_configuration.insert(data_schema).values(data)

        keep = set(conflict_fields) | {'_id', '_created'}
        set_fields = {k: getattr(stmt.excluded, k) for k in data.keys() if k not in keep}

        stmt = stmt.on_conflict_do_update(
            index_elements=[getattr(data_schema, f) for f in conflict_fields],
            set_=set_fields
        )

        cursor = await self.active_session.execute(stmt)
        DEBUG_CONNECTOR and logger.info("UPSERT [%s] => %r", resource, cursor.rowcount)
        return cursor.rowcount
