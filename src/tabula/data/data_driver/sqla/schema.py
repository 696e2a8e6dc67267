import sqlalchemy as sa
from sqlalchemy.orm import declarative_base

from tabula.data.helper import merge_table_args
from tabula.data.identifier import ID_GENR
from tabula.data.constant import ITEM_ID_FIELD
from tabula.helper import timestamp


def create_data_schema_base(driver_cls=None):
    class DataSchemaBase(declarative_base()):
        ''' Base declarative model of a driver. Every concrete subclass is
            registered with the driver under its `__tablename__`.

            >>> class Deployment(FormConnector.__data_schema_base__):
            >>>     __tablename__ = 'deployment'
            >>>     _id = sa.Column(sa.String(64), primary_key=True)
            >>>     name = sa.Column(sa.String(255))
        '''
        __abstract__ = True
        __table_args__ = {'schema': driver_cls.__schema__} \
            if getattr(driver_cls, '__schema__', None) else {}

        @classmethod
        def _primary_key(cls):
            if hasattr(cls, ITEM_ID_FIELD):
                return getattr(cls, ITEM_ID_FIELD)

            pk_cols = sa.inspect(cls).primary_key
            if not pk_cols:
                raise AttributeError(f"No primary key column found for schema {cls.__name__}.")

            return pk_cols[0]

        def __init_subclass__(cls, **kwargs):
            super().__init_subclass__(**kwargs)

            parent = cls.__bases__[0]
            cls.__table_args__ = merge_table_args(parent, cls)
            if cls.__dict__.get('__abstract__', False):
                return

            if driver_cls is not None:
                driver_cls.register_schema(cls)

        def serialize(self):
            return {key: getattr(self, key) for key in self.__table__.columns.keys()}

    return DataSchemaBase


SqlaDataSchema = create_data_schema_base()


class DomainSchema:
    ''' Bookkeeping columns shared by all tables. Identifiers are stored
        as strings so the same schema works on sqlite and postgres. '''
    _id = sa.Column(sa.String(64), primary_key=True, nullable=False, default=ID_GENR)
    _created = sa.Column(sa.DateTime(timezone=True), nullable=False, default=timestamp)
    _updated = sa.Column(sa.DateTime(timezone=True), nullable=True)
    _etag = sa.Column(sa.String(64), nullable=True)
