import json
import uuid

from base64 import encodebytes
from dataclasses import is_dataclass, asdict
from datetime import datetime, date
from enum import Enum
from json.encoder import JSONEncoder
from types import SimpleNamespace

from pydantic import BaseModel
from pyrsistent import PClass, PRecord
from sqlalchemy.types import TypeDecorator, JSON

from tabula.helper.timeutil import datetime_to_str
from tabula import config

DATE_FORMAT = config.EXCHANGE_DAY_FORMAT
BYTES_DECODER = 'utf_8'
BLOB_ENCODING = 'utf-8'


class TabulaJSONEncoder(JSONEncoder):
    ''' Sample usage:

        from tabula.data.serializer import TabulaJSONEncoder

        json.dumps(data, cls=TabulaJSONEncoder)
    '''

    def default(self, obj):
        if isinstance(obj, uuid.UUID):
            return str(obj)

        if isinstance(obj, (PClass, PRecord)):
            return obj.serialize()

        if isinstance(obj, SimpleNamespace):
            return obj.__dict__

        if isinstance(obj, BaseModel):
            return obj.model_dump(mode='json')

        if is_dataclass(obj):
            return asdict(obj)

        # NOTE: datetime is a subclass of date, it must be checked first.
        if isinstance(obj, datetime):
            return datetime_to_str(obj)

        if isinstance(obj, date):
            return obj.strftime(DATE_FORMAT)

        if isinstance(obj, (set, tuple)):
            return list(obj)

        if isinstance(obj, Enum):
            return obj.value

        if isinstance(obj, bytes):
            return encodebytes(obj).decode(BYTES_DECODER)

        return super(TabulaJSONEncoder, self).default(obj)


def convert_to_json_compatible(value, encoder_cls=TabulaJSONEncoder):
    encoder = encoder_cls()

    def _convert(val):
        if isinstance(val, (str, int, float, bool, type(None))):
            return val

        if isinstance(val, (list, tuple)):
            return [_convert(v) for v in val]

        if isinstance(val, dict):
            return {k: _convert(v) for k, v in val.items()}

        return _convert(encoder.default(val))

    return _convert(value)


class JSONField(TypeDecorator):
    ''' JSON column that accepts any value the encoder understands
        (models, dates, enums, ...) '''
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None

        return convert_to_json_compatible(value)

    def process_result_value(self, value, dialect):
        return value


def serialize_json(data, cls=TabulaJSONEncoder, **kwargs) -> str:
    return json.dumps(data, cls=cls, **kwargs)


def deserialize_json(data_str) -> dict:
    return json.loads(data_str)


def serialize_blob(data) -> bytes:
    return serialize_json(data).encode(BLOB_ENCODING)


def deserialize_blob(data: bytes) -> dict:
    if data is None:
        return {}

    if isinstance(data, (bytes, bytearray, memoryview)):
        data = bytes(data).decode(BLOB_ENCODING)

    return deserialize_json(data)
