from ._meta import config, logger

from tabula.helper import timestamp

from .identifier import (
    UUID_TYPE,
    UUID_GENF,
    ID_GENR,
)
from .constant import *  # noqa
from .exceptions import *  # noqa
from .pattern import escape, contains, like_match, like_to_regex, LIKE_ESCAPE_CHAR
from .data_model import DataModel
from .query import BackendQuery, QueryStatement, QueryExpression
from .serializer import serialize_json, deserialize_json, serialize_blob, deserialize_blob, JSONField
from .data_driver import DataDriver, InMemoryDriver, SqlaDriver, SqlaDataSchema, sqla_error_handler
from .data_manager import DataAccessManager
