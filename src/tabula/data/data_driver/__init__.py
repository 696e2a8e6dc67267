from .base import DataDriver
from .memory import InMemoryDriver
from .sqla import SqlaDriver, SqlaDataSchema, sqla_error_handler

__all__ = (
    "DataDriver",
    "InMemoryDriver",
    "SqlaDataSchema",
    "SqlaDriver",
    "sqla_error_handler",
)
