from .driver import SqlaDriver, sqla_error_handler, build_dsn
from .schema import SqlaDataSchema, DomainSchema, create_data_schema_base

__all__ = (
    "build_dsn",
    "create_data_schema_base",
    "DomainSchema",
    "sqla_error_handler",
    "SqlaDataSchema",
    "SqlaDriver",
)
