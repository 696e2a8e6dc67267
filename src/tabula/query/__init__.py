from ._meta import config, logger
from .base import EntityQuery, query_filter, like_filter, tenant_filters

__all__ = (
    "EntityQuery",
    "like_filter",
    "query_filter",
    "tenant_filters",
)
