''' SQLAlchemy Query Builder
```
    data_query = {
        "where": {
            "field.op": "value",
            "field!op": "value",
            ".and": [
                {
                    "field!op": "value",
                }
            ]
        },
        "sort": ["_created:asc", "_id:asc"],
        "limit": 1,
    }
```
'''
from sqlalchemy import select, update, delete, insert, func
from sqlalchemy import and_, or_, not_
from sqlalchemy.sql.operators import in_op, eq, ge, gt, le, lt, ne

from tabula.data.query import BackendQuery, QueryStatement, QueryExpression
from tabula.data.pattern import LIKE_ESCAPE_CHAR
from tabula.data import logger, config
from tabula.error import BadRequestError
from tabula.constant import QUERY_OPERATOR_SEP, OPERATOR_SEP_NEGATE

DEBUG_CONNECTOR = config.DEBUG


def _like(col, pattern):
    return col.like(pattern, escape=LIKE_ESCAPE_CHAR)


def _not_like(col, pattern):
    return col.not_like(pattern, escape=LIKE_ESCAPE_CHAR)


def _is_null(col, flag):
    return col.is_(None) if flag else col.is_not(None)


def _not_null(col, flag):
    return _is_null(col, not flag)


COMPOSITE_OPERATOR = {
    QUERY_OPERATOR_SEP: {
        "and": and_,
        "or": or_
    },
    OPERATOR_SEP_NEGATE: {
        "and": lambda *ag, **kw: not_(and_(*ag, **kw)),
        "or": lambda *ag, **kw: not_(or_(*ag, **kw))
    }
}
FIELD_OPERATOR = {
    QUERY_OPERATOR_SEP: {
        "gt": gt,
        "gte": ge,
        "eq": eq,
        "ne": ne,
        "lt": lt,
        "lte": le,
        "in": in_op,
        "notin": lambda col, vals: col.notin_(vals),
        "like": _like,
        "null": _is_null,
    },
    OPERATOR_SEP_NEGATE: {
        "gt": le,
        "gte": lt,
        "eq": ne,
        "ne": eq,
        "lt": ge,
        "lte": gt,
        "notin": in_op,
        "in": lambda col, vals: col.notin_(vals),
        "like": _not_like,
        "null": _not_null,
    }
}


class QueryBuilder(object):
    def _field(self, data_schema, field_name, alias=None):
        try:
            column = getattr(data_schema, field_name)
        except AttributeError:
            raise BadRequestError("E00.401", f"Type object {data_schema} has no attribute {field_name}", None)

        return column.label(alias) if alias else column

    def _build_expression(self, data_schema, expr: QueryStatement):
        if not isinstance(expr, QueryStatement):
            raise ValueError(f'Invalid query expression: {expr}')

        def _gen_query(stmts):
            for stmt in stmts:
                if not isinstance(stmt, QueryExpression):
                    raise ValueError('Invalid statement [%s]' % (stmt,))

                if not stmt.field:
                    subops = tuple(_gen_query(stmt.value))
                    yield COMPOSITE_OPERATOR[stmt.mode][stmt.operator](*subops)
                    continue

                db_field = self._field(data_schema, stmt.field)
                yield FIELD_OPERATOR[stmt.mode][stmt.operator](db_field, stmt.value)

        yield from _gen_query(expr)

    def _sort_clauses(self, data_schema, sort_query):
        for stmt in sort_query:
            db_field = self._field(data_schema, stmt.field)
            yield getattr(db_field, stmt.direction)()

    def _build_limit(self, data_schema, stmt, q: BackendQuery):
        if q.limit:
            stmt = stmt.limit(q.limit)

        if q.offset:
            stmt = stmt.offset(q.offset)

        return stmt

    def _build_sort(self, data_schema, stmt, q: BackendQuery):
        if not q.sort:
            return stmt

        return stmt.order_by(*self._sort_clauses(data_schema, q.sort))

    def _where_clauses(self, data_schema, q: BackendQuery):
        if q.identifier is not None:
            yield (data_schema._primary_key() == str(q.identifier))  # noqa

        if q.scope:
            yield from self._build_expression(data_schema, q.scope)

        if q.where:
            yield from self._build_expression(data_schema, q.where)

    def _build_where(self, data_schema, sql, q: BackendQuery):
        return sql.where(*self._where_clauses(data_schema, q))

    def _build_values(self, sql, values):
        if not values:
            return sql

        if isinstance(values, dict):
            return sql.values(**values)

        if isinstance(values, (list, tuple)):
            return sql.values(values)

        raise ValueError(f'Invalid statement values: {values}')

    def build_delete(self, data_schema, query: BackendQuery):
        sql = delete(data_schema)
        sql = self._build_where(data_schema, sql, query)

        DEBUG_CONNECTOR and logger.info("[DELETE STMT] %s", sql)
        return sql

    def build_update(self, data_schema, query: BackendQuery, values):
        sql = update(data_schema)
        sql = self._build_where(data_schema, sql, query)
        sql = self._build_values(sql, values)

        return sql

    def build_insert(self, data_schema, values):
        sql = insert(data_schema)
        sql = self._build_values(sql, values)

        return sql

    def build_count(self, data_schema, query: BackendQuery):
        sql = select(func.count()).select_from(data_schema)
        return self._build_where(data_schema, sql, query)

    def build_select(self, data_schema, query: BackendQuery):
        def _gen_select(q):
            include = q.include or data_schema.__table__.columns.keys()
            return tuple(self._field(data_schema, k) for k in include if k not in q.exclude)

        sql = select(*_gen_select(query))
        sql = self._build_where(data_schema, sql, query)
        sql = self._build_sort(data_schema, sql, query)
        sql = self._build_limit(data_schema, sql, query)

        DEBUG_CONNECTOR and logger.info("[SELECT STMT] %s", sql)
        return sql
