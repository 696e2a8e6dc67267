from collections import namedtuple
from pyrsistent import PClass, field

from tabula.error import BadRequestError
from tabula.data.helper import nullable
from tabula.data.identifier import UUID_TYPE
from tabula.constant import (
    QUERY_OPERATOR_SEP,
    RX_PARAM_SPLIT,
    DEFAULT_OPERATOR,
    SORT_DIRECTION_SEP,
)

from ._meta import config

SORT_DIRECTIONS = ('asc', 'desc')
FIELD_OPERATORS = ('eq', 'ne', 'gt', 'gte', 'lt', 'lte', 'in', 'notin', 'like', 'null')
COMPOSITE_OPERATORS = ('and', 'or')

OperatorStatement = namedtuple('OperatorStatement', 'field operator mode')
QueryExpression = namedtuple('QE', 'field operator mode value')
SortStatement = namedtuple('SortStatement', 'field direction')


class QueryStatement(tuple):
    pass


def process_query_statement(statements, allowed_composites=COMPOSITE_OPERATORS):
    ''' Normalize a (nested) where statement into a flat tuple of QueryExpression

        {
            "name.like": "%one|%%",
            "tenant_id!eq": "",
            ".or": [{"key": "a"}, {"key": "b"}]
        }
    '''
    def _unpack(*stmts):
        for stmt in stmts:
            if not stmt:
                continue

            if isinstance(stmt, QueryExpression):
                yield stmt
                continue

            if isinstance(stmt, (list, tuple)):
                yield from _unpack(*stmt)
                continue

            if not isinstance(stmt, dict):
                raise ValueError(f'Invalid query statement: {stmt}')

            yield stmt

    def _process(*stmts):
        for stmt in _unpack(*stmts):
            if isinstance(stmt, QueryExpression):
                yield stmt
                continue

            for key, value in stmt.items():
                op_stmt = operator_statement(key)

                # For composite operators, its value is a list of statements
                if not op_stmt.field:
                    if op_stmt.operator not in allowed_composites:
                        raise BadRequestError('Q01-3938', f'Invalid composite operator: {key}')

                    value = tuple(_process(value))
                elif op_stmt.operator not in FIELD_OPERATORS:
                    raise BadRequestError('Q01-3939', f'Cannot locate operator: {key}')

                yield QueryExpression(*op_stmt, value)

    return QueryStatement(_process(statements))


def operator_statement(op_stmt: str, default_operator: str = DEFAULT_OPERATOR) -> OperatorStatement:
    result = RX_PARAM_SPLIT.split(op_stmt)

    if len(result) == 1:  # no operator specified
        return OperatorStatement(op_stmt, default_operator, QUERY_OPERATOR_SEP)

    if len(result) != 3:
        raise BadRequestError('Q01-3940', f'Invalid query operator statement: {op_stmt}')

    field_name, mode, operator = result
    return OperatorStatement(field_name or None, operator or default_operator, mode)


def sort_statement(stmt) -> SortStatement:
    if isinstance(stmt, SortStatement):
        return stmt

    field_name, _, direction = stmt.partition(SORT_DIRECTION_SEP)
    direction = direction or 'asc'
    if not field_name or direction not in SORT_DIRECTIONS:
        raise BadRequestError('Q01-3941', f'Invalid sort statement: {stmt}')

    return SortStatement(field_name, direction)


def validate_list(stmt):
    if stmt is None:
        return tuple()

    if isinstance(stmt, str):
        return (stmt,)

    if isinstance(stmt, tuple):
        return stmt

    if isinstance(stmt, (list, set)):
        return tuple(stmt)

    raise ValueError('Invalid list value.')


def validate_sort(stmt):
    return tuple(sort_statement(s) for s in validate_list(stmt))


def validate_query(query) -> QueryStatement:
    if not query:
        return QueryStatement()

    if isinstance(query, QueryStatement):
        return query

    return process_query_statement(query)


class BackendQuery(PClass):
    ''' Storage-agnostic query. A limit of 0 means no limit. '''

    identifier = field(nullable(UUID_TYPE, str), initial=None)
    include = field(tuple, factory=validate_list, initial=tuple)
    exclude = field(tuple, factory=validate_list, initial=tuple)

    limit   = field(int, initial=lambda: config.BACKEND_QUERY_DEFAULT_LIMIT)
    offset  = field(int, initial=lambda: 0)
    sort    = field(tuple, factory=validate_sort, initial=tuple)
    where   = field(QueryStatement, initial=QueryStatement, factory=validate_query)  # A tuple can hold duplicated keys if needed
    scope   = field(QueryStatement, initial=QueryStatement, factory=validate_query)

    @classmethod
    def create(cls, query_data=None, **kwargs):
        if query_data is None:
            query_data = {}

        if isinstance(query_data, cls):
            return query_data.set(**kwargs) if kwargs else query_data

        if not isinstance(query_data, dict):
            raise ValueError('Invalid query: %s' % str(query_data))

        return cls(**query_data, **kwargs)

    def expressions(self):
        return tuple(self.scope) + tuple(self.where)
