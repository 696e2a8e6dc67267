import pytest

from tabula.data.query import (
    BackendQuery,
    QueryExpression,
    QueryStatement,
    SortStatement,
    operator_statement,
    process_query_statement,
    sort_statement,
)
from tabula.error import BadRequestError


def test_process_query_statement_empty():
    result = process_query_statement([])
    assert isinstance(result, QueryStatement)
    assert len(result) == 0


def test_process_query_statement_single_dict():
    result = process_query_statement({'name': 'John'})
    assert result == (QueryExpression('name', 'eq', '.', 'John'),)


def test_process_query_statement_operators():
    result = process_query_statement([{'age.gt': 25}, {'name!like': '%a%', 'tenant_id.null': True}])
    assert result == (
        QueryExpression('age', 'gt', '.', 25),
        QueryExpression('name', 'like', '!', '%a%'),
        QueryExpression('tenant_id', 'null', '.', True),
    )


def test_process_query_statement_composite():
    result = process_query_statement({'.or': [{'key': 'a'}, {'key.in': ('b', 'c')}]})
    assert len(result) == 1

    expression = result[0]
    assert expression.field is None
    assert expression.operator == 'or'
    assert expression.value == (
        QueryExpression('key', 'eq', '.', 'a'),
        QueryExpression('key', 'in', '.', ('b', 'c')),
    )


def test_process_query_statement_invalid_operator():
    with pytest.raises(BadRequestError):
        process_query_statement({'name.contains': 'x'})

    with pytest.raises(BadRequestError):
        process_query_statement({'.xor': []})


def test_operator_statement():
    assert operator_statement('name') == ('name', 'eq', '.')
    assert operator_statement('name.like') == ('name', 'like', '.')
    assert operator_statement('name!eq') == ('name', 'eq', '!')
    assert operator_statement('.and') == (None, 'and', '.')


def test_sort_statement():
    assert sort_statement('version:desc') == SortStatement('version', 'desc')
    assert sort_statement('_created') == SortStatement('_created', 'asc')

    with pytest.raises(BadRequestError):
        sort_statement('version:sideways')


def test_backend_query_create():
    q = BackendQuery.create(where={'key': 'form1'}, sort=('_created:asc', '_id:asc'), limit=0)
    assert q.limit == 0
    assert q.sort == (SortStatement('_created', 'asc'), SortStatement('_id', 'asc'))
    assert q.expressions() == (QueryExpression('key', 'eq', '.', 'form1'),)

    q = BackendQuery.create(q, scope={'tenant_id': 'T1'})
    assert q.expressions()[0] == QueryExpression('tenant_id', 'eq', '.', 'T1')
    assert BackendQuery.create().limit == 100
