import pytest

from api.contracts.registry import FIND_PARAMS
from services.response_schema import create_response_schema, find_params_schema

SCHEMA = {'name': {'type': 'string'}, 'age': {'type': 'integer'}}


def test_array_response():
    result = create_response_schema(SCHEMA, 'array')
    items = result[200]['items']

    assert result[200]['type'] == 'array'
    assert items['type'] == 'object'
    assert items['properties']['_id'] == {'type': 'string', 'description': 'Document identifier'}
    assert items['properties']['name'] == {'type': 'string'}


def test_object_response():
    result = create_response_schema(SCHEMA)
    assert result[200]['type'] == 'object'
    assert set(result[200]['properties']) == {'_id', 'name', 'age'}


def test_no_schema_means_no_response_contract():
    assert create_response_schema(None, 'array') == {}
    assert create_response_schema({}, 'object') == {}


def test_input_not_mutated():
    schema = {'name': {'type': 'string'}}
    result = create_response_schema(schema)
    result[200]['properties']['name']['type'] = 'integer'
    assert schema == {'name': {'type': 'string'}}


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        create_response_schema(SCHEMA, 'table')


def test_find_params_schema_lists_aliases():
    props = find_params_schema()['properties']

    assert set(FIND_PARAMS.fields) <= set(props)
    assert props['query']['type'] == ['object', 'string']
    assert props['limit']['type'] == 'integer'
    assert props['q']['description'] == 'Alias of query'
    assert props['select']['description'] == 'Alias of projection'
    assert props['p']['description'] == 'Alias of page'
