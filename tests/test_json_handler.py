"""Tests for resource loading and JSON payload query generation."""

import json

import pytest

from pg_builder import load_resources, json_select, json_aggregate, QueryBuilderError, UnknownResourceError
from pg_builder.json_handler import query_args_payload


@pytest.fixture
def resources(user_fields, profile_fields):
    return load_resources({
        'users': {'table': 'users', 'fields': user_fields},
        'profiles': {
            'schema': 'app',
            'fields': profile_fields,
            'joins': [{'type': 'LEFT JOIN', 'table': 'users', 'on': 'users.id = profiles.user_id'}],
        },
    })


class TestLoadResources:

    def test_defaults(self, resources):
        users = resources['users']
        assert users.schema == 'public'
        assert users.table == 'users'
        assert users.fields['isActive'].db_field == 'users.is_active'
        assert resources['profiles'].table == 'profiles'
        assert resources['profiles'].schema == 'app'

    def test_from_file(self, tmp_path, user_fields):
        path = tmp_path / 'mappings.json'
        path.write_text(json.dumps({'users': {'fields': user_fields, 'with': [
            {'name': 'recent', 'query': 'SELECT 1'}]}}), encoding='utf-8')
        resources = load_resources(str(path), default_schema='crm')
        assert resources['users'].schema == 'crm'
        assert resources['users'].with_clauses == [{'name': 'recent', 'query': 'SELECT 1'}]

    def test_resource_without_fields(self):
        with pytest.raises(QueryBuilderError, match='has no fields'):
            load_resources({'users': {'table': 'users'}})

    def test_query_builder_applies_joins(self, resources):
        builder = resources['profiles'].query_builder()
        assert list(builder.joins.values()) == ['LEFT JOIN users ON users.id = profiles.user_id']


class TestJsonSelect:

    def test_native_select(self, resources):
        result = json_select({
            'resource': 'users',
            'fields': ['id', 'username'],
            'requiredFilters': {'isActive': True},
            'queryParams': {'username_like': 'john', 'page': 2},
            'limit': 5,
            'sortField': 'username',
            'sortDirection': 'ASC',
        }, resources)
        assert result['sql'] == (
            'SELECT users.id, users.username FROM public.users WHERE users.is_active = $1 '
            'AND users.username ILIKE $2 ORDER BY users.username ASC LIMIT $3 OFFSET $4')
        assert result['params'] == [True, '%john%', 5, 0]
        assert result['count_sql'] == (
            'SELECT COUNT(1) AS count FROM public.users WHERE users.is_active = $1 AND users.username ILIKE $2')
        assert result['count_params'] == [True, '%john%']

    def test_format_dialect(self, resources):
        result = json_select({'resource': 'profiles', 'fields': 'bio', 'queryParams': {'age_gte': '18'}},
                             resources, dialect='psycopg2', default_limit=25)
        assert result['sql'] == (
            'SELECT profiles.bio, profiles.id FROM app.profiles LEFT JOIN users ON users.id = profiles.user_id '
            'WHERE profiles.age >= %s ORDER BY profiles.bio DESC LIMIT %s OFFSET %s')
        assert result['params'] == ['18', 25, 0]

    def test_builder_options_pass_through(self, resources):
        with pytest.raises(QueryBuilderError):
            json_select({'resource': 'users', 'queryParams': {'username': 'a', 'email': 'b'}},
                        resources, max_conditions=1)

    def test_missing_resource(self, resources):
        with pytest.raises(QueryBuilderError, match='Missing required fields'):
            json_select({'fields': ['id']}, resources)

    def test_unknown_resource(self, resources):
        with pytest.raises(UnknownResourceError, match='orders'):
            json_select({'resource': 'orders'}, resources)


class TestJsonAggregate:

    def test_aggregate(self, resources):
        result = json_aggregate({
            'resource': 'profiles',
            'aggregates': {'total': {'function': 'COUNT'}},
            'groupBy': ['country'],
            'queryParams': {'age_lt': 30},
        }, resources, dialect='qmark')
        assert result == {
            'sql': ('SELECT profiles.country, COUNT(*) AS total FROM app.profiles '
                    'LEFT JOIN users ON users.id = profiles.user_id WHERE profiles.age < ? GROUP BY profiles.country'),
            'params': [30],
        }


class TestQueryArgsPayload:

    def test_reserved_keys(self):
        payload = query_args_payload('users', {'username_like': 'jo', 'limit': '5', 'offset': '10',
                                               'sort': 'ASC', 'sortField': 'username', 'fields': 'id,email'})
        assert payload['resource'] == 'users'
        assert payload['limit'] == '5'
        assert payload['offset'] == '10'
        assert payload['sortDirection'] == 'ASC'
        assert payload['sortField'] == 'username'
        assert payload['fields'] == 'id,email'
        assert payload['queryParams']['username_like'] == 'jo'

    def test_plain_filters(self):
        assert query_args_payload('users', {'email': 'x'}) == {'resource': 'users', 'queryParams': {'email': 'x'}}
