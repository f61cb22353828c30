"""Tests for mapping result rows back to logical field names."""

import pandas as pd
import pytest

from pg_builder import ResponseMapper, QueryBuilder
from pg_builder.response_mapper import extract_column_name


class TestExtractColumnName:

    @pytest.mark.parametrize('db_field,expected', [
        ('users.username', 'username'),
        ('public.users.email', 'email'),
        ("CASE WHEN x THEN 'A' END AS status", 'status'),
        ('COUNT(*) as "orderCount"', 'orderCount'),
        ('created_at', 'created_at'),
        ('count(*)', 'createdAt'),
    ])
    def test_column_names(self, db_field, expected):
        assert extract_column_name(db_field, 'createdAt') == expected


class TestResponseMapper:

    @pytest.fixture
    def mapper(self, user_fields):
        return ResponseMapper(user_fields)

    def test_map_response(self, mapper):
        row = {'id': 'u-1', 'username': 'john_doe', 'email': 'john@example.com', 'is_active': True,
               'created_at': '2023-01-01T00:00:00Z', 'status': 'ACTIVE'}
        assert mapper.map_response(row) == {
            'id': 'u-1',
            'username': 'john_doe',
            'email': 'john@example.com',
            'isActive': True,
            'createdAt': '2023-01-01T00:00:00Z',
            'status': 'ACTIVE',
        }

    def test_missing_columns_are_omitted(self, mapper):
        assert mapper.map_response({'id': 1, 'unrelated': 2}) == {'id': 1}

    def test_map_responses(self, mapper):
        assert mapper.map_responses([{'id': 1}, {'id': 2, 'login_count': 3}]) == [
            {'id': 1}, {'id': 2, 'loginCount': 3}]

    def test_map_frame(self, mapper):
        df = pd.DataFrame({'id': [1, 2], 'is_active': [True, False], 'other': ['x', 'y']}, index=[10, 11])
        mapped = mapper.map_frame(df)
        assert list(mapped.columns) == ['id', 'isActive']
        assert list(mapped.index) == [10, 11]
        assert not mapped.loc[11, 'isActive']

    def test_round_trip_with_select(self, user_fields):
        """Columns of a generated select map back to the requested logical names."""
        query = QueryBuilder('public', user_fields).build_select_query(
            'users', fields=['username', 'loginCount', 'status'])
        selected = query.select_query.text.split('SELECT ', 1)[1].split(' FROM ', 1)[0]
        assert 'users.login_count' in selected
        row = {'username': 'ann', 'login_count': 4, 'status': 'INACTIVE', 'id': 'u-9'}
        assert ResponseMapper(user_fields).map_response(row) == {
            'id': 'u-9', 'username': 'ann', 'loginCount': 4, 'status': 'INACTIVE'}

    def test_round_trip_unqualified_columns(self):
        """Bare column mappings are read back under their column name."""
        fields = {'id': {'dbField': 'id', 'type': 'number'}, 'fullName': {'dbField': 'full_name'}}
        query = QueryBuilder('public', fields).build_select_query('users', fields=['fullName'])
        assert query.select_query.text.startswith('SELECT full_name, id FROM public.users')
        assert ResponseMapper(fields).map_response({'id': 1, 'full_name': 'Ann'}) == {'id': 1, 'fullName': 'Ann'}
