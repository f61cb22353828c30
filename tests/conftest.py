"""Shared field mappings for the query builder tests."""

import pytest

from pg_builder import FilterConditionBuilder, QueryBuilder


USER_FIELD_MAPPINGS = {
    'id': {'dbField': 'users.id', 'type': 'uuid'},
    'username': {'dbField': 'users.username', 'type': 'string'},
    'email': {'dbField': 'users.email', 'type': 'string'},
    'isActive': {'dbField': 'users.is_active', 'type': 'boolean'},
    'createdAt': {'dbField': 'users.created_at', 'type': 'timestamp'},
    'birthDate': {'dbField': 'users.birth_date', 'type': 'date'},
    'profileId': {'dbField': 'users.profile_id', 'type': 'uuid'},
    'loginCount': {'dbField': 'users.login_count', 'type': 'number'},
    'status': {
        'dbField': "CASE WHEN users.is_active THEN 'ACTIVE' ELSE 'INACTIVE' END AS status",
        'type': 'string',
    },
    'tags': {'dbField': 'users.tags', 'type': 'array'},
    'metadata': {'dbField': 'users.metadata', 'type': 'jsonb'},
    'ftsVector': {'dbField': "to_tsvector('english', users.username)", 'type': 'tsvector'},
}

PROFILE_FIELD_MAPPINGS = {
    'id': {'dbField': 'profiles.id', 'type': 'uuid'},
    'userId': {'dbField': 'profiles.user_id', 'type': 'uuid'},
    'bio': {'dbField': 'profiles.bio', 'type': 'string'},
    'age': {'dbField': 'profiles.age', 'type': 'number'},
    'country': {'dbField': 'profiles.country', 'type': 'string'},
    'createdAt': {'dbField': 'profiles.created_at', 'type': 'timestamp'},
}


@pytest.fixture
def user_fields():
    return USER_FIELD_MAPPINGS


@pytest.fixture
def profile_fields():
    return PROFILE_FIELD_MAPPINGS


@pytest.fixture
def builder():
    """Fresh condition builder over the users mappings."""
    return FilterConditionBuilder(USER_FIELD_MAPPINGS)


@pytest.fixture
def user_query_builder():
    return QueryBuilder('public', USER_FIELD_MAPPINGS)


@pytest.fixture
def profile_query_builder():
    return QueryBuilder('public', PROFILE_FIELD_MAPPINGS)
