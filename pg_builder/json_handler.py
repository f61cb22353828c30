"""JSON payload handling for query generation."""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union
import logging
from .adapt_sql import adapt_sql
from .errors import QueryBuilderError, UnknownResourceError
from .field_mapping import load_field_mappings
from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)


class Resource(NamedTuple):
    """A queryable table: its schema, field mappings, joins and CTEs."""
    schema: str
    table: str
    fields: Mapping[str, Any]
    joins: List[Dict[str, str]]
    with_clauses: List[Dict[str, str]]

    def query_builder(self, debug: bool = False, **options) -> QueryBuilder:
        builder = QueryBuilder(self.schema, self.fields, debug=debug, **options)
        for j in self.joins:
            builder.add_join(j.get('type', 'JOIN'), j['table'], j['on'])
        for w in self.with_clauses:
            builder.add_with_clause(w['name'], w['query'])
        return builder


def load_resources(source: Union[str, Path, Mapping[str, Any]], default_schema: str = 'public') -> Dict[str, Resource]:
    """Load {name: {schema, table, fields, joins, with}} from a JSON file or dict."""
    if isinstance(source, (str, Path)):
        with open(source, 'r', encoding='utf-8') as f:
            source = json.load(f)
    resources = {}
    for name, definition in source.items():
        if 'fields' not in definition:
            raise QueryBuilderError(f'Resource {name} has no fields')
        resources[name] = Resource(
            schema=definition.get('schema', default_schema),
            table=definition.get('table', name),
            fields=load_field_mappings(definition['fields']),
            joins=list(definition.get('joins', [])),
            with_clauses=list(definition.get('with', [])),
        )
    logger.debug(f'Loaded resources: {list(resources)}')
    return resources


def _resource(payload: Mapping[str, Any], resources: Mapping[str, Resource]) -> Resource:
    if 'resource' not in payload:
        raise QueryBuilderError("Missing required fields: ['resource']")
    name = payload['resource']
    if name not in resources:
        raise UnknownResourceError(name)
    return resources[name]


def json_select(payload: Mapping[str, Any], resources: Mapping[str, Resource], dialect: str = 'postgresql',
                debug: bool = False, default_limit: int = 10, **options) -> Dict[str, Any]:
    """Generate SELECT and COUNT queries from a JSON payload."""
    resource = _resource(payload, resources)
    builder = resource.query_builder(debug=debug, **options)
    query = builder.build_select_query(
        resource.table,
        fields=payload.get('fields'),
        required_filters=payload.get('requiredFilters'),
        query_params=payload.get('queryParams'),
        exclude_fields=payload.get('excludeFields'),
        limit=int(payload.get('limit', default_limit)),
        offset=int(payload.get('offset', 0)),
        sort_field=payload.get('sortField'),
        sort_direction=payload.get('sortDirection', 'DESC'),
    )
    sql, params = adapt_sql(*query.select_query, dialect)
    count_sql, count_params = adapt_sql(*query.count_query, dialect)
    return {'sql': sql, 'params': params, 'count_sql': count_sql, 'count_params': count_params}


def json_aggregate(payload: Mapping[str, Any], resources: Mapping[str, Resource], dialect: str = 'postgresql',
                   debug: bool = False, **options) -> Dict[str, Any]:
    """Generate an aggregate query from a JSON payload."""
    resource = _resource(payload, resources)
    builder = resource.query_builder(debug=debug, **options)
    query = builder.build_aggregate_query(
        resource.table,
        aggregates=payload.get('aggregates'),
        group_by=payload.get('groupBy'),
        required_filters=payload.get('requiredFilters'),
        query_params=payload.get('queryParams'),
        exclude_fields=payload.get('excludeFields'),
    )
    sql, params = adapt_sql(*query, dialect)
    return {'sql': sql, 'params': params}


def query_args_payload(resource: str, args: Mapping[str, Any]) -> Dict[str, Any]:
    """Select payload from flat query-string args; reserved keys drive paging and sorting."""
    payload: Dict[str, Any] = {'resource': resource, 'queryParams': dict(args)}
    for key, target in (('fields', 'fields'), ('limit', 'limit'), ('offset', 'offset'),
                        ('sortField', 'sortField'), ('sort', 'sortDirection')):
        if args.get(key):
            payload[target] = args[key]
    return payload
