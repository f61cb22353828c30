"""SELECT, COUNT and aggregate query assembly over mapped fields."""

import json
import re
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Union
import logging
from .conditions import BuildResult, FilterConditionBuilder
from .errors import QueryBuilderError, InvalidIdentifierError
from .field_mapping import FieldValidator, load_field_mappings
from .mappings import identifier_pattern, join_types, sort_directions, aggregate_functions
from .operators import FilterOperations, OPERATIONS

logger = logging.getLogger(__name__)

_rx_identifier = re.compile(identifier_pattern)

# Select queries kept per builder, least recently used evicted first
QUERY_CACHE_SIZE = 128


class SelectQuery(NamedTuple):
    select_query: BuildResult
    count_query: BuildResult


def sanitize_identifier(identifier: str) -> str:
    """Validate "[schema.]table[ alias]" and return it normalized."""
    parts = str(identifier).split()
    if not parts or len(parts) > 2:
        raise InvalidIdentifierError('table', identifier)
    table_parts = parts[0].split('.')
    if len(table_parts) > 2:
        raise InvalidIdentifierError('table', parts[0])
    schema, table = (table_parts[0], table_parts[1]) if len(table_parts) == 2 else (None, table_parts[0])
    alias = parts[1] if len(parts) > 1 else None
    if schema is not None and not _rx_identifier.match(schema):
        raise InvalidIdentifierError('schema', schema)
    if not _rx_identifier.match(table):
        raise InvalidIdentifierError('table', table)
    if alias is not None and not _rx_identifier.match(alias):
        raise InvalidIdentifierError('alias', alias)
    sanitized = f'{schema}.{table}' if schema else table
    return f'{sanitized} {alias}' if alias else sanitized


def _split_fields(fields: Union[str, List[str], None]) -> List[str]:
    if isinstance(fields, str):
        return [f.strip() for f in fields.split(',') if f.strip()]
    return list(fields or [])


class QueryBuilder:
    """Builds parameterized SELECT/COUNT/aggregate queries for one schema."""
    def __init__(self, schema: str, field_mappings: Mapping[str, Any], debug: bool = False,
                 custom_transformers: Optional[Mapping[str, Callable[[Any], Any]]] = None,
                 operations: FilterOperations = OPERATIONS, cache_size: int = QUERY_CACHE_SIZE,
                 **builder_options):
        """Initialize with schema and logical field mappings.

        ``builder_options`` are passed to every FilterConditionBuilder
        (``max_conditions``, ``compat_fts_params``). ``cache_size`` bounds the
        select query cache; 0 disables it.
        """
        self.schema = sanitize_identifier(schema)
        self.field_mappings = load_field_mappings(field_mappings)
        self.validator = FieldValidator(self.field_mappings)
        self.custom_transformers = dict(custom_transformers or {})
        self.operations = operations
        self.builder_options = builder_options
        self.debug = debug
        self.joins: Dict[str, str] = {}
        self.with_clauses: List[str] = []
        self.cache_size = cache_size
        self._query_cache: 'OrderedDict[str, SelectQuery]' = OrderedDict()

    def add_join(self, join_type: str, table: str, condition: str) -> 'QueryBuilder':
        """Add a JOIN once per (join type, table)."""
        jt = ' '.join(join_type.upper().split())
        if jt not in join_types:
            raise QueryBuilderError(f'Invalid join type: {join_type}')
        sanitized = sanitize_identifier(table)
        key = f'{jt}:{sanitized}'
        if key not in self.joins:
            self.joins[key] = f'{jt} {sanitized}' if jt == 'CROSS JOIN' else f'{jt} {sanitized} ON {condition}'
            self._query_cache.clear()
        return self

    def add_with_clause(self, name: str, query: str) -> 'QueryBuilder':
        """Add a common table expression."""
        self.with_clauses.append(f'{sanitize_identifier(name)} AS ({query})')
        self._query_cache.clear()
        return self

    def clear_cache(self):
        self._query_cache.clear()

    def filter_builder(self) -> FilterConditionBuilder:
        """Fresh condition builder sharing this builder's mappings and operators."""
        return FilterConditionBuilder(self.field_mappings, self.custom_transformers, self.operations,
                                      **self.builder_options)

    def build_filters(self, required_filters: Optional[Mapping[str, Any]] = None,
                      query_params: Optional[Mapping[str, Any]] = None,
                      exclude_fields: Optional[List[str]] = None) -> BuildResult:
        """WHERE clause for required filters plus dynamic query parameters."""
        return (self.filter_builder()
                .add_required_conditions(required_filters)
                .add_dynamic_filters(query_params, exclude_fields)
                .build())

    def build_select_query(self, table_name: str, fields: Union[str, List[str], None] = None,
                           required_filters: Optional[Mapping[str, Any]] = None,
                           query_params: Optional[Mapping[str, Any]] = None,
                           exclude_fields: Optional[List[str]] = None, limit: int = 10, offset: int = 0,
                           sort_field: Optional[str] = None, sort_direction: str = 'DESC') -> SelectQuery:
        """Generate paginated SELECT and matching COUNT queries."""
        direction = str(sort_direction).upper()
        if direction not in sort_directions:
            raise QueryBuilderError(f'Invalid sort direction: {sort_direction}')
        requested = _split_fields(fields)
        cache_key = self._cache_key(table_name, requested, required_filters, query_params,
                                    exclude_fields, sort_field, direction)
        cached = self._query_cache.get(cache_key)
        if cached is not None:
            self._query_cache.move_to_end(cache_key)
            query = SelectQuery(self._paginate(cached.select_query, limit, offset),
                                BuildResult(cached.count_query.text, list(cached.count_query.values)))
            self._log('Cached select query', query.select_query)
            return query

        selected = self.validator.validate_fields(requested)
        sort_column = self.validator.validate_sort_field(sort_field) or self._default_sort(selected)
        order_by = f'ORDER BY {sort_column} {direction}' if sort_column else ''
        filters = self.build_filters(required_filters, query_params, exclude_fields)
        source = self._source(table_name)

        select_text = self._join_parts(self._with(), f'SELECT {", ".join(selected)}', source,
                                       filters.text, order_by)
        count_text = self._join_parts(self._with(), 'SELECT COUNT(1) AS count', source, filters.text)
        self._remember(cache_key, SelectQuery(BuildResult(select_text, list(filters.values)),
                                              BuildResult(count_text, list(filters.values))))
        query = SelectQuery(self._paginate(BuildResult(select_text, filters.values), limit, offset),
                            BuildResult(count_text, list(filters.values)))
        self._log('Select query', query.select_query)
        self._log('Count query', query.count_query)
        return query

    def build_aggregate_query(self, table_name: str, aggregates: Optional[Mapping[str, Mapping[str, str]]] = None,
                              group_by: Optional[List[str]] = None,
                              required_filters: Optional[Mapping[str, Any]] = None,
                              query_params: Optional[Mapping[str, Any]] = None,
                              exclude_fields: Optional[List[str]] = None) -> BuildResult:
        """Generate an aggregate query, e.g. {'avgAge': {'function': 'AVG', 'field': 'age'}}."""
        group_columns = self.validator.validate_group_by(group_by)
        aggregate_columns = [self._aggregate(alias, agg) for alias, agg in (aggregates or {}).items()]
        select_columns = group_columns + aggregate_columns
        if not select_columns:
            raise QueryBuilderError('Aggregate query requires aggregates or group by fields')
        filters = self.build_filters(required_filters, query_params, exclude_fields)
        group_clause = f'GROUP BY {", ".join(group_columns)}' if group_columns else ''
        text = self._join_parts(self._with(), f'SELECT {", ".join(select_columns)}', self._source(table_name),
                                filters.text, group_clause)
        query = BuildResult(text, filters.values)
        self._log('Aggregate query', query)
        return query

    def _aggregate(self, alias: str, definition: Mapping[str, str]) -> str:
        func = str(definition.get('function', '')).upper()
        if func not in aggregate_functions:
            raise QueryBuilderError(f'Invalid aggregate function: {definition.get("function")}')
        field = definition.get('field', '*')
        if field == '*':
            if func != 'COUNT':
                raise QueryBuilderError(f'{func} requires a field')
            column = '*'
        else:
            column = self.validator.validate_aggregate_field(field)
        if not _rx_identifier.match(str(alias)):
            raise InvalidIdentifierError('alias', alias)
        return f'{func}({column}) AS {alias}'

    def _source(self, table_name: str) -> str:
        source = f'FROM {self.schema}.{sanitize_identifier(table_name)}'
        return ' '.join([source] + list(self.joins.values()))

    def _with(self) -> str:
        return f'WITH {", ".join(self.with_clauses)}' if self.with_clauses else ''

    def _default_sort(self, selected: List[str]) -> Optional[str]:
        computed = {m.db_field for m in self.field_mappings.values() if m.is_computed}
        return next((c for c in selected if c not in computed), None)

    @staticmethod
    def _paginate(query: BuildResult, limit: int, offset: int) -> BuildResult:
        n = len(query.values)
        return BuildResult(f'{query.text} LIMIT ${n + 1} OFFSET ${n + 2}', list(query.values) + [limit, offset])

    @staticmethod
    def _join_parts(*parts: str) -> str:
        return ' '.join(p for p in parts if p)

    def _remember(self, cache_key: str, query: SelectQuery):
        if self.cache_size <= 0:
            return
        self._query_cache[cache_key] = query
        while len(self._query_cache) > self.cache_size:
            self._query_cache.popitem(last=False)

    def _cache_key(self, table_name, fields, required_filters, query_params, exclude_fields,
                   sort_field, direction) -> str:
        return json.dumps([sanitize_identifier(table_name), fields, required_filters or {}, query_params or {},
                           sorted(exclude_fields or []), sort_field, direction], sort_keys=True, default=str)

    def _log(self, label: str, query: BuildResult):
        """Log SQL and params if debug enabled."""
        if self.debug:
            logger.debug(f'{label}: {query.text} | Params: {query.values}')
