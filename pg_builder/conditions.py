"""Filter condition building for SQL WHERE clauses.

Turns required filters and free-form query parameters (``field`` or
``field_operator`` keys) into predicate fragments with ``$n`` positional
placeholders and the matching ordered parameter list.

Each operator dispatches to an emitter ``(target, operation, value, start)``
returning ``(fragment, values)``. An emitter numbers its placeholders from
``start`` and the builder advances its index by ``len(values)``, so
``values[i - 1]`` is always the parameter of ``$i``.
"""

import json
import re
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple
import logging
from .date_utils import parse_date_range, parse_month_year, parse_year
from .errors import (
    QueryBuilderError, UnknownFieldError, TooManyConditionsError,
    InvalidRangeFormatError, InvalidIdentifierError
)
from .field_mapping import FieldMapping, load_field_mappings, is_computed_field
from .mappings import MAX_CONDITIONS, default_operators, cast_suffixes, reserved_params
from .operators import FilterOperation, FilterOperations, OPERATIONS

logger = logging.getLogger(__name__)

_rx_param_key = re.compile(r'^(.+)_([a-zA-Z]+)$')
_rx_column_ref = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*(?:\.[a-zA-Z_][a-zA-Z0-9_]*)?$')


class BuildResult(NamedTuple):
    """Predicate text and its positional parameters."""
    text: str
    values: List[Any]


class Target(NamedTuple):
    """What an emitter needs to know about the filtered field."""
    column: str
    field_type: str
    transformer: Optional[Callable[[Any], Any]]
    resolve_column: Callable[[Any], str]


def _ph(index: int) -> str:
    return f'${index}'


def coerce_list(value: Any) -> List[Any]:
    """List from a list/tuple/set, a comma-separated string, or a scalar."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str):
        return [v.strip() for v in value.split(',')]
    return [value]


def coerce_pair(value: Any) -> Tuple[Any, Any]:
    """Two bounds from a 2-sequence, a {start, end} mapping or an "a,b" string."""
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    if isinstance(value, (str, Mapping)):
        return tuple(parse_date_range(value))
    raise InvalidRangeFormatError(f'Range value must have exactly two bounds: {value!r}')


def _emit_null_check(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column} {op.sql_operator}', []


def _emit_in(target: Target, op: FilterOperation, value: Any, start: int):
    values = coerce_list(value)
    if not values:
        raise QueryBuilderError(f"Operator '{op.operator}' requires at least one value")
    keys = ', '.join(_ph(start + i) for i in range(len(values)))
    return f'{target.column} {op.sql_operator} ({keys})', values


def _emit_between(target: Target, op: FilterOperation, value: Any, start: int):
    if op.operator == 'dateRange':
        low, high = parse_date_range(value)
    else:
        low, high = coerce_pair(value)
    return f'{target.column} {op.sql_operator} {_ph(start)} AND {_ph(start + 1)}', [low, high]


def _emit_month_year(target: Target, op: FilterOperation, value: Any, start: int):
    low, high = parse_month_year(value)
    return f'{target.column} BETWEEN {_ph(start)} AND {_ph(start + 1)}', [low, high]


def _emit_year(target: Target, op: FilterOperation, value: Any, start: int):
    low, high = parse_year(value)
    return f'{target.column} BETWEEN {_ph(start)} AND {_ph(start + 1)}', [low, high]


def _emit_array(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column} {op.sql_operator} ({_ph(start)})', [coerce_list(value)]


def _emit_column(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column} {op.sql_operator} {target.resolve_column(value)}', []


def _emit_json_contains(target: Target, op: FilterOperation, value: Any, start: int):
    json_value = value if isinstance(value, str) else json.dumps(value)
    return f'{target.column} {op.sql_operator} {_ph(start)}::jsonb', [json_value]


def _emit_json_keys(target: Target, op: FilterOperation, value: Any, start: int):
    keys = list(value) if isinstance(value, (list, tuple)) else [value]
    return f'{target.column} {op.sql_operator} {_ph(start)}', [keys]


def _path_value(value: Any, path_keys: Tuple[str, ...]) -> Tuple[Any, Any]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    if isinstance(value, Mapping) and 'value' in value:
        for key in path_keys:
            if key in value:
                return value[key], value['value']
    raise QueryBuilderError(f'JSON path filter requires a (path, value) pair: {value!r}')


def _emit_json_path(target: Target, op: FilterOperation, value: Any, start: int):
    path, path_value = _path_value(value, ('path', 'jsonPath'))
    return f'{target.column}{op.sql_operator} {_ph(start)} = {_ph(start + 1)}', [path, path_value]


def _emit_json_path_text(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column}{op.sql_operator} {_ph(start)}::jsonb', [value]


def _emit_json_eq(target: Target, op: FilterOperation, value: Any, start: int):
    path, eq_value = _path_value(value, ('path',))
    return f'{target.column}{op.sql_operator} {_ph(start)} = {_ph(start + 1)}', [path, eq_value]


def _emit_fts(target: Target, op: FilterOperation, value: Any, start: int):
    tsquery = target.transformer(value) if target.transformer else op.transform(value)
    return f'{target.column} {op.sql_operator}({tsquery})', []


def _emit_case_insensitive(target: Target, op: FilterOperation, value: Any, start: int):
    ci_value = target.transformer(value) if target.transformer else value
    return f'{target.column} {op.sql_operator} {_ph(start)}', [ci_value]


def _emit_boolean(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column} {op.sql_operator} {_ph(start)}', [op.transform(value)]


def _emit_plain(target: Target, op: FilterOperation, value: Any, start: int):
    return f'{target.column} {op.sql_operator} {_ph(start)}', [value]


def _emit_comparison(target: Target, op: FilterOperation, value: Any, start: int):
    transformed = target.transformer(value) if target.transformer else op.transform(value)
    cast = cast_suffixes.get(target.field_type, '')
    return f'{target.column}{cast} {op.sql_operator} {_ph(start)}', [transformed]


Emitter = Callable[[Target, FilterOperation, Any, int], Tuple[str, List[Any]]]

EMITTERS: Dict[str, Emitter] = {
    'isNull': _emit_null_check,
    'isNotNull': _emit_null_check,
    'in': _emit_in,
    'notIn': _emit_in,
    'between': _emit_between,
    'notBetween': _emit_between,
    'dateRange': _emit_between,
    'monthYear': _emit_month_year,
    'year': _emit_year,
    'any': _emit_array,
    'all': _emit_array,
    'col': _emit_column,
    'jsonContains': _emit_json_contains,
    'jsonContained': _emit_json_contains,
    'jsonKeyExists': _emit_json_keys,
    'jsonAnyKeyExists': _emit_json_keys,
    'jsonAllKeysExist': _emit_json_keys,
    'jsonPath': _emit_json_path,
    'jsonPathText': _emit_json_path_text,
    'jsonEq': _emit_json_eq,
    'fts': _emit_fts,
    'ftsPlain': _emit_fts,
    'ftsPhrase': _emit_fts,
    'ftsWeb': _emit_fts,
    'ciEq': _emit_case_insensitive,
    'ciNe': _emit_case_insensitive,
    'isTrue': _emit_boolean,
    'isFalse': _emit_boolean,
    'distinctFrom': _emit_plain,
    'notDistinctFrom': _emit_plain,
}

FTS_OPERATORS = frozenset(['fts', 'ftsPlain', 'ftsPhrase', 'ftsWeb'])


class FilterConditionBuilder:
    """Accumulates WHERE conditions and positional parameters for one query.

    Not safe for concurrent use; create one builder per query build.
    """
    def __init__(self, field_mappings: Mapping[str, Any],
                 custom_transformers: Optional[Mapping[str, Callable[[Any], Any]]] = None,
                 operations: FilterOperations = OPERATIONS, max_conditions: int = MAX_CONDITIONS,
                 compat_fts_params: bool = False):
        """Initialize with field mappings.

        ``custom_transformers`` are keyed by physical expression and override the
        operator's value transform for that field. ``compat_fts_params`` also binds
        the raw full-text value (unreferenced by any placeholder) as older
        consumers of this builder expect.
        """
        self.field_mappings = load_field_mappings(field_mappings)
        self.custom_transformers = dict(custom_transformers or {})
        self.operations = operations
        self.max_conditions = max_conditions
        self.compat_fts_params = compat_fts_params
        self.conditions: List[str] = []
        self.values: List[Any] = []
        self.param_index = 1

    def add_required_conditions(self, required_filters: Optional[Mapping[str, Any]]) -> 'FilterConditionBuilder':
        """Add an equality condition for every required filter."""
        for field, value in (required_filters or {}).items():
            self.add_condition(field, 'eq', value)
        return self

    def add_dynamic_filters(self, query_params: Optional[Mapping[str, Any]],
                            exclude_fields: Optional[List[str]] = None) -> 'FilterConditionBuilder':
        """Add conditions parsed from query parameter keys.

        Conditions are emitted grouped by operator (groups in order of first
        appearance, encounter order inside a group); that order decides the
        placeholder numbering.
        """
        exclude = set(exclude_fields or [])
        grouped: Dict[str, List[Tuple[str, Any]]] = {}
        count = 0
        for key, value in (query_params or {}).items():
            if self._should_skip(key, value, exclude):
                continue
            resolved = self._resolve_param_key(key)
            if resolved is None:
                logger.debug(f'Skipping filter parameter with no known field: {key}')
                continue
            count += 1
            if count > self.max_conditions:
                raise TooManyConditionsError(self.max_conditions)
            field, operator = resolved
            grouped.setdefault(operator, []).append((field, value))
        for operator, filters in grouped.items():
            for field, value in filters:
                self.add_condition(field, operator, value)
        return self

    def add_condition(self, field: str, operator: str, value: Any) -> 'FilterConditionBuilder':
        """Add a single condition; computed fields are silently ignored."""
        mapping = self.field_mappings.get(field)
        if mapping is None:
            raise UnknownFieldError(field)
        if is_computed_field(field, mapping):
            logger.debug(f'Ignoring filter on computed field: {field}')
            return self
        operation = self.operations.get(operator)
        self._build_condition(mapping, operation, value)
        return self

    def build(self) -> BuildResult:
        """Return WHERE clause text (empty without conditions) and parameters."""
        text = f'WHERE {" AND ".join(self.conditions)}' if self.conditions else ''
        return BuildResult(text, list(self.values))

    def _build_condition(self, mapping: FieldMapping, operation: FilterOperation, value: Any):
        target = Target(mapping.db_field, mapping.type, self.custom_transformers.get(mapping.db_field),
                        self._resolve_column)
        emitter = EMITTERS.get(operation.operator, _emit_comparison)
        fragment, values = emitter(target, operation, value, self.param_index)
        if self.compat_fts_params and operation.operator in FTS_OPERATORS:
            values = [value]
        self.conditions.append(fragment)
        self.values.extend(values)
        self.param_index += len(values)

    def _resolve_column(self, value: Any) -> str:
        """Physical expression of a known field, else a validated column reference."""
        mapping = self.field_mappings.get(value)
        if mapping is not None:
            return mapping.db_field
        if not isinstance(value, str) or not _rx_column_ref.match(value):
            raise InvalidIdentifierError('column', str(value))
        return value

    def _resolve_param_key(self, key: str) -> Optional[Tuple[str, str]]:
        match = _rx_param_key.match(key)
        if match and match.group(1) in self.field_mappings:
            return match.group(1), match.group(2)
        mapping = self.field_mappings.get(key)
        if mapping is not None:
            return key, default_operators.get(mapping.type, 'eq')
        return None

    @staticmethod
    def _should_skip(key: str, value: Any, exclude: set) -> bool:
        return value is None or (isinstance(value, str) and value == '') or key in exclude or key in reserved_params
