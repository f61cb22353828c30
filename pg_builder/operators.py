"""Filter operation registry: operator suffix -> SQL operator and value transform."""

from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from .errors import UnsupportedOperatorError


def _quoted(value: Any) -> str:
    return "'" + str(value).replace("'", "''") + "'"


# (operator, sql operator, value transformer)
FILTER_OPERATIONS: List[Tuple[str, str, Optional[Callable[[Any], Any]]]] = [
    # Basic comparisons
    ('eq', '=', None),
    ('ne', '!=', None),
    ('gt', '>', None),
    ('gte', '>=', None),
    ('lt', '<', None),
    ('lte', '<=', None),

    # LIKE variants
    ('like', 'ILIKE', lambda v: f'%{v}%'),
    ('startsWith', 'ILIKE', lambda v: f'{v}%'),
    ('endsWith', 'ILIKE', lambda v: f'%{v}'),

    # Sets
    ('in', 'IN', None),
    ('notIn', 'NOT IN', None),

    # Ranges
    ('between', 'BETWEEN', None),
    ('notBetween', 'NOT BETWEEN', None),

    # Null checks
    ('isNull', 'IS NULL', None),
    ('isNotNull', 'IS NOT NULL', None),

    # Dates
    ('dateRange', 'BETWEEN', None),
    ('monthYear', 'BETWEEN', None),
    ('year', 'BETWEEN', None),

    # Case-sensitive containment
    ('contains', 'LIKE', lambda v: f'%{v}%'),
    ('notContains', 'NOT LIKE', lambda v: f'%{v}%'),

    # Regex
    ('regexp', '~', None),
    ('notRegexp', '!~', None),
    ('iRegexp', '~*', None),
    ('notIRegexp', '!~*', None),

    # Array membership
    ('any', '= ANY', None),
    ('all', '= ALL', None),

    ('is', 'IS', None),
    ('not', 'IS NOT', None),

    # JSONB
    ('jsonContains', '@>', None),
    ('jsonContained', '<@', None),
    ('jsonKeyExists', '?', None),
    ('jsonAnyKeyExists', '?|', None),
    ('jsonAllKeysExist', '?&', None),
    ('jsonPath', '#>>', None),
    ('jsonPathText', '#>', None),
    ('jsonEq', '#>>', None),

    # Array set operations
    ('overlap', '&&', None),
    ('contained', '<@', None),
    ('containsArray', '@>', None),

    # Full-text search, the transformer renders the inline tsquery literal
    ('fts', '@@', _quoted),
    ('ftsPlain', '@@ plainto_tsquery', _quoted),
    ('ftsPhrase', '@@ phraseto_tsquery', _quoted),
    ('ftsWeb', '@@ websearch_to_tsquery', _quoted),

    # Case-insensitive equality
    ('ciEq', 'ILIKE', None),
    ('ciNe', 'NOT ILIKE', None),

    # Column to column
    ('col', '=', None),

    # Boolean shorthands
    ('isTrue', '=', lambda v: True),
    ('isFalse', '=', lambda v: False),

    # Null-safe comparison
    ('distinctFrom', 'IS DISTINCT FROM', None),
    ('notDistinctFrom', 'IS NOT DISTINCT FROM', None),
]


class FilterOperation:
    """A registered filter operator."""
    __slots__ = ('operator', 'sql_operator', 'value_transformer')

    def __init__(self, operator: str, sql_operator: str, value_transformer: Optional[Callable[[Any], Any]] = None):
        self.operator = operator
        self.sql_operator = sql_operator
        self.value_transformer = value_transformer

    def transform(self, value: Any) -> Any:
        return self.value_transformer(value) if self.value_transformer else value

    def __repr__(self):
        return f'FilterOperation({self.operator!r}, {self.sql_operator!r})'


class FilterOperations:
    """Read-only registry of filter operations, looked up by name."""
    def __init__(self, table: Iterable[Tuple[str, str, Optional[Callable[[Any], Any]]]] = FILTER_OPERATIONS):
        self._operations = MappingProxyType({op: FilterOperation(op, sql, fn) for op, sql, fn in table})
        self._cache: Dict[str, FilterOperation] = {}

    def get(self, operator: str) -> FilterOperation:
        """Get operation by name; raises UnsupportedOperatorError when unknown."""
        cached = self._cache.get(operator)
        if cached is not None:
            return cached
        operation = self._operations.get(operator)
        if operation is None:
            raise UnsupportedOperatorError(operator)
        self._cache[operator] = operation
        return operation

    def names(self) -> List[str]:
        return list(self._operations)

    def __contains__(self, operator: str) -> bool:
        return operator in self._operations

    def __len__(self) -> int:
        return len(self._operations)


OPERATIONS = FilterOperations()
