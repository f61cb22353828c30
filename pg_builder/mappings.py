"""Static tables: field types, operator defaults, casts and paramstyles."""

from typing import Dict

# Hard cap on filters accepted by a single dynamic-filter pass
MAX_CONDITIONS = 50

identifier_pattern = r'^[a-zA-Z_][a-zA-Z0-9_]*$'

# Declared types a field mapping may carry
field_types = frozenset([
    'string', 'text', 'number', 'smallint', 'bigint', 'float', 'double', 'money',
    'boolean', 'date', 'timestamp', 'uuid', 'json', 'jsonb', 'array', 'bytea',
    'xml', 'inet', 'tsvector', 'interval'
])

# Operator used for a bare query parameter, by declared type (fallback 'eq')
default_operators: Dict[str, str] = {
    'string': 'like',
    'boolean': 'isTrue',
    'uuid': 'eq',
    'number': 'eq',
    'date': 'dateRange',
    'timestamp': 'dateRange',
    'jsonb': 'jsonContains',
    'array': 'containsArray',
    'tsvector': 'fts',
}

# Cast appended to the column side of plain comparisons
cast_suffixes: Dict[str, str] = {
    'date': '::date',
    'timestamp': '::timestamp',
    'jsonb': '::jsonb',
    'array': '::text[]',
}

# Query parameters owned by pagination, sorting and field selection
reserved_params = frozenset(['limit', 'offset', 'sort', 'sortField', 'fields'])

# Expression markers (and legacy names) of read-only computed fields
computed_markers = ('CASE', 'SELECT')
computed_fields = frozenset(['status', 'createdByUser'])

join_types = frozenset([
    'JOIN', 'INNER JOIN', 'LEFT JOIN', 'LEFT OUTER JOIN', 'RIGHT JOIN',
    'RIGHT OUTER JOIN', 'FULL JOIN', 'FULL OUTER JOIN', 'CROSS JOIN'
])

sort_directions = frozenset(['ASC', 'DESC'])

aggregate_functions = frozenset([
    'COUNT', 'SUM', 'AVG', 'MIN', 'MAX', 'BOOL_AND', 'BOOL_OR', 'ARRAY_AGG',
    'STRING_AGG', 'JSONB_AGG', 'STDDEV', 'VARIANCE'
])

# Dialect / driver name -> placeholder style of the statement it executes
paramstyles: Dict[str, str] = {
    'postgres': 'numeric_dollar',
    'postgresql': 'numeric_dollar',
    'asyncpg': 'numeric_dollar',
    'psycopg2': 'format',
    'psycopg': 'format',
    'pg8000': 'format',
    'mysql': 'format',
    'pymysql': 'format',
    'sqlite': 'qmark',
    'pysqlite': 'qmark',
    'mssql': 'qmark',
    'pyodbc': 'qmark',
    'oracle': 'named',
    'sqlalchemy': 'named',
    'named': 'named',
    'format': 'format',
    'qmark': 'qmark',
}
