"""Parameterized PostgreSQL query building from logical field mappings."""

from .errors import (
    QueryBuilderError, UnknownFieldError, ComputedFieldError, UnsupportedOperatorError,
    TooManyConditionsError, InvalidRangeFormatError, InvalidIdentifierError, UnknownResourceError
)
from .field_mapping import FieldMapping, FieldValidator, load_field_mappings
from .operators import FilterOperation, FilterOperations, FILTER_OPERATIONS, OPERATIONS
from .date_utils import DateRange, get_month_range, get_year_range, parse_date_range
from .conditions import BuildResult, FilterConditionBuilder
from .query_builder import QueryBuilder, SelectQuery, sanitize_identifier
from .pagination import PaginationBuilder, PaginationResult
from .response_mapper import ResponseMapper
from .adapt_sql import adapt_sql, dialect_from_url, to_text
from .json_handler import Resource, load_resources, json_select, json_aggregate

__all__ = [
    'QueryBuilderError', 'UnknownFieldError', 'ComputedFieldError', 'UnsupportedOperatorError',
    'TooManyConditionsError', 'InvalidRangeFormatError', 'InvalidIdentifierError', 'UnknownResourceError',
    'FieldMapping', 'FieldValidator', 'load_field_mappings',
    'FilterOperation', 'FilterOperations', 'FILTER_OPERATIONS', 'OPERATIONS',
    'DateRange', 'get_month_range', 'get_year_range', 'parse_date_range',
    'BuildResult', 'FilterConditionBuilder',
    'QueryBuilder', 'SelectQuery', 'sanitize_identifier',
    'PaginationBuilder', 'PaginationResult',
    'ResponseMapper',
    'adapt_sql', 'dialect_from_url', 'to_text',
    'Resource', 'load_resources', 'json_select', 'json_aggregate'
]
