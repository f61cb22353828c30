"""Errors raised while building queries.

All of them derive from ``ValueError`` so callers that already translate
``ValueError`` into a client error keep working.
"""


class QueryBuilderError(ValueError):
    """Base class for query construction errors."""


class UnknownFieldError(QueryBuilderError):
    """A filter, sort or group-by key is not in the field mappings."""

    def __init__(self, field: str, context: str = 'filter'):
        self.field = field
        super().__init__(f'Invalid {context} field: {field}')


class ComputedFieldError(QueryBuilderError):
    """Sorting or grouping was requested on a computed expression."""

    def __init__(self, field: str, context: str = 'sort'):
        self.field = field
        super().__init__(f'Cannot {context} by computed field: {field}')


class UnsupportedOperatorError(QueryBuilderError):
    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f'Unsupported filter operation: {operator}')


class TooManyConditionsError(QueryBuilderError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f'Maximum number of filter conditions exceeded ({limit})')


class InvalidRangeFormatError(QueryBuilderError):
    pass


class InvalidIdentifierError(QueryBuilderError):
    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f'Invalid {kind} identifier: {identifier}')


class UnknownResourceError(QueryBuilderError):
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f'Unknown resource: {resource}')
