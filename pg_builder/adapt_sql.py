"""Dialect-specific placeholder and parameter adaptation.

Queries are built with PostgreSQL's native ``$n`` placeholders. Drivers that
use another DB-API paramstyle get the text rewritten and the parameters
reordered (positional styles) or keyed (named style). Quoted literals are left
untouched.
"""

import re
from typing import Any, Dict, List, Sequence, Tuple, Union
from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.sql.elements import TextClause
from .errors import QueryBuilderError
from .mappings import paramstyles

_rx_token = re.compile(r"'(?:[^']|'')*'|\$(\d+)(::[\w\[\]]+)?|%")


def resolve_paramstyle(dialect: str) -> str:
    """Paramstyle for a dialect or driver name."""
    style = paramstyles.get(str(dialect).lower())
    if style is None:
        raise QueryBuilderError(f'Unknown dialect: {dialect}')
    return style


def dialect_from_url(conn: str) -> str:
    """Driver name (falling back to backend name) from a SQLAlchemy URL."""
    url = make_url(conn)
    driver = url.get_driver_name()
    return driver if driver in paramstyles else url.get_backend_name()


def _param(values: Sequence[Any], index: int) -> Any:
    if not 1 <= index <= len(values):
        raise QueryBuilderError(f'Placeholder ${index} has no parameter ({len(values)} given)')
    return values[index - 1]


def adapt_sql(sql: str, values: Sequence[Any], dialect: str) -> Tuple[str, Union[List[Any], Dict[str, Any]]]:
    """Adapt SQL and parameters for specific dialect."""
    style = resolve_paramstyle(dialect)
    if style == 'numeric_dollar':
        return sql, list(values)
    if style == 'named':
        named: Dict[str, Any] = {}

        def repl_named(m: re.Match) -> str:
            if m.group(1) is None:
                return m.group(0)
            index = int(m.group(1))
            key = f'p{index}'
            named[key] = _param(values, index)
            return f'CAST(:{key} AS {m.group(2)[2:]})' if m.group(2) else f':{key}'
        return _rx_token.sub(repl_named, sql), named

    marker = '%s' if style == 'format' else '?'
    ordered: List[Any] = []

    def repl_positional(m: re.Match) -> str:
        token = m.group(0)
        if m.group(1) is None:
            if style == 'format':
                return token.replace('%', '%%')
            return token
        ordered.append(_param(values, int(m.group(1))))
        return marker + (m.group(2) or '')
    return _rx_token.sub(repl_positional, sql), ordered


def to_text(sql: str, values: Sequence[Any]) -> TextClause:
    """SQLAlchemy text() construct with the parameters bound."""
    named_sql, params = adapt_sql(sql, values, 'sqlalchemy')
    return text(named_sql).bindparams(**params)
