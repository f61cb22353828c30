"""Re-key result rows from physical column names to logical field names."""

import re
import pandas as pd
from typing import Any, Dict, Iterable, List, Mapping
from .field_mapping import load_field_mappings
from .mappings import identifier_pattern

_rx_alias = re.compile(r'AS\s+("?[\w_]+"?)$', re.IGNORECASE)
_rx_identifier = re.compile(identifier_pattern)


def extract_column_name(db_field: str, fallback: str) -> str:
    """Result column name of a physical expression.

    Alias after AS, else the last dotted part, else the bare column itself;
    unaliased expressions fall back to the logical name.
    """
    if ' AS ' in db_field.upper():
        match = _rx_alias.search(db_field)
        return match.group(1).replace('"', '') if match else fallback
    if _rx_identifier.match(db_field):
        return db_field
    if '.' in db_field:
        return db_field.split('.')[-1]
    return fallback


class ResponseMapper:
    """Maps rows (dicts or DataFrames) back to logical field names."""
    def __init__(self, field_mappings: Mapping[str, Any]):
        self.field_mappings = load_field_mappings(field_mappings)
        self.columns = {name: extract_column_name(m.db_field, name) for name, m in self.field_mappings.items()}

    def map_response(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: row[column] for name, column in self.columns.items() if column in row}

    def map_responses(self, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return [self.map_response(row) for row in rows]

    def map_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """Keep mapped columns of a result DataFrame, renamed to logical names."""
        pairs = [(column, name) for name, column in self.columns.items() if column in df.columns]
        return pd.DataFrame({name: df[column] for column, name in pairs}, index=df.index)
