"""Logical field -> physical column mappings and field validation."""

from types import MappingProxyType
from typing import Any, List, Mapping, Optional
import logging
from .errors import QueryBuilderError, UnknownFieldError, ComputedFieldError
from .mappings import field_types, computed_markers, computed_fields

logger = logging.getLogger(__name__)


class FieldMapping:
    """Physical expression and declared type of one logical field."""
    __slots__ = ('db_field', 'type')

    def __init__(self, db_field: str, type: str = 'string'):
        if not db_field or not isinstance(db_field, str):
            raise QueryBuilderError(f'Invalid db field: {db_field!r}')
        if type not in field_types:
            raise QueryBuilderError(f'Invalid field type: {type}')
        self.db_field = db_field
        self.type = type

    @property
    def is_computed(self) -> bool:
        """True for derived expressions (selection only, never filtered or sorted)."""
        return any(marker in self.db_field for marker in computed_markers)

    @classmethod
    def from_input(cls, item: Any) -> 'FieldMapping':
        """Create mapping from a FieldMapping or a dict with dbField/db_field and type."""
        if isinstance(item, cls):
            return item
        if isinstance(item, Mapping):
            return cls(item.get('dbField', item.get('db_field')), item.get('type', 'string'))
        raise TypeError(f'Unsupported field mapping type: {type(item)}')

    def __eq__(self, other):
        if not isinstance(other, FieldMapping):
            return NotImplemented
        return (self.db_field, self.type) == (other.db_field, other.type)

    def __hash__(self):
        return hash((self.db_field, self.type))

    def __repr__(self):
        return f'FieldMapping({self.db_field!r}, {self.type!r})'


def load_field_mappings(mappings: Mapping[str, Any]) -> Mapping[str, FieldMapping]:
    """Normalize a {logical name: mapping} table into a read-only registry."""
    if isinstance(mappings, MappingProxyType):
        return mappings
    if not isinstance(mappings, Mapping):
        raise TypeError('Field mappings must be a mapping of logical name to mapping')
    return MappingProxyType({name: FieldMapping.from_input(m) for name, m in mappings.items()})


def is_computed_field(name: str, mapping: FieldMapping) -> bool:
    """Computed by expression, or one of the legacy derived field names."""
    return name in computed_fields or mapping.is_computed


class FieldValidator:
    """Validates selection, sort and grouping fields against the mappings."""
    def __init__(self, field_mappings: Mapping[str, Any]):
        self.field_mappings = load_field_mappings(field_mappings)

    def validate_fields(self, fields: Optional[List[str]]) -> List[str]:
        """Map requested logical fields to physical expressions; unknown names are dropped."""
        if not fields:
            return [m.db_field for m in self.field_mappings.values()]
        db_fields = [self.field_mappings[f].db_field for f in fields if f in self.field_mappings]
        if not db_fields:
            raise UnknownFieldError(', '.join(fields), 'selection')
        dropped = [f for f in fields if f not in self.field_mappings]
        if dropped:
            logger.debug(f'Dropping unknown selection fields: {dropped}')
        id_mapping = self.field_mappings.get('id')
        if id_mapping and id_mapping.db_field not in db_fields and '*' not in db_fields:
            db_fields.append(id_mapping.db_field)
        return db_fields

    def validate_sort_field(self, sort_field: Optional[str]) -> Optional[str]:
        """Physical expression for a sort field, or None when no sort was asked."""
        if not sort_field:
            return None
        return self._resolve(sort_field, 'sort')

    def validate_group_by(self, fields: Optional[List[str]]) -> List[str]:
        return [self._resolve(f, 'group') for f in fields or []]

    def validate_aggregate_field(self, field: str) -> str:
        return self._resolve(field, 'aggregate')

    def _resolve(self, field: str, context: str) -> str:
        mapping = self.field_mappings.get(field)
        if mapping is None:
            raise UnknownFieldError(field, context)
        if mapping.is_computed:
            raise ComputedFieldError(field, context)
        return mapping.db_field
