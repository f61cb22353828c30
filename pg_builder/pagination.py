"""Page metadata from a total row count, limit and offset."""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict
from .errors import QueryBuilderError


@dataclass(frozen=True)
class PaginationResult:
    total_row_count: int
    page_size: int
    page_number: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    offset: int
    limit: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PaginationBuilder:
    @staticmethod
    def build(total_count: int, limit: int, offset: int) -> PaginationResult:
        """Page numbers are zero-based."""
        if limit <= 0:
            raise QueryBuilderError(f'Invalid limit: {limit}')
        if offset < 0:
            raise QueryBuilderError(f'Invalid offset: {offset}')
        total_pages = math.ceil(total_count / limit)
        current_page = offset // limit
        return PaginationResult(
            total_row_count=total_count,
            page_size=limit,
            page_number=current_page,
            total_pages=total_pages,
            has_next_page=current_page < total_pages - 1,
            has_prev_page=current_page > 0,
            offset=offset,
            limit=limit,
        )
