"""Tests for page metadata."""

import pytest

from pg_builder import PaginationBuilder, QueryBuilderError


class TestPaginationBuilder:

    def test_middle_page(self):
        """250 rows, 20 per page, offset 40 -> third page of 13."""
        result = PaginationBuilder.build(250, 20, 40)
        assert result.total_pages == 13
        assert result.page_number == 2
        assert result.has_next_page is True
        assert result.has_prev_page is True

    def test_first_page(self):
        result = PaginationBuilder.build(250, 20, 0)
        assert result.page_number == 0
        assert result.has_prev_page is False

    def test_last_page(self):
        result = PaginationBuilder.build(250, 20, 240)
        assert result.page_number == 12
        assert result.has_next_page is False

    def test_empty_result(self):
        result = PaginationBuilder.build(0, 10, 0)
        assert result.total_pages == 0
        assert result.has_next_page is False
        assert result.has_prev_page is False

    def test_to_dict(self):
        assert PaginationBuilder.build(5, 2, 2).to_dict() == {
            'total_row_count': 5,
            'page_size': 2,
            'page_number': 1,
            'total_pages': 3,
            'has_next_page': True,
            'has_prev_page': True,
            'offset': 2,
            'limit': 2,
        }

    @pytest.mark.parametrize('limit,offset', [(0, 0), (-5, 0), (10, -1)])
    def test_invalid_arguments(self, limit, offset):
        with pytest.raises(QueryBuilderError):
            PaginationBuilder.build(100, limit, offset)
