"""Tests for month/year ranges and date-range parsing."""

import pytest

from pg_builder import (
    DateRange, get_month_range, get_year_range, parse_date_range, InvalidRangeFormatError
)
from pg_builder.date_utils import parse_month_year, parse_year


class TestMonthRange:

    def test_march(self):
        """Start is the last millisecond of February, end the last of March."""
        assert get_month_range(2023, 3) == DateRange('2023-02-28T23:59:59.999Z', '2023-03-31T23:59:59.999Z')

    def test_december_rolls_year(self):
        assert get_month_range(2023, 12) == DateRange('2023-11-30T23:59:59.999Z', '2023-12-31T23:59:59.999Z')

    def test_january_starts_in_previous_year(self):
        assert get_month_range(2024, 1).start == '2023-12-31T23:59:59.999Z'

    def test_leap_february(self):
        assert get_month_range(2024, 2).end == '2024-02-29T23:59:59.999Z'

    def test_memoized(self):
        assert get_month_range(2022, 7) is get_month_range(2022, 7)

    @pytest.mark.parametrize('month', [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(InvalidRangeFormatError):
            get_month_range(2023, month)


class TestYearRange:

    def test_year(self):
        assert get_year_range(2023) == DateRange('2022-12-31T23:59:59.999Z', '2023-12-31T23:59:59.999Z')

    def test_parse_year_from_string(self):
        assert parse_year('2020') == get_year_range(2020)

    @pytest.mark.parametrize('value', ['twenty', None, '2023.5'])
    def test_parse_year_invalid(self, value):
        with pytest.raises(InvalidRangeFormatError):
            parse_year(value)

    def test_parse_month_year(self):
        assert parse_month_year('2023-03') == get_month_range(2023, 3)

    @pytest.mark.parametrize('value', ['2023', '2023-03-01', 'March'])
    def test_parse_month_year_invalid(self, value):
        with pytest.raises(InvalidRangeFormatError):
            parse_month_year(value)


class TestParseDateRange:

    def test_comma_string_is_trimmed(self):
        assert parse_date_range(' 2023-01-01 , 2023-02-01 ') == DateRange('2023-01-01', '2023-02-01')

    def test_mapping(self):
        assert parse_date_range({'start': 'a', 'end': 'b'}) == DateRange('a', 'b')

    def test_date_range_passthrough(self):
        rng = DateRange('a', 'b')
        assert parse_date_range(rng) is rng

    @pytest.mark.parametrize('value', ['2023-01-01', 'a,b,c', 123, {'start': 'a'}, ['a', 'b']])
    def test_invalid(self, value):
        """Anything but two comma parts or a start/end mapping is rejected."""
        with pytest.raises(InvalidRangeFormatError, match='Invalid date range format'):
            parse_date_range(value)
