"""
Unit tests for Gerrit timestamp parsing
"""

import pytest
from datetime import datetime, timezone, timedelta

from gerritoscope.errors import TimestampParseError
from gerritoscope.timestamps import format_gerrit_timestamp, parse_gerrit_timestamp


class TestParseGerritTimestamp:
    """Test cases for parse_gerrit_timestamp."""

    def test_basic(self):
        """Test parsing a nanosecond-precision timestamp."""
        dt = parse_gerrit_timestamp('2024-03-01 14:22:05.000000000')
        assert dt == datetime(2024, 3, 1, 14, 22, 5, tzinfo=timezone.utc)

    def test_result_is_utc(self):
        """Test that the result is always aware and in UTC."""
        dt = parse_gerrit_timestamp('2021-07-04 23:59:59.000000000')
        assert dt.tzinfo == timezone.utc
        assert dt.utcoffset() == timedelta(0)

    def test_fractional_seconds_of_any_length(self):
        """Test that fractional parts of varying length are accepted."""
        assert parse_gerrit_timestamp('2021-07-04 00:00:00.0').microsecond == 0
        assert parse_gerrit_timestamp('2021-07-04 00:00:00.5').microsecond == 500000
        assert parse_gerrit_timestamp('2021-07-04 00:00:00.123456789').microsecond == 123456

    def test_without_fraction(self):
        """Test that a timestamp without fractional seconds is accepted."""
        assert parse_gerrit_timestamp('2021-07-04 10:11:12') == datetime(
            2021, 7, 4, 10, 11, 12, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize('value', [
        'not-a-date',
        '',
        '2024-03-01T14:22:05.000000000',
        '2024-03-01 14:22:05.000000000Z',
        '2024-03-01 14:22:05.12ab',
        '2024-03-01 14:22',
        '2024-13-01 00:00:00.000',
        '2024-02-30 00:00:00.000',
        '2024-06-10 12:00:00.000000000\n',
        '２０２４-06-10 12:00:00.000000000',
    ])
    def test_invalid(self, value):
        """Test that malformed timestamps raise TimestampParseError."""
        with pytest.raises(TimestampParseError):
            parse_gerrit_timestamp(value)

    def test_non_string(self):
        """Test that non-string values are rejected."""
        with pytest.raises(TimestampParseError):
            parse_gerrit_timestamp(None)

    def test_error_is_value_error_and_names_value(self):
        """Test that the error is a ValueError mentioning the bad input."""
        with pytest.raises(ValueError, match='garbage'):
            parse_gerrit_timestamp('garbage')


class TestFormatGerritTimestamp:
    """Test cases for format_gerrit_timestamp."""

    def test_format(self):
        """Test formatting with nanosecond padding."""
        dt = datetime(2024, 3, 1, 14, 22, 5, 123456, tzinfo=timezone.utc)
        assert format_gerrit_timestamp(dt) == '2024-03-01 14:22:05.123456000'

    def test_format_converts_to_utc(self):
        """Test that aware datetimes are converted to UTC first."""
        dt = datetime(2024, 3, 1, 16, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_gerrit_timestamp(dt) == '2024-03-01 14:00:00.000000000'
