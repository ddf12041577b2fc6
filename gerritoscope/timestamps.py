"""Parsing and formatting of Gerrit REST timestamps.

Gerrit renders every timestamp as ``YYYY-MM-DD HH:MM:SS.fffffffff`` in UTC
with no zone marker. The fractional part carries nanoseconds, which is more
than ``datetime.strptime('%f')`` accepts, so the string is split by hand.
"""

import re
from datetime import datetime, timezone

from .errors import TimestampParseError

_TIMESTAMP_RE = re.compile(
    r'(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.([^.\s]+))?',
    re.ASCII,
)


def parse_gerrit_timestamp(value: str) -> datetime:
    """Parse a Gerrit timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string, e.g. ``2024-03-01 14:22:05.000000000``

    Returns:
        The instant as a ``datetime`` with ``tzinfo=timezone.utc``

    Raises:
        TimestampParseError: If the string does not follow the Gerrit format
    """
    if not isinstance(value, str):
        raise TimestampParseError(f"invalid Gerrit timestamp {value!r}: expected a string")

    match = _TIMESTAMP_RE.fullmatch(value)
    if not match:
        raise TimestampParseError(f"invalid Gerrit timestamp {value!r}")

    year, month, day, hour, minute, second, fraction = match.groups()

    microsecond = 0
    if fraction is not None:
        if not fraction.isdigit() or not fraction.isascii():
            raise TimestampParseError(
                f"invalid Gerrit timestamp {value!r}: non-numeric fractional seconds"
            )
        # datetime only holds microseconds; drop the remaining digits
        microsecond = int(fraction[:6].ljust(6, '0'))

    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            microsecond, tzinfo=timezone.utc
        )
    except ValueError as e:
        raise TimestampParseError(f"invalid Gerrit timestamp {value!r}: {e}") from e


def format_gerrit_timestamp(dt: datetime) -> str:
    """Render a datetime in Gerrit's wire format (nanosecond precision)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%d %H:%M:%S') + f".{dt.microsecond:06d}000"
