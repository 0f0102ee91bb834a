"""Filter value coercion and canonical date rendering.

Pure functions shared by the filter parser, the condition compiler, and
the record validator so that dates stored in records and dates typed in
filters compare as identical strings.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime
from typing import Any

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_NUMERIC_LITERAL = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")


def coerce_value(raw: str) -> Any:
    """Best-effort typing of a filter value by its shape.

    Order: number, boolean literal, ISO date (``YYYY-MM-DD`` prefix), string.

    Examples:
        >>> coerce_value("42")
        42
        >>> coerce_value("  5")
        5
        >>> coerce_value("2.5")
        2.5
        >>> coerce_value("TRUE")
        True
        >>> coerce_value("2024-03-01")
        datetime.datetime(2024, 3, 1, 0, 0)
        >>> coerce_value("hello")
        'hello'
    """
    number = _parse_number(raw)
    if number is not None:
        return number

    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if _ISO_DATE_PREFIX.match(raw):
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            pass

    return raw


def _parse_number(raw: str) -> int | float | None:
    # Plain decimal literals only; no digit separators, nan, or inf.
    if not _NUMERIC_LITERAL.match(raw):
        return None
    try:
        number = float(raw)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    if number.is_integer() and abs(number) < 2**53:
        return int(number)
    return number


def canonical_datetime(value: date | datetime) -> str:
    """Render a date/datetime as the ISO string used for storage and comparison.

    Plain dates become midnight datetimes; aware datetimes are converted
    to UTC and rendered with a ``Z`` suffix.

    Examples:
        >>> canonical_datetime(date(2024, 1, 2))
        '2024-01-02T00:00:00'
        >>> from datetime import timedelta, timezone
        >>> canonical_datetime(datetime(2024, 1, 2, 3, 0, tzinfo=timezone(timedelta(hours=1))))
        '2024-01-02T02:00:00Z'
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()
