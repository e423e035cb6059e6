"""
Month-token date helpers.

Subscriptions are tracked with month granularity.  On the wire a month
is written as ``MM-YYYY`` (for example ``07-2025``); internally it is a
``datetime.date`` pinned to the first day of the month.  Dates carry no
time zone: every value is a calendar date in UTC.
"""

import re
from datetime import date, datetime, timedelta
from typing import Union

from ..core.exceptions import InvalidFormat

_MONTH_TOKEN_RE = re.compile(r"([0-9]{2})-([0-9]{4})")

DateLike = Union[date, datetime]


def parse_month_token(value: str) -> date:
    """Parse ``MM-YYYY`` into the first day of that month.

    Exactly two month digits and four year digits are accepted; anything
    else, including an out-of-range month, raises ``InvalidFormat``.
    """
    match = _MONTH_TOKEN_RE.fullmatch(value)
    if not match:
        raise InvalidFormat(f'invalid month-year format "{value}"')
    month, year = int(match.group(1)), int(match.group(2))
    try:
        return date(year, month, 1)
    except ValueError as exc:
        raise InvalidFormat(f'invalid month-year format "{value}"') from exc


def start_of_month(value: DateLike) -> date:
    """First day of the month containing ``value``."""
    return date(value.year, value.month, 1)


def end_of_month(value: DateLike) -> date:
    """Last calendar day of the month containing ``value``.

    Computed as the first day of the following month minus one day.
    """
    first = start_of_month(value)
    if first.year == date.max.year and first.month == 12:
        return date.max
    if first.month == 12:
        next_month = date(first.year + 1, 1, 1)
    else:
        next_month = date(first.year, first.month + 1, 1)
    return next_month - timedelta(days=1)


def format_month_token(value: DateLike) -> str:
    """Render a date as ``MM-YYYY``."""
    return f"{value.month:02d}-{value.year:04d}"
