"""
Query-string parsing for the list and summary endpoints.

Query parameters arrive as raw strings so that malformed values can be
reported with the service's own messages instead of the framework's
generic validation errors.  Blank values are treated as absent.
"""

import re
from typing import Optional

from ..core.exceptions import InvalidFormat, ValidationError
from ..models.subscription import ListFilter, SummaryFilter
from ..utils.periods import end_of_month, parse_month_token, start_of_month
from .subscription import parse_uuid

_INT_RE = re.compile(r"[+-]?[0-9]+")

# Paging values are bound as BIGINT parameters.
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


def _parse_int(value: str, name: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValidationError(f"{name} must be an integer")
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValidationError(f"{name} must be an integer")
    return number


def parse_list_filter(
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
) -> ListFilter:
    """Build a ``ListFilter`` from query parameters.

    Negative ``limit``/``offset`` values are accepted; the store treats
    anything not strictly positive as unbounded.
    """
    filters = ListFilter()
    user = _clean(user_id)
    if user:
        filters.user_id = parse_uuid(user, "invalid user_id")
    service = _clean(service_name)
    if service:
        filters.service_name = service
    raw_limit = _clean(limit)
    if raw_limit:
        filters.limit = _parse_int(raw_limit, "limit")
    raw_offset = _clean(offset)
    if raw_offset:
        filters.offset = _parse_int(raw_offset, "offset")
    return filters


def parse_summary_filter(
    start: Optional[str] = None,
    end: Optional[str] = None,
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
) -> SummaryFilter:
    """Build a ``SummaryFilter`` covering whole months from ``start`` to ``end``.

    Both months are required and ``end`` may not precede ``start``.  The
    resulting period runs from the first day of ``start`` to the last day
    of ``end``.
    """
    raw_start, raw_end = _clean(start), _clean(end)
    if not raw_start or not raw_end:
        raise ValidationError("start and end query parameters are required (format MM-YYYY)")
    try:
        period_start = parse_month_token(raw_start)
    except InvalidFormat as exc:
        raise ValidationError("invalid start format") from exc
    try:
        period_end = parse_month_token(raw_end)
    except InvalidFormat as exc:
        raise ValidationError("invalid end format") from exc
    if period_end < period_start:
        raise ValidationError("end must not be before start")

    filters = SummaryFilter(
        period_start=start_of_month(period_start),
        period_end=end_of_month(period_end),
    )
    user = _clean(user_id)
    if user:
        filters.user_id = parse_uuid(user, "invalid user_id")
    service = _clean(service_name)
    if service:
        filters.service_name = service
    return filters
