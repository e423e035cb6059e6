"""Subscription record and the filters the store accepts."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from uuid import UUID


@dataclass
class Subscription:
    """One row of the ``subscriptions`` table.

    ``id`` and ``created_at`` are assigned by the store on insert.
    ``start_date`` and ``end_date`` are always the first day of a month.
    """

    service_name: str
    price: int
    user_id: UUID
    start_date: date
    end_date: Optional[date] = None
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None


@dataclass
class ListFilter:
    """Optional predicates and paging for listing subscriptions.

    ``limit`` and ``offset`` only apply when strictly positive.
    """

    user_id: Optional[UUID] = None
    service_name: Optional[str] = None
    limit: int = 0
    offset: int = 0


@dataclass
class SummaryFilter:
    """Closed period ``[period_start, period_end]`` plus optional predicates."""

    period_start: date
    period_end: date
    user_id: Optional[UUID] = None
    service_name: Optional[str] = None
