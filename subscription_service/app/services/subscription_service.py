"""
Service layer for subscription records.

``SubscriptionService`` runs the CRUD statements and the period
summary against the ``subscriptions`` table.  Each public method is a
single autocommit statement executed on the asyncpg pool handed to the
constructor; the service keeps no other state, so one instance may be
shared by concurrent requests.

All queries use numbered placeholders.  Filtered queries are assembled
with ``QueryBuilder`` so that the placeholder numbers always follow
the order in which predicates were added.

Every method accepts an optional ``RequestDeadline``.  It is checked
before the statement is sent and its remaining time is passed to the
driver as the statement timeout; cancelling it abandons the running
statement.  Driver and network failures are
reported as ``PersistenceError``; an elapsed deadline as
``DeadlineExceeded``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping, Optional
from uuid import UUID

import asyncpg

from ..core.deadline import RequestDeadline, remaining_or_none
from ..core.exceptions import DeadlineExceeded, NotFoundError, PersistenceError
from ..models.subscription import ListFilter, Subscription, SummaryFilter
from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)

COLUMNS = "id, service_name, price, user_id, start_date, end_date, created_at"

# Substring match; the caller's text is used as an ILIKE pattern, so
# ``%`` and ``_`` inside it keep their wildcard meaning.
SERVICE_NAME_MATCH = "service_name ILIKE '%' || ? || '%'"


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except asyncio.TimeoutError as exc:
        raise DeadlineExceeded(f"{operation}: statement timed out") from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise PersistenceError(f"{operation}: {exc}") from exc


class SubscriptionService:
    """Store for subscription records backed by PostgreSQL."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def _call(
        self, method: str, deadline: Optional[RequestDeadline], query: str, *args: Any
    ) -> Any:
        call = getattr(self._pool, method)(query, *args, timeout=remaining_or_none(deadline))
        if deadline is None:
            return await call
        return await deadline.guard(call)

    async def create_subscription(
        self, sub: Subscription, deadline: Optional[RequestDeadline] = None
    ) -> Subscription:
        """Insert a record and return it with ``id`` and ``created_at`` filled in.

        An id is generated when the record has none.
        """
        if sub.id is None:
            sub.id = uuid.uuid4()
        if deadline is not None:
            deadline.check()
        with _translate_errors("create subscription"):
            created_at = await self._call(
                "fetchval",
                deadline,
                """
                INSERT INTO subscriptions (id, service_name, price, user_id, start_date, end_date)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING created_at
                """,
                sub.id,
                sub.service_name,
                sub.price,
                sub.user_id,
                sub.start_date,
                sub.end_date,
            )
        sub.created_at = created_at
        logger.info("Created subscription %s", sub.id)
        return sub

    async def get_subscription(
        self, sub_id: UUID, deadline: Optional[RequestDeadline] = None
    ) -> Subscription:
        """Load one record by id or raise ``NotFoundError``."""
        if deadline is not None:
            deadline.check()
        with _translate_errors("get subscription"):
            row = await self._call(
                "fetchrow",
                deadline,
                f"SELECT {COLUMNS} FROM subscriptions WHERE id = $1",
                sub_id,
            )
        if row is None:
            raise NotFoundError(f"subscription {sub_id} not found")
        return self._row_to_subscription(row)

    async def list_subscriptions(
        self, filters: ListFilter, deadline: Optional[RequestDeadline] = None
    ) -> List[Subscription]:
        """Return matching records, newest first."""
        builder = QueryBuilder(f"SELECT {COLUMNS} FROM subscriptions")
        self._apply_owner_filters(builder, filters.user_id, filters.service_name)
        builder.order_by("created_at DESC").limit(filters.limit).offset(filters.offset)
        query, params = builder.build()

        if deadline is not None:
            deadline.check()
        with _translate_errors("list subscriptions"):
            rows = await self._call("fetch", deadline, query, *params)
        return [self._row_to_subscription(row) for row in rows]

    async def update_subscription(
        self, sub: Subscription, deadline: Optional[RequestDeadline] = None
    ) -> Subscription:
        """Overwrite every mutable column of an existing record.

        Raises ``NotFoundError`` when no row has ``sub.id``.  The returned
        record carries the stored ``created_at``.
        """
        if deadline is not None:
            deadline.check()
        with _translate_errors("update subscription"):
            created_at = await self._call(
                "fetchval",
                deadline,
                """
                UPDATE subscriptions
                SET service_name = $1, price = $2, user_id = $3, start_date = $4, end_date = $5
                WHERE id = $6
                RETURNING created_at
                """,
                sub.service_name,
                sub.price,
                sub.user_id,
                sub.start_date,
                sub.end_date,
                sub.id,
            )
        if created_at is None:
            raise NotFoundError(f"subscription {sub.id} not found")
        sub.created_at = created_at
        logger.info("Updated subscription %s", sub.id)
        return sub

    async def delete_subscription(
        self, sub_id: UUID, deadline: Optional[RequestDeadline] = None
    ) -> None:
        """Delete a record by id or raise ``NotFoundError``."""
        if deadline is not None:
            deadline.check()
        with _translate_errors("delete subscription"):
            status = await self._call(
                "execute",
                deadline,
                "DELETE FROM subscriptions WHERE id = $1",
                sub_id,
            )
        if self._affected_rows(status) == 0:
            raise NotFoundError(f"subscription {sub_id} not found")
        logger.info("Deleted subscription %s", sub_id)

    async def get_summary(
        self, filters: SummaryFilter, deadline: Optional[RequestDeadline] = None
    ) -> int:
        """Sum ``price`` over records active at any point of the period.

        A record is active in ``[period_start, period_end]`` when it
        starts no later than ``period_end`` and either has no end date or
        ends no earlier than ``period_start``.  Returns 0 when nothing
        matches.
        """
        builder = QueryBuilder("SELECT COALESCE(SUM(price), 0) FROM subscriptions")
        builder.where("start_date <= ?", filters.period_end)
        builder.where("(end_date IS NULL OR end_date >= ?)", filters.period_start)
        self._apply_owner_filters(builder, filters.user_id, filters.service_name)
        query, params = builder.build()

        if deadline is not None:
            deadline.check()
        with _translate_errors("summarize subscriptions"):
            total = await self._call("fetchval", deadline, query, *params)
        return int(total or 0)

    @staticmethod
    def _apply_owner_filters(
        builder: QueryBuilder, user_id: Optional[UUID], service_name: Optional[str]
    ) -> None:
        if user_id is not None:
            builder.where("user_id = ?", user_id)
        if service_name is not None:
            builder.where(SERVICE_NAME_MATCH, service_name)

    @staticmethod
    def _affected_rows(status: str) -> int:
        """Row count from a command tag such as ``"DELETE 1"``."""
        try:
            return int(status.rsplit(" ", 1)[-1])
        except (AttributeError, ValueError):
            return 0

    @staticmethod
    def _row_to_subscription(row: Mapping[str, Any]) -> Subscription:
        """Convert a database row to a ``Subscription`` record."""
        return Subscription(
            id=row["id"],
            service_name=row["service_name"],
            price=row["price"],
            user_id=row["user_id"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            created_at=row["created_at"],
        )
