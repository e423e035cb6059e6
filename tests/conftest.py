import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("LOG_LEVEL", "debug")

from subscription_service.app.api.dependencies import get_subscription_service  # noqa: E402
from subscription_service.app.core.config import Settings  # noqa: E402
from subscription_service.app.core.exceptions import NotFoundError  # noqa: E402
from subscription_service.app.main import create_app  # noqa: E402
from subscription_service.app.models.subscription import (  # noqa: E402
    ListFilter,
    Subscription,
    SummaryFilter,
)


class FakePool:
    """Stands in for ``asyncpg.Pool`` and records every statement."""

    def __init__(self):
        self.calls = []
        self.fetchval_result = None
        self.fetchrow_result = None
        self.fetch_result = []
        self.execute_result = "DELETE 1"
        self.error: Optional[BaseException] = None
        self.closed = False

    def _record(self, method, query, args, timeout):
        self.calls.append({"method": method, "query": query, "args": list(args), "timeout": timeout})
        if self.error is not None:
            raise self.error

    async def fetchval(self, query, *args, timeout=None):
        self._record("fetchval", query, args, timeout)
        return self.fetchval_result

    async def fetchrow(self, query, *args, timeout=None):
        self._record("fetchrow", query, args, timeout)
        return self.fetchrow_result

    async def fetch(self, query, *args, timeout=None):
        self._record("fetch", query, args, timeout)
        return self.fetch_result

    async def execute(self, query, *args, timeout=None):
        self._record("execute", query, args, timeout)
        return self.execute_result

    @asynccontextmanager
    async def acquire(self):
        yield self

    async def close(self):
        self.closed = True

    @property
    def last(self):
        return self.calls[-1]


class InMemorySubscriptionStore:
    """Dictionary-backed replacement for ``SubscriptionService`` in API tests."""

    def __init__(self):
        self.rows = {}
        self.calls: List[str] = []
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def create_subscription(self, sub: Subscription, deadline=None) -> Subscription:
        self.calls.append("create")
        if sub.id is None:
            sub.id = uuid4()
        sub.created_at = self._tick()
        self.rows[sub.id] = Subscription(**vars(sub))
        return sub

    async def get_subscription(self, sub_id: UUID, deadline=None) -> Subscription:
        self.calls.append("get")
        if sub_id not in self.rows:
            raise NotFoundError(str(sub_id))
        return Subscription(**vars(self.rows[sub_id]))

    async def list_subscriptions(self, filters: ListFilter, deadline=None) -> List[Subscription]:
        self.calls.append("list")
        subs = [s for s in self.rows.values() if self._matches(s, filters.user_id, filters.service_name)]
        subs.sort(key=lambda s: s.created_at, reverse=True)
        if filters.offset > 0:
            subs = subs[filters.offset:]
        if filters.limit > 0:
            subs = subs[: filters.limit]
        return [Subscription(**vars(s)) for s in subs]

    async def update_subscription(self, sub: Subscription, deadline=None) -> Subscription:
        self.calls.append("update")
        existing = self.rows.get(sub.id)
        if existing is None:
            raise NotFoundError(str(sub.id))
        sub.created_at = existing.created_at
        self.rows[sub.id] = Subscription(**vars(sub))
        return sub

    async def delete_subscription(self, sub_id: UUID, deadline=None) -> None:
        self.calls.append("delete")
        if self.rows.pop(sub_id, None) is None:
            raise NotFoundError(str(sub_id))

    async def get_summary(self, filters: SummaryFilter, deadline=None) -> int:
        self.calls.append("summary")
        return sum(
            s.price
            for s in self.rows.values()
            if s.start_date <= filters.period_end
            and (s.end_date is None or s.end_date >= filters.period_start)
            and self._matches(s, filters.user_id, filters.service_name)
        )

    @staticmethod
    def _matches(sub: Subscription, user_id, service_name) -> bool:
        if user_id is not None and sub.user_id != user_id:
            return False
        if service_name is not None and service_name.lower() not in sub.service_name.lower():
            return False
        return True


@pytest.fixture
def settings():
    return Settings(db_init_schema=False, request_timeout=5.0)


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def store():
    return InMemorySubscriptionStore()


@pytest.fixture
def app(settings, store):
    application = create_app(settings)
    application.dependency_overrides[get_subscription_service] = lambda: store
    return application


@pytest.fixture
def client(app):
    # The lifespan (and with it the database pool) is not started here.
    return TestClient(app)


@pytest.fixture
def user_id():
    return "60601fee-2bf1-4721-ae6f-7636e79a0cba"


@pytest.fixture
def payload(user_id):
    return {
        "service_name": "Yandex Plus",
        "price": 400,
        "user_id": user_id,
        "start_date": "07-2025",
    }
