from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from main import app
from app.client.quota_tracker import QuotaTracker
from app.client.storage import MemoryStorage
from app.integrations.llm_client import get_completion_provider
from app.services.quota_guard import QuotaGuard, get_quota_guard
from app.services.rate_limiter import ServiceRateLimiter, get_service_rate_limiter


class FakeClock:
    """Manually advanced local clock."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def now_ms(self) -> int:
        return int(self.current.timestamp() * 1000)

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeUsageQuery:
    def __init__(self, store: "FakeSupabase"):
        self.store = store
        self.filters: Dict[str, str] = {}
        self.pending_upsert: Optional[dict] = None

    def select(self, *_columns):
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def limit(self, _count):
        return self

    def upsert(self, row, on_conflict=None):
        self.store.upsert_calls.append((row, on_conflict))
        self.pending_upsert = row
        return self

    def execute(self):
        if self.pending_upsert is not None:
            if self.store.fail_upsert:
                raise Exception("upsert failed")
            row = dict(self.pending_upsert)
            self.store.rows[(row["user_id"], row["usage_date"])] = row
            return SimpleNamespace(data=[row], error=None)

        if self.store.fail_select:
            raise Exception("select failed")
        key = (self.filters.get("user_id"), self.filters.get("usage_date"))
        row = self.store.rows.get(key)
        return SimpleNamespace(data=[row] if row else [], error=None)


class FakeSupabase:
    """Just enough of the Supabase client for the usage table."""

    def __init__(self):
        self.rows: Dict[Tuple[str, str], dict] = {}
        self.upsert_calls: List[tuple] = []
        self.tables: List[str] = []
        self.fail_upsert = False
        self.fail_select = False

    def table(self, name):
        self.tables.append(name)
        return FakeUsageQuery(self)

    def seed(self, user_id: str, usage_date: str, daily_count: int) -> None:
        self.rows[(user_id, usage_date)] = {
            "user_id": user_id,
            "usage_date": usage_date,
            "daily_count": daily_count,
            "updated_at": "2026-10-18T00:00:00+00:00",
        }


class FakeProvider:
    def __init__(self, text: str = "Total: 20,000 yen to 30,000 yen"):
        self.text = text
        self.error: Optional[Exception] = None
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def rate_limiter():
    return ServiceRateLimiter(max_requests=100, daily_limit=200)


@pytest.fixture
def api_app(fake_supabase, fake_provider, rate_limiter):
    app.dependency_overrides[get_quota_guard] = lambda: QuotaGuard(fake_supabase)
    app.dependency_overrides[get_completion_provider] = lambda: fake_provider
    app.dependency_overrides[get_service_rate_limiter] = lambda: rate_limiter
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 18, 12, 30, 15))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def tracker(storage, clock):
    return QuotaTracker(storage, clock, daily_limit=15, minute_limit=15)


@pytest.fixture
def valid_form():
    return {
        "planType": "BBQ",
        "participants": "friends x4",
        "duration": "1",
        "location": "Tokyo",
    }

